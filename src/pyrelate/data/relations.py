# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Relation registry types and the metadata ports the engine consumes.

Relations are a closed tagged variant (:class:`BelongsTo`,
:class:`HasOne`, :class:`HasMany` and :class:`BelongsToMany`) carrying
the key names both the persister and the sort-join synthesizer need.
Nothing in the engine inspects methods or return types to guess a
relation's kind; the kind is data.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

GLUE = "."


class RelationKind(enum.Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO_MANY = "belongs_to_many"


@dataclass(frozen=True)
class EntityType:
    """Static description of one mapped entity type."""

    model: type
    table_name: str
    primary_key: str
    fields: frozenset[str]
    auto_keyed: bool = True

    @property
    def name(self) -> str:
        return self.model.__name__


@dataclass(frozen=True)
class Relation(ABC):
    """Common part of every relation: its name and the two ends."""

    name: str
    source: type
    target: type

    @property
    @abstractmethod
    def kind(self) -> RelationKind: ...

    @property
    def is_before_save(self) -> bool:
        """Whether the related entity must exist before the owner is written."""
        return False

    @property
    def is_collection(self) -> bool:
        return False


@dataclass(frozen=True)
class BelongsTo(Relation):
    """``source.foreign_key`` references ``target.owner_key``."""

    foreign_key: str = ""
    owner_key: str = "id"

    @property
    def kind(self) -> RelationKind:
        return RelationKind.BELONGS_TO

    @property
    def is_before_save(self) -> bool:
        return True


@dataclass(frozen=True)
class HasOne(Relation):
    """``target.foreign_key`` references ``source.local_key``; at most one child."""

    foreign_key: str = ""
    local_key: str = "id"

    @property
    def kind(self) -> RelationKind:
        return RelationKind.HAS_ONE


@dataclass(frozen=True)
class HasMany(Relation):
    """``target.foreign_key`` references ``source.local_key``; a collection."""

    foreign_key: str = ""
    local_key: str = "id"

    @property
    def kind(self) -> RelationKind:
        return RelationKind.HAS_MANY

    @property
    def is_collection(self) -> bool:
        return True


@dataclass(frozen=True)
class BelongsToMany(Relation):
    """Many-to-many through ``pivot_table``.

    ``pivot_table.foreign_pivot_key`` references ``source.parent_key`` and
    ``pivot_table.related_pivot_key`` references ``target.related_key``.
    ``pivot_columns`` lists the extra pivot columns callers may write.
    """

    pivot_table: str = ""
    foreign_pivot_key: str = ""
    related_pivot_key: str = ""
    parent_key: str = "id"
    related_key: str = "id"
    pivot_columns: tuple[str, ...] = ()

    @property
    def kind(self) -> RelationKind:
        return RelationKind.BELONGS_TO_MANY

    @property
    def is_collection(self) -> bool:
        return True


# =============================================================================
# Metadata ports
# =============================================================================


@runtime_checkable
class ModelMetadataProvider(Protocol):
    """Field-level metadata for entity types."""

    def entity(self, model: type) -> EntityType: ...
    def fields(self, model: type) -> frozenset[str]: ...
    def primary_key_name(self, model: type) -> str: ...
    def table_name(self, model: type) -> str: ...
    def has_write_mutator(self, model: type, key: str) -> bool: ...


@runtime_checkable
class RelationMetadataProvider(Protocol):
    """Relation lookup by name (canonical name or a declared alias)."""

    def resolve(self, model: type, name: str) -> Relation | None: ...
    def relations(self, model: type) -> Mapping[str, Relation]: ...


@runtime_checkable
class RelationGraph(ModelMetadataProvider, RelationMetadataProvider, Protocol):
    """Both metadata ports, as one read-only graph over entity types."""


def split_path(path: str) -> list[str]:
    """Split a dot-path into its segments."""
    return path.split(GLUE)


def join_path(segments: list[str]) -> str:
    return GLUE.join(segments)
