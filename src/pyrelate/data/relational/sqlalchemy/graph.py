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
"""Relation graph built from SQLAlchemy mapper inspection.

Every ``relationship()`` on a mapped class becomes a typed
:class:`~pyrelate.data.relations.Relation`:

=====================  ==================
mapper direction       relation
=====================  ==================
``MANYTOONE``          ``BelongsTo``
``ONETOMANY`` (list)   ``HasMany``
``ONETOMANY`` (scalar) ``HasOne``
``MANYTOMANY``         ``BelongsToMany``
=====================  ==================

Descriptions are memoised per model; mappers are treated as immutable
once configured.
"""

from __future__ import annotations

import functools
import inspect as pyinspect
import logging
from collections.abc import Mapping
from types import MappingProxyType

from sqlalchemy import Table
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapper, RelationshipDirection, RelationshipProperty

from pyrelate.data.relations import BelongsTo, BelongsToMany, EntityType, HasMany, HasOne, Relation
from pyrelate.kernel.exceptions import ConfigurationException

_logger = logging.getLogger(__name__)


def _mapper(model: type) -> Mapper:
    mapper = sa_inspect(model, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise ConfigurationException(
            f"{getattr(model, '__name__', model)!s} is not a mapped SQLAlchemy class",
            context={"entity": getattr(model, "__name__", repr(model))},
        )
    return mapper


def _attribute_key(mapper: Mapper, column) -> str:
    return mapper.get_property_by_column(column).key


@functools.lru_cache(maxsize=None)
def describe_entity(model: type) -> EntityType:
    mapper = _mapper(model)
    if len(mapper.primary_key) != 1:
        raise ConfigurationException(
            f"{model.__name__} must have exactly one primary-key column",
            context={"entity": model.__name__},
        )
    pk_column = mapper.primary_key[0]
    table = mapper.local_table
    auto_keyed = (
        pk_column.default is not None
        or pk_column.server_default is not None
        or (isinstance(table, Table) and table.autoincrement_column is pk_column)
    )
    return EntityType(
        model=model,
        table_name=table.name,
        primary_key=_attribute_key(mapper, pk_column),
        fields=frozenset(attr.key for attr in mapper.column_attrs),
        auto_keyed=auto_keyed,
    )


def _describe_relationship(mapper: Mapper, prop: RelationshipProperty) -> Relation | None:
    source, target = mapper.class_, prop.mapper.class_
    target_mapper = prop.mapper

    if prop.direction is RelationshipDirection.MANYTOONE:
        local, remote = prop.local_remote_pairs[0]
        return BelongsTo(
            name=prop.key,
            source=source,
            target=target,
            foreign_key=_attribute_key(mapper, local),
            owner_key=_attribute_key(target_mapper, remote),
        )

    if prop.direction is RelationshipDirection.ONETOMANY:
        local, remote = prop.local_remote_pairs[0]
        kind = HasMany if prop.uselist else HasOne
        return kind(
            name=prop.key,
            source=source,
            target=target,
            foreign_key=_attribute_key(target_mapper, remote),
            local_key=_attribute_key(mapper, local),
        )

    if prop.direction is RelationshipDirection.MANYTOMANY and prop.secondary is not None:
        parent_column, foreign_pivot = prop.synchronize_pairs[0]
        related_column, related_pivot = prop.secondary_synchronize_pairs[0]
        key_columns = {foreign_pivot.key, related_pivot.key}
        pivot_columns = tuple(
            column.key
            for column in prop.secondary.columns
            if column.key not in key_columns and not column.primary_key
        )
        return BelongsToMany(
            name=prop.key,
            source=source,
            target=target,
            pivot_table=prop.secondary.key,
            foreign_pivot_key=foreign_pivot.key,
            related_pivot_key=related_pivot.key,
            parent_key=_attribute_key(mapper, parent_column),
            related_key=_attribute_key(target_mapper, related_column),
            pivot_columns=pivot_columns,
        )

    _logger.debug("Skipping unsupported relationship %s.%s", source.__name__, prop.key)
    return None


@functools.lru_cache(maxsize=None)
def describe_relations(model: type) -> Mapping[str, Relation]:
    mapper = _mapper(model)
    relations: dict[str, Relation] = {}
    for prop in mapper.relationships:
        relation = _describe_relationship(mapper, prop)
        if relation is not None:
            relations[relation.name] = relation
    return MappingProxyType(relations)


class MapperRelationGraph:
    """:class:`~pyrelate.data.relations.RelationGraph` over SQLAlchemy mappers.

    Relations are looked up by their ``relationship()`` attribute name or
    by an alias declared in the model's ``__relation_aliases__`` mapping::

        class Post(Base, AccessListMixin):
            __relation_aliases__ = {"author": "user"}
    """

    def entity(self, model: type) -> EntityType:
        return describe_entity(model)

    def fields(self, model: type) -> frozenset[str]:
        return describe_entity(model).fields

    def primary_key_name(self, model: type) -> str:
        return describe_entity(model).primary_key

    def table_name(self, model: type) -> str:
        return describe_entity(model).table_name

    def has_write_mutator(self, model: type, key: str) -> bool:
        """Whether *key* is a settable hybrid attribute or Python property."""
        try:
            attribute = pyinspect.getattr_static(model, key)
        except AttributeError:
            return False
        if isinstance(attribute, (hybrid_property, property)):
            return attribute.fset is not None
        return False

    def relations(self, model: type) -> Mapping[str, Relation]:
        return describe_relations(model)

    def resolve(self, model: type, name: str) -> Relation | None:
        relations = describe_relations(model)
        relation = relations.get(name)
        if relation is None:
            canonical = getattr(model, "__relation_aliases__", {}).get(name)
            if canonical is not None:
                relation = relations.get(canonical)
        return relation

    def pivot_table(self, relation: BelongsToMany) -> Table:
        """The :class:`~sqlalchemy.Table` backing *relation*."""
        return _mapper(relation.source).local_table.metadata.tables[relation.pivot_table]


default_graph = MapperRelationGraph()
