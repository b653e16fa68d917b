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
"""Per-resource allow-lists and relation depth limit.

An :class:`AccessPolicy` gates which input keys may be written
(*fillable*), which relation paths may be eager-loaded (*includable*) and
which paths may be filtered or sorted on (*filterable*).  Each list is an
:class:`AccessList`: either the wildcard :data:`ALLOW_ALL` or an explicit
:class:`AllowSet` of keys.

Example::

    policy = AccessPolicy(fillable=["username"], includable=ALLOW_ALL)
    policy.is_fillable("username")    # True
    policy.is_fillable("password")    # False
    policy.add_fillable("name").is_fillable("name")  # True
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

S = TypeVar("S")

# Sentinel accepted at the boundary for callers that still send ``["*"]``.
_LEGACY_WILDCARD = ("*",)


@dataclass(frozen=True)
class AllowAll:
    """Wildcard access list: every key is allowed."""

    def __contains__(self, key: object) -> bool:
        return True


@dataclass(frozen=True)
class AllowSet:
    """Explicit access list; keeps insertion order for ``get`` calls."""

    keys: tuple[str, ...] = ()

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def with_key(self, key: str) -> AllowSet:
        if key in self.keys:
            return self
        return AllowSet(self.keys + (key,))

    def without_key(self, key: str) -> AllowSet:
        return AllowSet(tuple(k for k in self.keys if k != key))


AccessList = Union[AllowAll, AllowSet]

ALLOW_ALL = AllowAll()


def to_access_list(keys: AccessList | Iterable[str] | None) -> AccessList:
    """Normalise caller input into an :data:`AccessList`."""
    if isinstance(keys, (AllowAll, AllowSet)):
        return keys
    if keys is None:
        return AllowSet()
    if isinstance(keys, str):
        keys = [keys]
    materialised = tuple(keys)
    if materialised == _LEGACY_WILDCARD:
        return ALLOW_ALL
    return AllowSet(tuple(dict.fromkeys(materialised)))


@dataclass
class AccessPolicy:
    """Fillable / includable / filterable allow-lists plus a depth limit.

    All mutators return ``self`` so calls can be chained.  Lookups never
    raise; an unknown key is simply not allowed.
    """

    fillable: AccessList = field(default_factory=AllowSet)
    includable: AccessList = field(default_factory=AllowSet)
    filterable: AccessList = field(default_factory=AllowSet)
    depth_limit: int = 0

    def __post_init__(self) -> None:
        self.fillable = to_access_list(self.fillable)
        self.includable = to_access_list(self.includable)
        self.filterable = to_access_list(self.filterable)
        self.set_depth_limit(self.depth_limit)

    @classmethod
    def from_entity(cls, model: type, depth_limit: int = 0) -> AccessPolicy:
        """Seed a policy from an entity class's declared defaults."""
        return cls(
            fillable=getattr(model, "__fillable__", ()),
            includable=getattr(model, "__includable__", ()),
            filterable=getattr(model, "__filterable__", ()),
            depth_limit=depth_limit,
        )

    # ------------------------------------------------------------------
    # Depth
    # ------------------------------------------------------------------

    def set_depth_limit(self, depth: int) -> AccessPolicy:
        if depth < 0:
            raise ValueError(f"depth_limit must be >= 0, got {depth}")
        self.depth_limit = int(depth)
        return self

    def apply_depth_restriction(self, segments: Sequence[S], offset: int = 0) -> list[S]:
        """Truncate *segments* to ``depth_limit + offset`` entries."""
        return list(segments[0 : self.depth_limit + offset])

    # ------------------------------------------------------------------
    # Generic list helpers
    # ------------------------------------------------------------------

    def _set(self, name: str, keys: AccessList | Iterable[str]) -> AccessPolicy:
        setattr(self, name, to_access_list(keys))
        return self

    def _get(self, name: str, assoc: bool) -> Any:
        current: AccessList = getattr(self, name)
        if isinstance(current, AllowAll):
            return ALLOW_ALL
        if assoc:
            return {key: True for key in current.keys}
        return list(current.keys)

    def _add(self, name: str, key: str) -> AccessPolicy:
        current: AccessList = getattr(self, name)
        # Adding to the wildcard narrows it to an explicit list.
        base = AllowSet() if isinstance(current, AllowAll) else current
        setattr(self, name, base.with_key(key))
        return self

    def _remove(self, name: str, key: str) -> AccessPolicy:
        current: AccessList = getattr(self, name)
        if isinstance(current, AllowSet):
            setattr(self, name, current.without_key(key))
        return self

    def _allows(self, name: str, key: str) -> bool:
        return key in getattr(self, name)

    # ------------------------------------------------------------------
    # Fillable
    # ------------------------------------------------------------------

    def set_fillable(self, keys: AccessList | Iterable[str]) -> AccessPolicy:
        return self._set("fillable", keys)

    def get_fillable(self, assoc: bool = False) -> Any:
        return self._get("fillable", assoc)

    def add_fillable(self, key: str) -> AccessPolicy:
        return self._add("fillable", key)

    def add_many_fillable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._add("fillable", key)
        return self

    def remove_fillable(self, key: str) -> AccessPolicy:
        return self._remove("fillable", key)

    def remove_many_fillable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._remove("fillable", key)
        return self

    def is_fillable(self, key: str) -> bool:
        return self._allows("fillable", key)

    # ------------------------------------------------------------------
    # Includable
    # ------------------------------------------------------------------

    def set_includable(self, keys: AccessList | Iterable[str]) -> AccessPolicy:
        return self._set("includable", keys)

    def get_includable(self, assoc: bool = False) -> Any:
        return self._get("includable", assoc)

    def add_includable(self, key: str) -> AccessPolicy:
        return self._add("includable", key)

    def add_many_includable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._add("includable", key)
        return self

    def remove_includable(self, key: str) -> AccessPolicy:
        return self._remove("includable", key)

    def remove_many_includable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._remove("includable", key)
        return self

    def is_includable(self, key: str) -> bool:
        return self._allows("includable", key)

    # ------------------------------------------------------------------
    # Filterable
    # ------------------------------------------------------------------

    def set_filterable(self, keys: AccessList | Iterable[str]) -> AccessPolicy:
        return self._set("filterable", keys)

    def get_filterable(self, assoc: bool = False) -> Any:
        return self._get("filterable", assoc)

    def add_filterable(self, key: str) -> AccessPolicy:
        return self._add("filterable", key)

    def add_many_filterable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._add("filterable", key)
        return self

    def remove_filterable(self, key: str) -> AccessPolicy:
        return self._remove("filterable", key)

    def remove_many_filterable(self, keys: Iterable[str]) -> AccessPolicy:
        for key in keys:
            self._remove("filterable", key)
        return self

    def is_filterable(self, key: str) -> bool:
        return self._allows("filterable", key)
