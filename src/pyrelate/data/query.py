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
"""Per-request read state consumed by the query assembler."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Union

from pyrelate.data.specification import Specification

Modifier = Union[Callable[[Any], Any], Specification]


class QueryModifier:
    """Filters, sort order, grouping, aggregate, eager loads and modifiers.

    Every mutator returns ``self``::

        modifier = (
            QueryModifier()
            .set_filters({"username": "^al"})
            .set_sort_order({"profile.favorite_cheese": "desc"})
            .set_eager_loads(["posts"])
        )
    """

    def __init__(self) -> None:
        self._filters: dict[str, Any] = {}
        self._sort_order: dict[str, str] = {}
        self._group_by: list[str] = []
        self._aggregate: dict[str, str] = {}
        self._eager_loads: Sequence[str] | Mapping[Any, Any] = []
        self._modifiers: list[Modifier] = []

    # -- filters -----------------------------------------------------------

    def set_filters(self, filters: Mapping[str, Any]) -> QueryModifier:
        self._filters = dict(filters)
        return self

    def add_filters(self, filters: Mapping[str, Any]) -> QueryModifier:
        self._filters.update(filters)
        return self

    def add_filter(self, key: str, value: Any) -> QueryModifier:
        self._filters[key] = value
        return self

    def get_filters(self) -> dict[str, Any]:
        return self._filters

    # -- sort / group / aggregate -----------------------------------------

    def set_sort_order(self, sort_order: Mapping[str, str]) -> QueryModifier:
        self._sort_order = dict(sort_order)
        return self

    def get_sort_order(self) -> dict[str, str]:
        return self._sort_order

    def set_group_by(self, group_by: str | Iterable[str]) -> QueryModifier:
        """Accept ``"a, b"`` or ``["a", "b"]``."""
        if isinstance(group_by, str):
            group_by = [group_by]
        self._group_by = list(group_by)
        return self

    def get_group_by(self) -> list[str]:
        return self._group_by

    def set_aggregate(self, aggregate: Mapping[str, str]) -> QueryModifier:
        self._aggregate = dict(aggregate)
        return self

    def get_aggregate(self) -> dict[str, str]:
        return self._aggregate

    # -- eager loads -------------------------------------------------------

    def set_eager_loads(self, eager_loads: Sequence[str] | Mapping[Any, Any]) -> QueryModifier:
        if isinstance(eager_loads, str):
            eager_loads = [eager_loads]
        self._eager_loads = eager_loads
        return self

    def get_eager_loads(self) -> Sequence[str] | Mapping[Any, Any]:
        return self._eager_loads

    # -- ad-hoc modifiers --------------------------------------------------

    def add(self, modifier: Modifier) -> QueryModifier:
        self._modifiers.append(modifier)
        return self

    def set(self, modifiers: Iterable[Modifier]) -> QueryModifier:
        self._modifiers = list(modifiers)
        return self

    def get_modifiers(self) -> list[Modifier]:
        return self._modifiers
