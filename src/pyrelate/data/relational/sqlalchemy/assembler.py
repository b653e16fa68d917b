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
"""Assemble a read query from a :class:`~pyrelate.data.query.QueryModifier`."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import Select, func, select

from pyrelate.data.access import AccessPolicy
from pyrelate.data.filter import FilterCompiler
from pyrelate.data.paths import RelationPathResolver
from pyrelate.data.query import QueryModifier
from pyrelate.data.relational.sqlalchemy.filter import compile_clause
from pyrelate.data.relational.sqlalchemy.graph import MapperRelationGraph
from pyrelate.data.relational.sqlalchemy.loading import apply_eager_loads, apply_sort
from pyrelate.data.relational.sqlalchemy.specification import Specification

_logger = logging.getLogger(__name__)

AGGREGATE_LABEL = "aggregate"

AGGREGATE_FUNCTIONS = {
    "count": func.count,
    "min": func.min,
    "max": func.max,
    "sum": func.sum,
    "avg": func.avg,
}


def parse_group_by(group_by: str | Iterable[str] | None) -> list[str]:
    """Split ``"a, b"`` or ``["a, b"]`` into trimmed column names."""
    if not group_by:
        return []
    if isinstance(group_by, str):
        group_by = [group_by]
    columns: list[str] = []
    for entry in group_by:
        for column in str(entry).split(","):
            column = column.strip()
            if column and column not in columns:
                columns.append(column)
    return columns


class QueryAssembler:
    """Build the read ``select()`` for one entity type.

    Order of application: filters, group-by, aggregate, eager loads,
    sort, then ad-hoc modifiers in the order supplied.
    """

    def __init__(self, graph: MapperRelationGraph, policy: AccessPolicy) -> None:
        self._graph = graph
        self._policy = policy

    def assemble(self, model: type, modifier: QueryModifier, stmt: Select[Any] | None = None) -> Select[Any]:
        stmt = select(model) if stmt is None else stmt
        resolver = RelationPathResolver(self._graph, self._policy)

        stmt = self.apply_filters(model, stmt, modifier.get_filters())
        group_columns = self.group_columns(model, modifier.get_group_by())
        if group_columns:
            stmt = stmt.group_by(*(getattr(model, c) for c in group_columns))
        stmt = self.apply_aggregate(model, stmt, modifier.get_aggregate())
        stmt = apply_eager_loads(stmt, resolver.resolve_eager_loads(model, modifier.get_eager_loads()))
        stmt = apply_sort(stmt, model, resolver.resolve_sort(model, modifier.get_sort_order()), self._graph)

        for extra in modifier.get_modifiers():
            if isinstance(extra, Specification):
                stmt = extra.to_predicate(model, stmt)
            else:
                stmt = extra(stmt)
        return stmt

    def apply_filters(self, model: type, stmt: Select[Any], filters: Mapping[str, Any]) -> Select[Any]:
        group = FilterCompiler(self._policy).compile(filters)
        clause = compile_clause(self._graph, model, group)
        if clause is None:
            return stmt
        return Specification.where(clause).to_predicate(model, stmt)

    def group_columns(self, model: type, group_by: str | Iterable[str] | None) -> list[str]:
        fields = self._graph.fields(model)
        columns = []
        for column in parse_group_by(group_by):
            if column in fields:
                columns.append(column)
            else:
                _logger.debug("Dropping group-by column %r: not a field of %s", column, model.__name__)
        return columns

    def apply_aggregate(self, model: type, stmt: Select[Any], aggregate: Mapping[str, str]) -> Select[Any]:
        """Add ``fn(column) AS aggregate`` for the first aggregate entry only."""
        if not aggregate:
            return stmt
        name, column = next(iter(aggregate.items()))
        function = AGGREGATE_FUNCTIONS.get(str(name).lower())
        if function is None or column not in self._graph.fields(model):
            _logger.debug("Skipping aggregate %r(%r)", name, column)
            return stmt
        return stmt.add_columns(function(getattr(model, column)).label(AGGREGATE_LABEL))
