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
"""Apply resolved eager loads and sort plans to a ``select()``."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import aliased, selectinload

from pyrelate.data.paths import DESC, EagerLoad, SortPlan
from pyrelate.data.relations import BelongsTo, BelongsToMany, Relation
from pyrelate.data.relational.sqlalchemy.graph import MapperRelationGraph


def loader_option(load: EagerLoad) -> Any:
    """Chain ``selectinload`` along *load*'s relations.

    A callable constraint receives the final target type and its clause
    narrows the rows loaded for the last hop.
    """
    option = None
    last = len(load.relations) - 1
    for index, relation in enumerate(load.relations):
        attribute = getattr(relation.source, relation.name)
        if index == last and callable(load.constraint):
            attribute = attribute.and_(load.constraint(relation.target))
        option = selectinload(attribute) if option is None else option.selectinload(attribute)
    return option


def apply_eager_loads(stmt: Select[Any], loads: Iterable[EagerLoad]) -> Select[Any]:
    options = [loader_option(load) for load in loads if load.relations]
    return stmt.options(*options) if options else stmt


def _join_hop(
    stmt: Select[Any], current: Any, relation: Relation, graph: MapperRelationGraph
) -> tuple[Select[Any], Any]:
    target = aliased(relation.target)
    if isinstance(relation, BelongsToMany):
        pivot = graph.pivot_table(relation).alias()
        stmt = stmt.join(pivot, getattr(current, relation.parent_key) == pivot.c[relation.foreign_pivot_key])
        stmt = stmt.join(target, pivot.c[relation.related_pivot_key] == getattr(target, relation.related_key))
    elif isinstance(relation, BelongsTo):
        stmt = stmt.join(target, getattr(current, relation.foreign_key) == getattr(target, relation.owner_key))
    else:
        stmt = stmt.join(target, getattr(current, relation.local_key) == getattr(target, relation.foreign_key))
    return stmt, target


def apply_sort(stmt: Select[Any], model: type, plans: Iterable[SortPlan], graph: MapperRelationGraph) -> Select[Any]:
    """Add ORDER BY terms, joining an aliased table per hop for relation sorts.

    The statement keeps selecting the base entity only, so joined columns
    never shadow its own.
    """
    for plan in plans:
        current: Any = model
        for relation in plan.hops:
            stmt, current = _join_hop(stmt, current, relation, graph)
        column = getattr(current, plan.column)
        stmt = stmt.order_by(column.desc() if plan.direction == DESC else column.asc())
    return stmt
