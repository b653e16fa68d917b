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
"""Translate compiled filter trees into SQLAlchemy boolean clauses.

Plain-column leaves become column comparisons.  Leaves on relation paths
become correlated ``EXISTS`` subqueries through ``relationship.any()``
(collections) and ``relationship.has()`` (scalars), nested hop by hop::

    {"posts.tags.label": "=news"}
    # User.posts.any(Post.tags.any(Tag.label == "news"))
"""

from __future__ import annotations

import decimal
import logging
from typing import Any

from sqlalchemy import ColumnElement, and_, or_

from pyrelate.data.filter import Conjunction, FilterGroup, FilterLeaf, FilterNode, Operator
from pyrelate.data.relations import Relation, RelationGraph

_logger = logging.getLogger(__name__)

_NUMERIC_TYPES = (int, float, decimal.Decimal)


def coerce_operand(attribute: Any, value: Any) -> Any:
    """Convert *value* to the column's Python type when it is numeric."""
    try:
        python_type = attribute.type.python_type
    except (AttributeError, NotImplementedError):
        return value
    if python_type in _NUMERIC_TYPES and isinstance(value, str):
        try:
            return python_type(value)
        except (ValueError, ArithmeticError):
            return value
    return value


def build_predicate(attribute: Any, operator: Operator, operand: Any) -> ColumnElement[bool]:
    """Build the comparison *operator* names on *attribute*."""
    if operator is Operator.STARTS_WITH:
        return attribute.like(f"{operand}%")
    if operator is Operator.ENDS_WITH:
        return attribute.like(f"%{operand}")
    if operator is Operator.CONTAINS:
        return attribute.like(f"%{operand}%")
    if operator is Operator.IN:
        return attribute.in_([coerce_operand(attribute, v) for v in operand])
    if operator is Operator.NOT_IN:
        return attribute.not_in([coerce_operand(attribute, v) for v in operand])
    if operator is Operator.IS_TRUE:
        return attribute == True  # noqa: E712
    if operator is Operator.IS_FALSE:
        return attribute == False  # noqa: E712
    if operator is Operator.IS_NULL:
        return attribute.is_(None)
    if operator is Operator.IS_NOT_NULL:
        return attribute.is_not(None)

    value = coerce_operand(attribute, operand)
    if operator is Operator.EQUALS:
        return attribute == value
    if operator is Operator.NOT_EQUALS:
        return attribute != value
    if operator is Operator.LESS_THAN:
        return attribute < value
    if operator is Operator.GREATER_THAN:
        return attribute > value
    if operator is Operator.LESS_THAN_OR_EQUALS:
        return attribute <= value
    if operator is Operator.GREATER_THAN_OR_EQUALS:
        return attribute >= value
    raise ValueError(f"Unsupported filter operator: {operator!r}")


class ClauseBuilder:
    """Resolve filter leaves against a relation graph and build one clause."""

    def __init__(self, graph: RelationGraph) -> None:
        self._graph = graph

    def build(self, model: type, node: FilterNode) -> ColumnElement[bool] | None:
        """Return the clause for *node*, or ``None`` when nothing survives."""
        if isinstance(node, FilterLeaf):
            return self._leaf(model, node)

        accumulated: ColumnElement[bool] | None = None
        for child in node.children:
            clause = self.build(model, child)
            if clause is None:
                continue
            if accumulated is None:
                accumulated = clause
            elif child.conjunction is Conjunction.OR:
                accumulated = or_(accumulated, clause)
            else:
                accumulated = and_(accumulated, clause)
        return accumulated

    def _leaf(self, model: type, leaf: FilterLeaf) -> ColumnElement[bool] | None:
        hops: list[Relation] = []
        current = model
        for name in leaf.hops:
            relation = self._graph.resolve(current, name)
            if relation is None:
                _logger.debug("Dropping filter %r: %r is not a relation of %s", leaf.path, name, current.__name__)
                return None
            hops.append(relation)
            current = relation.target

        if leaf.column not in self._graph.fields(current):
            _logger.debug("Dropping filter %r: %s has no field %r", leaf.path, current.__name__, leaf.column)
            return None

        clause = build_predicate(getattr(current, leaf.column), leaf.operator, leaf.operand)
        for relation in reversed(hops):
            attribute = getattr(relation.source, relation.name)
            clause = attribute.any(clause) if relation.is_collection else attribute.has(clause)
        return clause


def compile_clause(graph: RelationGraph, model: type, group: FilterGroup | None) -> ColumnElement[bool] | None:
    if group is None:
        return None
    return ClauseBuilder(graph).build(model, group)
