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
"""SQLAlchemy ``Specification`` for read-query composition.

Example::

    active = Specification(lambda root, q: q.where(root.active == True))
    named = Specification.where(lambda root: root.username.like("al%"))

    stmt = (active & named).to_predicate(User, select(User))
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, Select, not_, or_, select

from pyrelate.data.specification import Specification as SpecificationBase

T = TypeVar("T")


class Specification(SpecificationBase[T, Select[Any]]):
    """Wraps a callable ``(root, Select) -> Select``.

    * ``spec_a & spec_b`` applies both predicates in turn (AND).
    * ``spec_a | spec_b`` ORs the WHERE clauses each adds to a clean query.
    * ``~spec_a`` negates the WHERE clause the predicate adds.
    """

    def __init__(self, predicate: Callable[[type[T], Select[Any]], Select[Any]]) -> None:
        self._predicate = predicate

    @classmethod
    def where(cls, clause: ColumnElement[bool] | Callable[[type[T]], ColumnElement[bool]]) -> Specification[T]:
        """Build a specification that adds one WHERE clause.

        *clause* is either a ready clause or a callable receiving the root
        entity type.  The clause is added as a single parenthesised group.
        """
        if callable(clause) and not isinstance(clause, ColumnElement):
            return cls(lambda root, q: q.where(clause(root).self_group()))
        return cls(lambda root, q: q.where(clause.self_group()))

    def to_predicate(self, root: type[T], query: Select[Any]) -> Select[Any]:
        return self._predicate(root, query)

    def __and__(self, other: Specification[T]) -> Specification[T]:  # type: ignore[override]
        left, right = self._predicate, other._predicate
        return Specification(lambda root, q: right(root, left(root, q)))

    def __or__(self, other: Specification[T]) -> Specification[T]:  # type: ignore[override]
        left_pred, right_pred = self._predicate, other._predicate

        def or_predicate(root: type[T], query: Select[Any]) -> Select[Any]:
            left_clause = left_pred(root, _bare(root)).whereclause
            right_clause = right_pred(root, _bare(root)).whereclause
            if left_clause is not None and right_clause is not None:
                return query.where(or_(left_clause, right_clause))
            if left_clause is not None:
                return query.where(left_clause)
            if right_clause is not None:
                return query.where(right_clause)
            return query

        return Specification(or_predicate)

    def __invert__(self) -> Specification[T]:
        pred = self._predicate

        def not_predicate(root: type[T], query: Select[Any]) -> Select[Any]:
            clause = pred(root, _bare(root)).whereclause
            if clause is not None:
                return query.where(not_(clause))
            return query

        return Specification(not_predicate)


def _bare(root: type[Any]) -> Select[Any]:
    """A criteria-free query used to extract the clause a predicate adds."""
    return select(root)
