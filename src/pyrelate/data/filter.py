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
"""Filter-map grammar and compiler.

A filter map is a flat ``{path: expression}`` mapping, optionally nesting
further maps under the reserved ``and`` / ``or`` keys::

    {
        "username": "^Bob",
        "or": {
            "username": "^Rob",
            "and": {"profile.favorite_cheese": "=Cheddar", "username": "$bby"},
        },
    }

Expressions start with an operator token (``>=  <=  !=  ![`` are matched
before ``^  ~  $  <  >  =  [``) or are one of the literals ``true``,
``false``, ``NULL`` and ``NOT_NULL``.  Anything else is ignored.

:class:`FilterCompiler` turns a filter map into a :class:`FilterGroup`
tree.  It is storage-agnostic; the SQLAlchemy adapter translates the tree
into a boolean clause.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from pyrelate.data.access import AccessPolicy, AllowAll
from pyrelate.data.relations import split_path

_logger = logging.getLogger(__name__)


class Operator(enum.Enum):
    STARTS_WITH = "^"
    CONTAINS = "~"
    ENDS_WITH = "$"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUALS = ">="
    LESS_THAN_OR_EQUALS = "<="
    EQUALS = "="
    NOT_EQUALS = "!="
    IN = "["
    NOT_IN = "!["
    IS_TRUE = "true"
    IS_FALSE = "false"
    IS_NULL = "NULL"
    IS_NOT_NULL = "NOT_NULL"

    @property
    def is_list(self) -> bool:
        return self in (Operator.IN, Operator.NOT_IN)


class Conjunction(enum.Enum):
    AND = "and"
    OR = "or"


_TWO_CHAR_TOKENS = {op.value: op for op in (
    Operator.GREATER_THAN_OR_EQUALS,
    Operator.LESS_THAN_OR_EQUALS,
    Operator.NOT_EQUALS,
    Operator.NOT_IN,
)}

_ONE_CHAR_TOKENS = {op.value: op for op in (
    Operator.STARTS_WITH,
    Operator.CONTAINS,
    Operator.ENDS_WITH,
    Operator.LESS_THAN,
    Operator.GREATER_THAN,
    Operator.EQUALS,
    Operator.IN,
)}

_LITERALS = {op.value: op for op in (
    Operator.IS_TRUE,
    Operator.IS_FALSE,
    Operator.IS_NULL,
    Operator.IS_NOT_NULL,
)}

_CONJUNCTION_KEYS = {c.value: c for c in Conjunction}


@dataclass(frozen=True)
class FilterLeaf:
    """One predicate: ``path`` compared with ``operand`` through ``operator``.

    Leaves always join their preceding sibling with AND.
    """

    path: str
    operator: Operator
    operand: Any = None

    @property
    def hops(self) -> list[str]:
        return split_path(self.path)[:-1]

    @property
    def column(self) -> str:
        return split_path(self.path)[-1]

    @property
    def conjunction(self) -> Conjunction:
        return Conjunction.AND


@dataclass(frozen=True)
class FilterGroup:
    """A parenthesised group of nodes.

    ``conjunction`` is how the group joins its preceding sibling; inside
    the group each child joins the accumulated predicate with its own
    conjunction, left to right.
    """

    conjunction: Conjunction
    children: tuple[FilterNode, ...]


FilterNode = Union[FilterLeaf, FilterGroup]


def conjunction_for(key: object) -> Conjunction | None:
    """Return the conjunction a reserved key names (case-insensitive)."""
    if isinstance(key, str):
        return _CONJUNCTION_KEYS.get(key.lower())
    return None


def parse_operand(value: object) -> tuple[Operator, Any] | None:
    """Parse a wire-level filter expression into ``(operator, operand)``.

    Returns ``None`` for anything that is not a supported expression,
    including scalar operators given a comma-separated operand.
    """
    if not isinstance(value, str) or value == "":
        return None

    if value[:2] in _TWO_CHAR_TOKENS:
        operator = _TWO_CHAR_TOKENS[value[:2]]
    elif value[0] in _ONE_CHAR_TOKENS:
        operator = _ONE_CHAR_TOKENS[value[0]]
    elif value in _LITERALS:
        return _LITERALS[value], None
    else:
        return None

    operand = value[len(operator.value):]
    if operator.is_list:
        return operator, operand.removesuffix("]").split(",")
    if "," in operand:
        return None
    return operator, operand


def intersect_allowed_filters(filters: Mapping[str, Any], policy: AccessPolicy) -> dict[str, Any]:
    """Keep entries whose leading path segment is filterable.

    Recurses into ``and`` / ``or`` groups; groups left empty are dropped.
    """
    if isinstance(policy.filterable, AllowAll):
        return dict(filters)

    allowed: dict[str, Any] = {}
    for key, value in filters.items():
        if conjunction_for(key) is not None and isinstance(value, Mapping):
            nested = intersect_allowed_filters(value, policy)
            if nested:
                allowed[key] = nested
        elif policy.is_filterable(split_path(key)[0]):
            allowed[key] = value
        else:
            _logger.debug("Dropping filter %r: not filterable", key)
    return allowed


def restrict_depth(filters: Mapping[str, Any], depth_limit: int) -> dict[str, Any]:
    """Drop top-level entries that traverse more than ``depth_limit`` relations.

    The terminal segment is a column, so a path may have up to
    ``depth_limit + 1`` segments.  Entries nested under ``and`` / ``or``
    are not inspected here.
    """
    kept: dict[str, Any] = {}
    for key, value in filters.items():
        if len(split_path(key)) > depth_limit + 1:
            _logger.debug("Dropping filter %r: deeper than depth limit %d", key, depth_limit)
            continue
        kept[key] = value
    return kept


class FilterCompiler:
    """Compile a filter map into a :class:`FilterGroup` tree.

    Applies the policy's filterable allow-list and the top-level depth
    gate, then parses every expression.  Unparseable expressions are
    dropped silently.
    """

    def __init__(self, policy: AccessPolicy) -> None:
        self._policy = policy

    def compile(self, filters: Mapping[str, Any]) -> FilterGroup | None:
        if not filters:
            return None
        allowed = intersect_allowed_filters(filters, self._policy)
        allowed = restrict_depth(allowed, self._policy.depth_limit)
        return self._build(allowed, Conjunction.AND)

    def _build(self, filters: Mapping[str, Any], conjunction: Conjunction) -> FilterGroup | None:
        children: list[FilterNode] = []
        for key, value in filters.items():
            nested_conjunction = conjunction_for(key)
            if nested_conjunction is not None and isinstance(value, Mapping):
                group = self._build(value, nested_conjunction)
                if group is not None:
                    children.append(group)
                continue

            parsed = parse_operand(value)
            if parsed is None:
                _logger.debug("Ignoring filter %r: unsupported expression %r", key, value)
                continue
            operator, operand = parsed
            children.append(FilterLeaf(path=key, operator=operator, operand=operand))

        if not children:
            return None
        return FilterGroup(conjunction=conjunction, children=tuple(children))
