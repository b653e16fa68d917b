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
"""Resolve dot-paths over the relation graph for eager loading and sorting.

Both operations walk ``posts.tags.label``-style paths hop by hop through a
:class:`~pyrelate.data.relations.RelationGraph`, honouring the policy's
includable / filterable allow-lists and its relation depth limit.  The
output is storage-agnostic; the SQLAlchemy adapter turns it into loader
options and aliased joins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pyrelate.data.access import AccessPolicy
from pyrelate.data.relations import Relation, RelationGraph, join_path, split_path

_logger = logging.getLogger(__name__)

ASC = "asc"
DESC = "desc"

EagerLoadConstraint = Callable[[type], Any]


@dataclass(frozen=True)
class EagerLoad:
    """A validated eager-load path and the relations it traverses.

    ``constraint``, when callable, receives the target entity type of the
    last hop and returns an extra criterion for the loaded rows.
    """

    path: str
    relations: tuple[Relation, ...]
    constraint: Any = None


@dataclass(frozen=True)
class SortPlan:
    """One ORDER BY term: walk ``hops`` then order by ``column``."""

    column: str
    direction: str = ASC
    hops: tuple[Relation, ...] = ()

    @property
    def is_direct(self) -> bool:
        return not self.hops


class RelationPathResolver:
    """Validate eager-load and sort paths against a graph and a policy."""

    def __init__(self, graph: RelationGraph, policy: AccessPolicy) -> None:
        self._graph = graph
        self._policy = policy

    def walk(self, model: type, segments: Sequence[str]) -> list[Relation]:
        """Resolve *segments* hop by hop, stopping at the first unknown one."""
        relations: list[Relation] = []
        current = model
        for segment in segments:
            relation = self._graph.resolve(current, segment)
            if relation is None:
                break
            relations.append(relation)
            current = relation.target
        return relations

    # ------------------------------------------------------------------
    # Eager loads
    # ------------------------------------------------------------------

    def resolve_eager_loads(
        self,
        model: type,
        eager_loads: Sequence[str] | Mapping[Any, Any] | None,
    ) -> list[EagerLoad]:
        """Return the safe subset of *eager_loads*, keyed by path.

        Accepts a list of paths or a mapping of ``path -> constraint``;
        integer keys in a mapping mark unconstrained entries whose value is
        the path.  Each path is cut to ``depth_limit`` segments, then to
        its longest prefix of real relations.  Paths whose first segment is
        not includable or not a relation are dropped.  A constraint stays with
        its path however far the path was cut.
        """
        if not eager_loads:
            return []

        if isinstance(eager_loads, Mapping):
            entries = list(eager_loads.items())
        else:
            entries = list(enumerate(eager_loads))

        resolved: dict[str, EagerLoad] = {}
        for key, value in entries:
            if isinstance(key, int):
                path, constraint = value, None
            else:
                path, constraint = key, value
            if not isinstance(path, str) or not path:
                continue

            segments = self._policy.apply_depth_restriction(split_path(path))
            if not segments or not self._policy.is_includable(segments[0]):
                _logger.debug("Dropping eager load %r: not includable", path)
                continue

            relations = self.walk(model, segments)
            if not relations:
                _logger.debug("Dropping eager load %r: %r is not a relation", path, segments[0])
                continue

            safe_path = join_path([r.name for r in relations])
            if constraint is None and safe_path in resolved:
                continue
            resolved[safe_path] = EagerLoad(path=safe_path, relations=tuple(relations), constraint=constraint)
        return list(resolved.values())

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def resolve_sort(self, model: type, sort: Mapping[str, str] | None) -> list[SortPlan]:
        """Turn ``{path: direction}`` into sort plans, dropping invalid entries.

        Direction is ``asc`` or ``desc`` in any case.  A path with more
        relation hops than the depth limit, an unresolvable hop, an unknown
        terminal column or a non-filterable leading segment is skipped.
        """
        if not sort:
            return []

        plans: list[SortPlan] = []
        for path, direction in sort.items():
            if not isinstance(direction, str) or direction.lower() not in (ASC, DESC):
                _logger.debug("Dropping sort %r: bad direction %r", path, direction)
                continue
            segments = split_path(path)
            if not self._policy.is_filterable(segments[0]):
                _logger.debug("Dropping sort %r: not filterable", path)
                continue

            hop_names, column = segments[:-1], segments[-1]
            if len(hop_names) > self._policy.depth_limit:
                _logger.debug("Dropping sort %r: deeper than depth limit", path)
                continue

            hops = self.walk(model, hop_names)
            if len(hops) != len(hop_names):
                _logger.debug("Dropping sort %r: unknown relation", path)
                continue

            target = hops[-1].target if hops else model
            if column not in self._graph.fields(target):
                _logger.debug("Dropping sort %r: unknown column %r", path, column)
                continue

            plans.append(SortPlan(column=column, direction=direction.lower(), hops=tuple(hops)))
        return plans
