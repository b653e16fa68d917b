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
"""pyrelate data — access policies, filter grammar, relation paths and paging.

Storage-agnostic pieces live here; the SQLAlchemy adapter is in
:mod:`pyrelate.data.relational`.
"""

from pyrelate.data.access import ALLOW_ALL, AccessList, AccessPolicy, AllowAll, AllowSet
from pyrelate.data.filter import (
    Conjunction,
    FilterCompiler,
    FilterGroup,
    FilterLeaf,
    Operator,
    intersect_allowed_filters,
    parse_operand,
    restrict_depth,
)
from pyrelate.data.page import Page
from pyrelate.data.paths import EagerLoad, RelationPathResolver, SortPlan
from pyrelate.data.properties import RepositoryProperties
from pyrelate.data.query import QueryModifier
from pyrelate.data.relations import (
    BelongsTo,
    BelongsToMany,
    EntityType,
    HasMany,
    HasOne,
    ModelMetadataProvider,
    Relation,
    RelationGraph,
    RelationKind,
    RelationMetadataProvider,
)
from pyrelate.data.specification import Specification

__all__ = [
    # Access
    "ALLOW_ALL",
    "AccessList",
    "AccessPolicy",
    "AllowAll",
    "AllowSet",
    # Filters
    "Conjunction",
    "FilterCompiler",
    "FilterGroup",
    "FilterLeaf",
    "Operator",
    "intersect_allowed_filters",
    "parse_operand",
    "restrict_depth",
    # Paths
    "EagerLoad",
    "RelationPathResolver",
    "SortPlan",
    # Relations
    "BelongsTo",
    "BelongsToMany",
    "EntityType",
    "HasMany",
    "HasOne",
    "ModelMetadataProvider",
    "Relation",
    "RelationGraph",
    "RelationKind",
    "RelationMetadataProvider",
    # Query state
    "Page",
    "QueryModifier",
    "RepositoryProperties",
    "Specification",
]
