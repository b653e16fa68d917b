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
"""SQLAlchemy adapter: mapper-backed relation graph, query assembly and cascading writes."""

from pyrelate.data.relational.sqlalchemy.assembler import AGGREGATE_LABEL, QueryAssembler
from pyrelate.data.relational.sqlalchemy.entity import AccessListMixin, Base, require_access_lists
from pyrelate.data.relational.sqlalchemy.filter import ClauseBuilder, compile_clause
from pyrelate.data.relational.sqlalchemy.graph import MapperRelationGraph, default_graph
from pyrelate.data.relational.sqlalchemy.loading import apply_eager_loads, apply_sort
from pyrelate.data.relational.sqlalchemy.persister import CascadingPersister, is_many_operation, persister_factory
from pyrelate.data.relational.sqlalchemy.repository import Repository
from pyrelate.data.relational.sqlalchemy.specification import Specification

__all__ = [
    "AGGREGATE_LABEL",
    "AccessListMixin",
    "Base",
    "CascadingPersister",
    "ClauseBuilder",
    "MapperRelationGraph",
    "QueryAssembler",
    "Repository",
    "Specification",
    "apply_eager_loads",
    "apply_sort",
    "compile_clause",
    "default_graph",
    "is_many_operation",
    "persister_factory",
    "require_access_lists",
]
