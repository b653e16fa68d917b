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
"""Request-scoped repository binding one entity type to one ``Session``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast, get_args, get_origin

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from pyrelate.core.config import Config
from pyrelate.data.access import AccessPolicy
from pyrelate.data.page import Page
from pyrelate.data.properties import RepositoryProperties
from pyrelate.data.query import QueryModifier
from pyrelate.data.relational.sqlalchemy.assembler import AGGREGATE_LABEL, QueryAssembler
from pyrelate.data.relational.sqlalchemy.entity import require_access_lists
from pyrelate.data.relational.sqlalchemy.graph import MapperRelationGraph, default_graph
from pyrelate.data.relational.sqlalchemy.persister import (
    CascadingPersister,
    PersisterFactory,
    as_items,
    is_many_operation,
    persister_factory,
)
from pyrelate.kernel.exceptions import ResourceNotFoundException, SessionNotConfiguredException

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(Generic[T, ID]):
    """Reads and cascading writes for one entity type, driven by flat input.

    A repository holds the request's input payload, an
    :class:`~pyrelate.data.access.AccessPolicy` seeded from the entity's
    declared allow-lists, and a :class:`~pyrelate.data.query.QueryModifier`
    for filters, sort, grouping, aggregates and eager loads.

    Type Parameters:
        T: The entity type (a mapped class declaring its allow-lists).
        ID: The primary key type.

    Usage::

        class UserRepository(Repository[User, int]):
            pass

        repo = UserRepository(session=session, depth_limit=1)
        repo.modify().set_filters({"posts.title": "~release"})
        users = repo.all()

        repo.set_input({"username": "bob", "posts": [{"title": "Hi"}]})
        bob = repo.save()
    """

    _entity_type: type | None = None
    _id_type: type | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            origin = get_origin(base)
            if origin is Repository:
                args = get_args(base)
                if args and not isinstance(args[0], TypeVar):
                    cls._entity_type = args[0]
                if len(args) > 1 and not isinstance(args[1], TypeVar):
                    cls._id_type = args[1]
                break

    def __init__(
        self,
        model: type[T] | None = None,
        session: Session | None = None,
        *,
        depth_limit: int = 0,
        graph: MapperRelationGraph | None = None,
        factory: PersisterFactory | None = None,
    ) -> None:
        resolved = model or getattr(type(self), "_entity_type", None)
        if resolved is None:
            raise TypeError(
                f"{type(self).__name__} requires either Repository[Entity, ID] declaration or explicit model argument"
            )
        self._model: type[T] = cast(type[T], resolved)
        self._graph = graph if graph is not None else default_graph
        self._entity = self._graph.entity(self._model)
        require_access_lists(self._model)

        self._session = session
        self._factory = factory
        self._policy = AccessPolicy.from_entity(self._model, depth_limit)
        self._modifier = QueryModifier()
        self._input: dict[str, Any] = {}

    @classmethod
    def from_config(
        cls, model: type[T] | None, session: Session | None, config: Config, **kwargs: Any
    ) -> Repository[T, ID]:
        """Build a repository whose depth limit comes from ``pyrelate.repository``."""
        properties = config.bind(RepositoryProperties)
        return cls(model, session, depth_limit=properties.depth_limit, **kwargs)

    # ------------------------------------------------------------------
    # Request state
    # ------------------------------------------------------------------

    @property
    def model(self) -> type[T]:
        return self._model

    def set_input(self, input: Mapping[str, Any] | list[Any]) -> Repository[T, ID]:
        self._input = input if isinstance(input, list) else dict(input)
        return self

    def get_input(self) -> Any:
        return self._input

    def access_control(self) -> AccessPolicy:
        return self._policy

    def modify(self) -> QueryModifier:
        return self._modifier

    def get_key_name(self) -> str:
        return self._entity.primary_key

    def get_input_id(self) -> Any:
        if isinstance(self._input, Mapping):
            return self._input.get(self.get_key_name())
        return None

    def exists(self) -> bool:
        """Whether the current input carries a primary key."""
        return self.get_input_id() not in (None, "")

    def _require_session(self) -> Session:
        if self._session is None:
            raise SessionNotConfiguredException(
                f"No Session configured for {type(self).__name__}",
                context={"entity": self._entity.name},
            )
        return self._session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self) -> Select[Any]:
        """The assembled read statement for the current modifier state."""
        return QueryAssembler(self._graph, self._policy).assemble(self._model, self._modifier)

    def _fetch(self, stmt: Select[Any]) -> list[T]:
        result = self._require_session().execute(stmt)
        if AGGREGATE_LABEL not in result.keys():
            return list(result.scalars().all())
        entities = []
        for row in result:
            entity = row[0]
            entity.aggregate = row._mapping[AGGREGATE_LABEL]
            entities.append(entity)
        return entities

    def find(self, id: ID) -> T | None:
        stmt = self.query().where(getattr(self._model, self.get_key_name()) == id).limit(1)
        found = self._fetch(stmt)
        return found[0] if found else None

    def find_or_fail(self, id: ID) -> T:
        entity = self.find(id)
        if entity is None:
            raise ResourceNotFoundException(self._entity.name, id)
        return entity

    def all(self) -> list[T]:
        return self._fetch(self.query())

    def count(self) -> int:
        stmt = self.query().order_by(None)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        return self._require_session().execute(count_stmt).scalar_one()

    def has_any(self) -> bool:
        return self.count() > 0

    def random(self) -> T | None:
        found = self._fetch(self.query().order_by(None).order_by(func.random()).limit(1))
        return found[0] if found else None

    def paginate(self, per_page: int, page: int = 1) -> Page[T]:
        page = max(page, 1)
        total = self.count()
        items = self._fetch(self.query().offset((page - 1) * per_page).limit(per_page))
        return Page(items=items, total=total, page=page, per_page=per_page)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def persister(self) -> CascadingPersister:
        session = self._require_session()
        factory = self._factory if self._factory is not None else persister_factory(session, self._graph)
        return CascadingPersister(self._model, session, self._graph, policy=self._policy, factory=factory)

    def create(self) -> T:
        return self.persister().create(self._input)

    def create_many(self) -> list[T]:
        return self.persister().create_many(self._input)

    def read(self, id: ID | None = None) -> T:
        """Fetch the record named by *id* (or the input's key) through :meth:`query`.

        Modifiers, filters and eager loads on this repository scope the
        lookup, so a record they exclude is reported as not found.
        """
        return self.find_or_fail(id if id is not None else self.get_input_id())

    def update(self, id: ID | None = None) -> T:
        instance = self.read(id)
        return self.persister().fill(instance, self._input)

    def update_many(self) -> list[T]:
        persister = self.persister()
        return [
            persister.fill(self.find_or_fail(persister.input_id(item)), item)
            for item in as_items(self._input) or []
        ]

    def save(self, id: ID | None = None) -> T:
        """Update when an id is given or present in the input, otherwise create."""
        key = id if id is not None else self.get_input_id()
        if key is not None and key != "":
            return self.update(key)
        return self.create()

    def delete(self, id: ID | None = None) -> bool:
        instance = self.read(id)
        return self.persister().remove(instance)

    def is_many_operation(self) -> bool:
        return is_many_operation(self._input)
