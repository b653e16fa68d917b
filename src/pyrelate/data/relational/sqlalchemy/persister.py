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
"""Recursive writes of nested input across an entity's relations.

:meth:`CascadingPersister.fill` runs one entity through these steps:

1. Drop the primary key from the input when the entity is auto-keyed.
2. Split the input into fillable relations, fillable scalar fields and
   everything else (ignored).
3. Save ``BelongsTo`` children first and copy their key onto the entity.
4. Assign the scalars and flush the entity.
5. Reconcile ``HasMany``, ``HasOne`` and ``BelongsToMany`` children.
6. Return the entity re-read from the database.

Nothing here commits or rolls back; the caller owns the transaction.
Database errors propagate unchanged and stop the cascade where it is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from pyrelate.data.access import AccessPolicy
from pyrelate.data.relations import BelongsTo, BelongsToMany, HasMany, HasOne, Relation
from pyrelate.data.relational.sqlalchemy.entity import require_access_lists
from pyrelate.data.relational.sqlalchemy.graph import MapperRelationGraph
from pyrelate.kernel.exceptions import ResourceNotFoundException

_logger = logging.getLogger(__name__)

PIVOT_KEY = "pivot"

PersisterFactory = Callable[[type], "CascadingPersister"]


def is_many_operation(input: Any) -> bool:
    """Whether *input* is a batch: a non-empty list, or a mapping keyed ``0..n-1``."""
    if isinstance(input, (list, tuple)):
        return len(input) > 0
    if isinstance(input, Mapping) and input:
        return list(input.keys()) == list(range(len(input)))
    return False


def as_items(value: Any) -> list[Any] | None:
    """Normalise a to-many payload into a list, or ``None`` if it is not one."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Mapping) and is_many_operation(value):
        return list(value.values())
    return None


def persister_factory(session: Session, graph: MapperRelationGraph) -> PersisterFactory:
    """Factory building child persisters seeded from each target's own allow-lists."""

    def factory(model: type) -> CascadingPersister:
        return CascadingPersister(model, session, graph, factory=factory)

    return factory


class CascadingPersister:
    """Writes one entity type and, through child persisters, its relations."""

    def __init__(
        self,
        model: type,
        session: Session,
        graph: MapperRelationGraph,
        policy: AccessPolicy | None = None,
        factory: PersisterFactory | None = None,
    ) -> None:
        self._entity = graph.entity(model)
        if policy is None:
            require_access_lists(model)
            policy = AccessPolicy.from_entity(model)
        self._model = model
        self._session = session
        self._graph = graph
        self._policy = policy
        self._factory = factory if factory is not None else persister_factory(session, graph)

    @property
    def model(self) -> type:
        return self._model

    @property
    def policy(self) -> AccessPolicy:
        return self._policy

    @property
    def key_name(self) -> str:
        return self._entity.primary_key

    def input_id(self, input: Any) -> Any:
        if isinstance(input, Mapping):
            return input.get(self.key_name)
        return None

    # ------------------------------------------------------------------
    # Top-level operations
    # ------------------------------------------------------------------

    def find_or_fail(self, id: Any) -> Any:
        if id is None or id == "":
            raise ResourceNotFoundException(self._entity.name, id)
        instance = self._session.get(self._model, id, populate_existing=True)
        if instance is None:
            raise ResourceNotFoundException(self._entity.name, id)
        return instance

    def create(self, input: Mapping[str, Any], assign: Mapping[str, Any] | None = None) -> Any:
        return self.fill(self._model(), input, assign)

    def read(self, input: Mapping[str, Any] | None = None, id: Any = None) -> Any:
        return self.find_or_fail(id if id is not None else self.input_id(input))

    def update(self, input: Mapping[str, Any], id: Any = None, assign: Mapping[str, Any] | None = None) -> Any:
        instance = self.read(input, id)
        return self.fill(instance, input, assign)

    def save(self, input: Mapping[str, Any], id: Any = None, assign: Mapping[str, Any] | None = None) -> Any:
        """Update when an id is given or present in *input*, otherwise create."""
        key = id if id is not None else self.input_id(input)
        if key is not None and key != "":
            return self.update(input, key, assign)
        return self.create(input, assign)

    def delete(self, input: Mapping[str, Any] | None = None, id: Any = None) -> bool:
        return self.remove(self.read(input, id))

    def remove(self, instance: Any) -> bool:
        self._session.delete(instance)
        self._session.flush()
        _logger.debug("Deleted %s %r", self._entity.name, getattr(instance, self.key_name))
        return True

    def create_many(self, inputs: Sequence[Mapping[str, Any]] | Mapping[int, Mapping[str, Any]]) -> list[Any]:
        return [self.create(item) for item in as_items(inputs) or []]

    def update_many(self, inputs: Sequence[Mapping[str, Any]] | Mapping[int, Mapping[str, Any]]) -> list[Any]:
        return [self.update(item, self.input_id(item)) for item in as_items(inputs) or []]

    def is_many_operation(self, input: Any) -> bool:
        return is_many_operation(input)

    # ------------------------------------------------------------------
    # Fill
    # ------------------------------------------------------------------

    def fill(self, instance: Any, input: Mapping[str, Any] | None, assign: Mapping[str, Any] | None = None) -> Any:
        """Write *input* onto *instance* and cascade into its relations.

        *assign* holds attributes set by the engine itself (a parent's
        foreign key) and bypasses the fillable list.
        """
        data = dict(input or {})
        if self._entity.auto_keyed:
            data.pop(self.key_name, None)

        before_save: list[tuple[Relation, Any]] = []
        after_save: list[tuple[Relation, Any]] = []
        scalars: dict[str, Any] = {}
        relations = self._graph.relations(self._model)

        for key, value in data.items():
            if not self._policy.is_fillable(key):
                _logger.debug("Ignoring %s.%s: not fillable", self._entity.name, key)
                continue
            relation = relations.get(key)
            if relation is not None:
                (before_save if relation.is_before_save else after_save).append((relation, value))
            elif key in self._entity.fields or self._graph.has_write_mutator(self._model, key):
                scalars[key] = value
            else:
                _logger.debug("Ignoring %s.%s: unknown field", self._entity.name, key)

        for relation, value in before_save:
            self._cascade(instance, relation, value)

        for key, value in scalars.items():
            setattr(instance, key, value)
        for key, value in (assign or {}).items():
            setattr(instance, key, value)
        self._session.add(instance)
        self._session.flush()

        for relation, value in after_save:
            self._cascade(instance, relation, value)
        self._session.flush()

        return self._reread(instance)

    def _reread(self, instance: Any) -> Any:
        key = getattr(instance, self.key_name)
        self._session.expire(instance)
        return self.find_or_fail(key)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def _cascade(self, instance: Any, relation: Relation, value: Any) -> None:
        _logger.debug("Cascading %s.%s (%s)", self._entity.name, relation.name, relation.kind.value)
        if isinstance(relation, BelongsTo):
            self._save_belongs_to(instance, relation, value)
        elif isinstance(relation, HasMany):
            self._save_has_many(instance, relation, value)
        elif isinstance(relation, HasOne):
            self._save_has_one(instance, relation, value)
        elif isinstance(relation, BelongsToMany):
            self._save_belongs_to_many(instance, relation, value)

    def _save_belongs_to(self, instance: Any, relation: BelongsTo, value: Any) -> None:
        if not isinstance(value, Mapping):
            _logger.debug("Ignoring %s.%s: expected a mapping", self._entity.name, relation.name)
            return
        owner = self._factory(relation.target).save(value)
        setattr(instance, relation.foreign_key, getattr(owner, relation.owner_key))

    def _save_has_many(self, instance: Any, relation: HasMany, value: Any) -> None:
        items = as_items(value)
        if items is None:
            _logger.debug("Ignoring %s.%s: expected a list", self._entity.name, relation.name)
            return
        child = self._factory(relation.target)
        target = relation.target
        parent_key = getattr(instance, relation.local_key)
        child_pk = getattr(target, child.key_name)

        current_ids = self._session.scalars(
            select(child_pk).where(getattr(target, relation.foreign_key) == parent_key)
        ).all()
        kept = {str(child.input_id(item)) for item in items if isinstance(item, Mapping) and child.input_id(item)}
        removed = [child_id for child_id in current_ids if str(child_id) not in kept]
        if removed:
            _logger.debug("Deleting %s ids %r omitted from %s", target.__name__, removed, relation.name)
            for orphan in self._session.scalars(select(target).where(child_pk.in_(removed))):
                self._session.delete(orphan)
            self._session.flush()

        for item in items:
            if isinstance(item, Mapping):
                child.save(item, assign={relation.foreign_key: parent_key})

    def _save_has_one(self, instance: Any, relation: HasOne, value: Any) -> None:
        if not isinstance(value, Mapping):
            _logger.debug("Ignoring %s.%s: expected a mapping", self._entity.name, relation.name)
            return
        child = self._factory(relation.target)
        target = relation.target
        parent_key = getattr(instance, relation.local_key)

        current = self._session.scalars(
            select(target).where(getattr(target, relation.foreign_key) == parent_key)
        ).first()
        input_id = child.input_id(value)
        if current is not None and (input_id is None or str(getattr(current, child.key_name)) != str(input_id)):
            _logger.debug("Replacing %s for %s.%s", target.__name__, self._entity.name, relation.name)
            self._session.delete(current)
            self._session.flush()

        child.save(value, assign={relation.foreign_key: parent_key})

    def _save_belongs_to_many(self, instance: Any, relation: BelongsToMany, value: Any) -> None:
        items = as_items(value)
        if items is None:
            _logger.debug("Ignoring %s.%s: expected a list", self._entity.name, relation.name)
            return
        child = self._factory(relation.target)
        members: dict[Any, dict[str, Any] | None] = {}
        for item in items:
            if not isinstance(item, Mapping):
                continue
            related = child.save(item)
            pivot = item.get(PIVOT_KEY)
            members[getattr(related, relation.related_key)] = (
                {k: v for k, v in pivot.items() if k in relation.pivot_columns}
                if isinstance(pivot, Mapping)
                else None
            )
        self.sync(instance, relation, members)

    def sync(self, instance: Any, relation: BelongsToMany, members: Mapping[Any, Mapping[str, Any] | None]) -> None:
        """Make the pivot rows for *instance* exactly *members*.

        Rows for ids no longer present are detached, retained ids get their
        pivot columns updated when data is given, new ids are attached.
        """
        pivot = self._graph.pivot_table(relation)
        parent_column = pivot.c[relation.foreign_pivot_key]
        related_column = pivot.c[relation.related_pivot_key]
        parent_id = getattr(instance, relation.parent_key)

        current = {
            str(related_id): related_id
            for related_id in self._session.scalars(select(related_column).where(parent_column == parent_id))
        }
        wanted = {str(related_id): (related_id, data) for related_id, data in members.items()}

        detach = [related_id for key, related_id in current.items() if key not in wanted]
        if detach:
            self._session.execute(delete(pivot).where(parent_column == parent_id, related_column.in_(detach)))

        for key, (related_id, data) in wanted.items():
            if key in current:
                if data:
                    self._session.execute(
                        update(pivot)
                        .where(parent_column == parent_id, related_column == current[key])
                        .values(**data)
                    )
            else:
                values = {parent_column.key: parent_id, related_column.key: related_id}
                values.update(data or {})
                self._session.execute(insert(pivot).values(**values))
        _logger.debug(
            "Synced %s.%s: %d detached, %d attached",
            self._entity.name,
            relation.name,
            len(detach),
            len([k for k in wanted if k not in current]),
        )
