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
"""Declarative base and access-list defaults for pyrelate entities."""

from __future__ import annotations

from types import MappingProxyType

from sqlalchemy.orm import DeclarativeBase

from pyrelate.kernel.exceptions import ConfigurationException

ACCESS_LIST_ATTRIBUTES = ("__fillable__", "__includable__", "__filterable__")


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for pyrelate entities."""


class AccessListMixin:
    """Declares an entity's default allow-lists.

    Each list is a sequence of keys or :data:`~pyrelate.data.access.ALLOW_ALL`.
    ``__relation_aliases__`` maps extra names (for example a singular form)
    to canonical relation names for path resolution.
    """

    __fillable__ = ()
    __includable__ = ()
    __filterable__ = ()
    __relation_aliases__ = MappingProxyType({})


def require_access_lists(model: type) -> None:
    """Raise :class:`ConfigurationException` unless *model* declares its allow-lists."""
    missing = [name for name in ACCESS_LIST_ATTRIBUTES if not hasattr(model, name)]
    if missing:
        raise ConfigurationException(
            f"{model.__name__} does not declare {', '.join(missing)}",
            context={"entity": model.__name__, "missing": missing},
        )
