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
"""Engine configuration: YAML/TOML files, ``PYRELATE_*`` overrides, typed properties.

Sources merge in this order (later wins):

1. ``pyrelate-defaults.yaml`` bundled with the package
2. the given file (``.yaml``/``.yml`` or ``.toml``)
3. ``<stem>-<profile><suffix>`` overlays for each active profile

Environment variables override single keys at read time:
``pyrelate.repository.depth_limit`` is read from
``PYRELATE_REPOSITORY_DEPTH_LIMIT`` when that is set.

Typed sections are pydantic models marked with :func:`config_properties`
and read with :meth:`Config.bind`.
"""

from __future__ import annotations

import importlib.resources
import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar, get_origin

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from pyrelate.kernel.exceptions import ConfigurationException

M = TypeVar("M", bound=BaseModel)

ENV_PREFIX = "PYRELATE_"
DEFAULTS_RESOURCE = "pyrelate-defaults.yaml"

_PREFIX_ATTR = "__pyrelate_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[M]], type[M]]:
    """Bind a pydantic model to the configuration section at *prefix*.

    Usage::

        @config_properties(prefix="pyrelate.repository")
        class RepositoryProperties(BaseModel):
            depth_limit: int = Field(default=1, ge=0)
    """

    def decorator(cls: type[M]) -> type[M]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """Environment variable consulted for the dot-notation *key*."""
    return ENV_PREFIX + key.removeprefix("pyrelate.").upper().replace(".", "_").replace("-", "_")


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


class Config:
    """Nested configuration read with dot-notation keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this configuration, in merge order."""
        return list(self._sources)

    @classmethod
    def defaults(cls) -> Config:
        """Configuration holding only the bundled defaults."""
        return cls._from_layers([(DEFAULTS_RESOURCE, cls._bundled_defaults())])

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* and its profile overlays on top of the bundled defaults.

        A missing *path* is not an error; the result then holds only the
        defaults.
        """
        path = Path(path)
        layers: list[tuple[str, dict[str, Any]]] = []
        if load_defaults:
            layers.append((DEFAULTS_RESOURCE, cls._bundled_defaults()))
        if path.exists():
            layers.append((str(path), _read(path)))
            for profile in active_profiles or []:
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.exists():
                    layers.append((str(overlay), _read(overlay)))
        return cls._from_layers(layers)

    @classmethod
    def _from_layers(cls, layers: list[tuple[str, dict[str, Any]]]) -> Config:
        data: dict[str, Any] = {}
        for _, layer in layers:
            data = _merge(data, layer)
        config = cls(data)
        config._sources = [source for source, _ in layers]
        return config

    @staticmethod
    def _bundled_defaults() -> dict[str, Any]:
        resource = importlib.resources.files("pyrelate.resources").joinpath(DEFAULTS_RESOURCE)
        return yaml.safe_load(resource.read_text(encoding="utf-8")) or {}

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return None
            current = current[part]
        return current

    def get(self, key: str, default: Any = None) -> Any:
        """Value at *key*, preferring its ``PYRELATE_*`` environment override."""
        override = os.environ.get(env_key(key))
        if override is not None:
            return override
        value = self._lookup(key)
        return default if value is None else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """The mapping stored under *prefix*, or an empty dict."""
        section = self._lookup(prefix)
        return dict(section) if isinstance(section, Mapping) else {}

    def bind(self, properties_cls: type[M]) -> M:
        """Validate the section named by ``@config_properties`` into *properties_cls*.

        Non-mapping fields honour their ``PYRELATE_*`` environment override.

        Raises:
            ConfigurationException: If the class is not decorated or the
                section fails validation.
        """
        prefix = getattr(properties_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(
                f"{properties_cls.__name__} is not decorated with @config_properties",
                context={"properties": properties_cls.__name__},
            )

        section = self.get_section(prefix)
        for name, field in properties_cls.model_fields.items():
            if get_origin(field.annotation) is dict:
                continue
            override = os.environ.get(env_key(f"{prefix}.{name}"))
            if override is not None:
                section[name] = override

        try:
            return properties_cls.model_validate(section)
        except ValidationError as exc:
            raise ConfigurationException(
                f"Invalid configuration under '{prefix}': {exc.error_count()} error(s)",
                context={"prefix": prefix, "errors": exc.errors(include_url=False)},
            ) from exc
