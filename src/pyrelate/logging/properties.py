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
"""Logging configuration properties (``pyrelate.logging``)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator

from pyrelate.core.config import config_properties


@config_properties(prefix="pyrelate.logging")
class LoggingProperties(BaseModel):
    """Output format and per-logger levels; the ``root`` entry sets the root level."""

    format: Literal["console", "json"] = "console"
    level: dict[str, str] = {"root": "INFO"}

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("level", mode="after")
    @classmethod
    def _upper_levels(cls, value: dict[str, str]) -> dict[str, str]:
        return {name: level.upper() for name, level in value.items()}
