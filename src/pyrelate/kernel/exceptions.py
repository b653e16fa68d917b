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
"""Unified exception hierarchy for pyrelate.

All engine exceptions inherit from PyRelateException, enabling unified
error handling across modules.

Categories:
- BusinessException: Missing records and other domain rule failures
- ConfigurationException: Entity types bound without the required contract
- InfrastructureException: Storage-level failures raised by the engine itself

Failures raised by the storage layer (``sqlalchemy.exc.SQLAlchemyError``)
are never wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PyRelateException(Exception):
    """Base exception for all pyrelate errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "NOT_FOUND").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(PyRelateException):
    """Domain rule violations and business logic errors."""


class ResourceNotFoundException(BusinessException):
    """Requested resource does not exist."""

    def __init__(self, entity: str, id: object) -> None:
        super().__init__(
            f"No {entity} found for key {id!r}",
            code="NOT_FOUND",
            context={"entity": entity, "id": id},
        )


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(PyRelateException):
    """An entity type was bound without the metadata or access-list contract."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="CONFIGURATION", context=context)


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(PyRelateException):
    """Infrastructure failures detected by the engine (not by the driver)."""


class SessionNotConfiguredException(InfrastructureException):
    """A repository was used without a storage session."""
