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
"""Tests for the pyrelate exception hierarchy."""

from pyrelate.kernel.exceptions import (
    BusinessException,
    ConfigurationException,
    InfrastructureException,
    PyRelateException,
    ResourceNotFoundException,
    SessionNotConfiguredException,
)


class TestPyRelateException:
    def test_basic_creation(self):
        exc = PyRelateException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = PyRelateException("bad", code="X", context={"entity": "User"})
        assert exc.code == "X"
        assert exc.context["entity"] == "User"

    def test_context_defaults_to_empty_dict(self):
        exc = PyRelateException("test")
        exc.context["key"] = "value"
        assert PyRelateException("test2").context == {}


class TestResourceNotFound:
    def test_message_code_and_context(self):
        exc = ResourceNotFoundException("User", 7)
        assert str(exc) == "No User found for key 7"
        assert exc.code == "NOT_FOUND"
        assert exc.context == {"entity": "User", "id": 7}


class TestExceptionHierarchy:
    def test_not_found_is_business(self):
        assert issubclass(ResourceNotFoundException, BusinessException)

    def test_configuration_is_pyrelate(self):
        assert issubclass(ConfigurationException, PyRelateException)
        assert ConfigurationException("x").code == "CONFIGURATION"

    def test_session_not_configured_is_infrastructure(self):
        assert issubclass(SessionNotConfiguredException, InfrastructureException)

    def test_catch_all(self):
        for exc in [
            ResourceNotFoundException("User", 1),
            ConfigurationException("bad model"),
            SessionNotConfiguredException("no session"),
        ]:
            try:
                raise exc
            except PyRelateException as caught:
                assert caught is exc
