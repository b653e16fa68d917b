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
"""Tests for Repository binding, request state and configuration."""

import pytest
from blog_models import Unlisted, User

from pyrelate.core.config import Config
from pyrelate.data.query import QueryModifier
from pyrelate.data.relational.sqlalchemy.repository import Repository
from pyrelate.kernel.exceptions import (
    ConfigurationException,
    ResourceNotFoundException,
    SessionNotConfiguredException,
)


class UserRepository(Repository[User, int]):
    pass


class TestBinding:
    def test_entity_type_from_generic_subclass(self, session):
        assert UserRepository(session=session).model is User

    def test_model_required(self):
        with pytest.raises(TypeError):
            Repository()

    def test_unmapped_class_rejected(self):
        class Plain:
            __fillable__ = ()
            __includable__ = ()
            __filterable__ = ()

        with pytest.raises(ConfigurationException):
            Repository(Plain)

    def test_missing_access_lists_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            Repository(Unlisted)
        assert exc_info.value.code == "CONFIGURATION"
        assert "__fillable__" in exc_info.value.context["missing"]

    def test_policy_seeded_from_entity(self):
        repo = Repository(User, depth_limit=2)
        policy = repo.access_control()
        assert policy.is_fillable("username")
        assert not policy.is_fillable("not_fillable")
        assert policy.is_includable("posts")
        assert policy.depth_limit == 2

    def test_policies_are_per_instance(self):
        first, second = Repository(User), Repository(User)
        first.access_control().add_fillable("not_fillable")
        assert not second.access_control().is_fillable("not_fillable")


class TestRequestState:
    def test_input_and_key(self):
        repo = Repository(User).set_input({"id": 4, "username": "x"})
        assert repo.get_input() == {"id": 4, "username": "x"}
        assert repo.get_key_name() == "id"
        assert repo.get_input_id() == 4
        assert repo.exists()

    def test_input_without_key(self):
        repo = Repository(User).set_input({"username": "x"})
        assert repo.get_input_id() is None
        assert not repo.exists()

    def test_list_input_has_no_id(self):
        repo = Repository(User).set_input([{"id": 1}])
        assert repo.get_input_id() is None

    def test_modify_returns_shared_modifier(self):
        repo = Repository(User)
        assert isinstance(repo.modify(), QueryModifier)
        assert repo.modify() is repo.modify()


class TestSession:
    def test_reads_require_session(self):
        with pytest.raises(SessionNotConfiguredException):
            Repository(User).all()

    def test_writes_require_session(self):
        with pytest.raises(SessionNotConfiguredException):
            Repository(User).set_input({"username": "x"}).create()


class TestFind:
    def test_find_or_fail(self, seeded):
        repo = Repository(User, seeded)
        assert repo.find_or_fail(2).username == "bob"
        with pytest.raises(ResourceNotFoundException):
            repo.find_or_fail(99)


class TestFromConfig:
    def test_depth_from_config(self, session):
        config = Config({"pyrelate": {"repository": {"depth_limit": 3}}})
        repo = Repository.from_config(User, session, config)
        assert repo.access_control().depth_limit == 3

    def test_default_depth(self, session):
        repo = UserRepository.from_config(None, session, Config.defaults())
        assert repo.model is User
        assert repo.access_control().depth_limit == 1

    def test_env_override(self, session, monkeypatch):
        monkeypatch.setenv("PYRELATE_REPOSITORY_DEPTH_LIMIT", "2")
        repo = Repository.from_config(User, session, Config({}))
        assert repo.access_control().depth_limit == 2
