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
"""Fixtures for the data tests: an in-memory SQLite database per test."""

from __future__ import annotations

import pytest
from blog_models import Post, Profile, Tag, User
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pyrelate.data.relational.sqlalchemy.entity import Base


@pytest.fixture
def engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine)


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def seeded(session: Session) -> Session:
    """alice, bob and carol with profiles, posts and tags."""
    news, tech, food = Tag(label="news"), Tag(label="tech"), Tag(label="food")
    alice = User(username="alice", name="Alice", hands=2, occupation="Engineer", times_captured=0)
    alice.profile = Profile(favorite_cheese="Cheddar", favorite_fruit="Apple", is_human=True)
    alice.posts = [
        Post(title="Alice's first", tags=[news, tech]),
        Post(title="Release notes", tags=[tech]),
    ]
    bob = User(username="bob", name="Bob", hands=2, occupation="Baker", times_captured=3)
    bob.profile = Profile(favorite_cheese="Gouda", is_human=True)
    bob.posts = [Post(title="Bread", tags=[food])]
    carol = User(username="carol", name="Carol", hands=1, occupation=None, times_captured=10)
    carol.profile = Profile(favorite_cheese="Cheddar", favorite_fruit="Pear", is_human=False)

    session.add_all([alice, bob, carol])
    session.commit()
    session.expunge_all()
    return session
