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
"""Tests for QueryAssembler: grouping, aggregates, modifiers and paging."""

import pytest
from blog_models import Post, User

from pyrelate.data.access import AccessPolicy
from pyrelate.data.query import QueryModifier
from pyrelate.data.relational.sqlalchemy.assembler import QueryAssembler, parse_group_by
from pyrelate.data.relational.sqlalchemy.graph import default_graph
from pyrelate.data.relational.sqlalchemy.repository import Repository
from pyrelate.data.relational.sqlalchemy.specification import Specification


@pytest.fixture
def repo(seeded):
    return Repository(User, seeded, depth_limit=1)


class TestParseGroupBy:
    def test_comma_joined_string(self):
        assert parse_group_by("hands, occupation") == ["hands", "occupation"]

    def test_list_with_comma_joined_entry(self):
        assert parse_group_by(["hands,occupation", "name"]) == ["hands", "occupation", "name"]

    def test_empty(self):
        assert parse_group_by(None) == []
        assert parse_group_by("") == []


class TestGroupByAndAggregate:
    def test_count_per_group(self, repo):
        repo.modify().set_group_by("hands").set_aggregate({"count": "id"})
        counts = {user.hands: user.aggregate for user in repo.all()}
        assert counts == {1: 1, 2: 2}

    def test_unknown_group_column_dropped(self, repo):
        repo.modify().set_group_by("ghost, hands").set_aggregate({"COUNT": "id"})
        assert sorted(user.aggregate for user in repo.all()) == [1, 2]

    def test_max_without_group(self, repo):
        repo.modify().set_aggregate({"max": "times_captured"})
        [user] = repo.all()
        assert user.aggregate == 10

    def test_only_first_aggregate_applies(self, repo):
        repo.modify().set_aggregate({"sum": "times_captured", "min": "times_captured"})
        [user] = repo.all()
        assert user.aggregate == 13

    @pytest.mark.parametrize("aggregate", [{"median": "hands"}, {"count": "ghost"}])
    def test_invalid_aggregate_skipped(self, repo, aggregate):
        repo.modify().set_aggregate(aggregate)
        users = repo.all()
        assert len(users) == 3
        assert not hasattr(users[0], "aggregate")

    def test_group_without_aggregate(self, repo):
        repo.modify().set_group_by(["hands"])
        assert len(repo.all()) == 2


class TestModifiers:
    def test_callable_modifier(self, repo):
        repo.modify().add(lambda stmt: stmt.where(User.hands == 1))
        assert [u.username for u in repo.all()] == ["carol"]

    def test_specification_modifier(self, repo):
        two_hands = Specification.where(lambda root: root.hands == 2)
        named_bob = Specification.where(User.username == "bob")
        repo.modify().add(two_hands & ~named_bob)
        assert [u.username for u in repo.all()] == ["alice"]

    def test_modifiers_compose_with_filters(self, repo):
        repo.modify().set_filters({"username": "^b", "or": {"username": "^c"}}).add(
            lambda stmt: stmt.where(User.hands == 2)
        )
        assert [u.username for u in repo.all()] == ["bob"]

    def test_set_replaces_modifiers(self, repo):
        repo.modify().add(lambda stmt: stmt.where(User.hands == 1)).set([])
        assert len(repo.all()) == 3


class TestAssembler:
    def test_filter_is_one_parenthesised_group(self):
        policy = AccessPolicy(filterable=["username"])
        modifier = QueryModifier().set_filters({"username": "=a", "or": {"username": "=b"}})
        modifier.add(lambda stmt: stmt.where(User.hands == 2))
        sql = str(QueryAssembler(default_graph, policy).assemble(User, modifier))
        assert "WHERE (users.username = :username_1 OR users.username = :username_2) AND users.hands = :hands_1" in sql

    def test_aggregate_label(self):
        policy = AccessPolicy()
        modifier = QueryModifier().set_aggregate({"avg": "id"})
        stmt = QueryAssembler(default_graph, policy).assemble(Post, modifier)
        assert "aggregate" in stmt.selected_columns.keys()


class TestReads:
    def test_count_and_has_any(self, repo):
        assert repo.count() == 3
        assert repo.has_any()
        repo.modify().set_filters({"username": "=nobody"})
        assert repo.count() == 0
        assert not repo.has_any()

    def test_paginate(self, repo):
        repo.modify().set_sort_order({"username": "asc"})
        page = repo.paginate(per_page=2, page=2)
        assert [u.username for u in page.items] == ["carol"]
        assert page.total == 3
        assert page.last_page == 2
        assert not page.has_more_pages
        assert page.first_item == 3

    def test_random_respects_filters(self, repo):
        repo.modify().set_filters({"username": "=bob"})
        assert repo.random().username == "bob"

    def test_find_respects_filters(self, repo):
        alice = repo.find(1)
        repo.modify().set_filters({"username": "=bob"})
        assert repo.find(alice.id) is None
