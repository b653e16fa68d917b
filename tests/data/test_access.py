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
"""Tests for AccessPolicy allow-lists and depth limit."""

import pytest

from pyrelate.data.access import ALLOW_ALL, AccessPolicy, AllowAll, AllowSet, to_access_list


class TestAccessList:
    def test_none_is_empty_set(self):
        assert to_access_list(None) == AllowSet()

    def test_legacy_wildcard_is_allow_all(self):
        assert to_access_list(["*"]) is ALLOW_ALL

    def test_string_becomes_single_key(self):
        assert to_access_list("username") == AllowSet(("username",))

    def test_duplicates_are_collapsed_in_order(self):
        assert to_access_list(["b", "a", "b"]).keys == ("b", "a")

    def test_allow_all_contains_anything(self):
        assert "anything" in ALLOW_ALL


class TestFillable:
    def test_allow_all_allows_every_key(self):
        policy = AccessPolicy(fillable=ALLOW_ALL)
        assert policy.is_fillable("username")
        assert policy.is_fillable("whatever")

    def test_only_listed_keys_are_allowed(self):
        policy = AccessPolicy(fillable=["username"])
        assert policy.is_fillable("username")
        assert not policy.is_fillable("password")

    def test_add_then_remove(self):
        policy = AccessPolicy()
        policy.add_fillable("name")
        assert policy.is_fillable("name")
        policy.remove_fillable("name")
        assert not policy.is_fillable("name")

    def test_add_on_allow_all_narrows_to_added_key(self):
        policy = AccessPolicy(fillable=ALLOW_ALL).add_fillable("name")
        assert policy.get_fillable() == ["name"]
        assert not policy.is_fillable("username")

    def test_remove_on_allow_all_is_noop(self):
        policy = AccessPolicy(fillable=ALLOW_ALL).remove_fillable("name")
        assert isinstance(policy.fillable, AllowAll)

    def test_add_many_and_remove_many(self):
        policy = AccessPolicy().add_many_fillable(["a", "b", "c"]).remove_many_fillable(["a", "c"])
        assert policy.get_fillable() == ["b"]

    def test_get_assoc(self):
        policy = AccessPolicy(fillable=["a", "b"])
        assert policy.get_fillable(assoc=True) == {"a": True, "b": True}

    def test_get_allow_all(self):
        assert AccessPolicy(fillable=ALLOW_ALL).get_fillable() is ALLOW_ALL


class TestIncludableAndFilterable:
    def test_set_includable_allow_all(self):
        policy = AccessPolicy().set_includable(ALLOW_ALL)
        assert policy.is_includable("posts")

    def test_set_includable_replaces_list(self):
        policy = AccessPolicy(includable=["posts"]).set_includable(["profile"])
        assert policy.is_includable("profile")
        assert not policy.is_includable("posts")

    def test_filterable_add_remove(self):
        policy = AccessPolicy().add_filterable("username")
        assert policy.is_filterable("username")
        policy.remove_many_filterable(["username"])
        assert not policy.is_filterable("username")

    def test_mutators_chain(self):
        policy = AccessPolicy().add_includable("posts").add_many_filterable(["a"]).set_depth_limit(2)
        assert policy.depth_limit == 2
        assert policy.is_includable("posts")


class TestDepth:
    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            AccessPolicy(depth_limit=-1)

    @pytest.mark.parametrize(
        ("depth", "offset", "expected"),
        [
            (0, 0, []),
            (1, 0, ["posts"]),
            (1, 1, ["posts", "tags"]),
            (5, 0, ["posts", "tags", "label"]),
        ],
    )
    def test_apply_depth_restriction(self, depth, offset, expected):
        policy = AccessPolicy(depth_limit=depth)
        assert policy.apply_depth_restriction(["posts", "tags", "label"], offset) == expected


class TestFromEntity:
    def test_reads_declared_defaults(self):
        class Thing:
            __fillable__ = ["a"]
            __includable__ = ["*"]
            __filterable__ = ()

        policy = AccessPolicy.from_entity(Thing, depth_limit=3)
        assert policy.is_fillable("a")
        assert policy.is_includable("anything")
        assert not policy.is_filterable("a")
        assert policy.depth_limit == 3
