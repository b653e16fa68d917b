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
"""Dropped input is reported on the engine's DEBUG loggers."""

import logging

from blog_models import User

from pyrelate.data.relational.sqlalchemy.repository import Repository


class TestDebugLogging:
    def test_dropped_filter_is_logged(self, seeded, caplog):
        caplog.set_level(logging.DEBUG, logger="pyrelate")
        repo = Repository(User, seeded, depth_limit=1)
        repo.modify().set_filters({"posts.tags.label": "=news"})
        repo.all()
        assert any("deeper than depth limit" in r.getMessage() for r in caplog.records)

    def test_ignored_input_key_is_logged(self, session, caplog):
        caplog.set_level(logging.DEBUG, logger="pyrelate")
        Repository(User, session).set_input({"username": "x", "not_fillable": "y"}).create()
        assert any("not_fillable" in r.getMessage() and "not fillable" in r.getMessage() for r in caplog.records)
