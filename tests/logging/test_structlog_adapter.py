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
"""Tests for StructlogAdapter and engine log routing."""

import logging
from typing import Any

from pyrelate.core.config import Config
from pyrelate.logging import configure_logging
from pyrelate.logging.port import LoggingPort
from pyrelate.logging.structlog_adapter import StructlogAdapter


class TestLoggingPort:
    def test_adapter_implements_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)

    def test_non_conforming_class_is_not_instance(self):
        class Incomplete:
            def get_logger(self, name: str) -> Any:
                pass

        assert not isinstance(Incomplete(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"

    def test_reads_format_and_levels(self):
        config = Config(
            {"pyrelate": {"logging": {"format": "JSON", "level": {"root": "warning", "pyrelate.data": "debug"}}}}
        )
        adapter = StructlogAdapter()
        adapter.configure(config)
        assert adapter._format == "json"
        assert adapter._root_level == "WARNING"
        assert adapter._module_levels == {"pyrelate.data": "DEBUG"}
        assert logging.getLogger("pyrelate.data").level == logging.DEBUG

    def test_configure_logging_from_defaults(self):
        adapter = configure_logging(Config.defaults())
        assert adapter._root_level == "INFO"
        assert logging.getLogger().level == logging.INFO


class TestStructlogAdapterLoggers:
    def test_get_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("pyrelate.test")
        assert callable(getattr(logger, "info", None))

    def test_set_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        adapter.set_level("pyrelate.data.filter", "DEBUG")
        assert logging.getLogger("pyrelate.data.filter").level == logging.DEBUG

    def test_engine_messages_are_rendered(self, capsys):
        adapter = StructlogAdapter()
        adapter.configure(Config({"pyrelate": {"logging": {"format": "json", "level": {"root": "DEBUG"}}}}))
        logging.getLogger("pyrelate.data.filter").debug("Dropping filter %r", "ghost")
        out = capsys.readouterr().out
        assert "Dropping filter 'ghost'" in out
        assert '"logger": "pyrelate.data.filter"' in out
