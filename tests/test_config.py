"""Tests for bmad_common: config layering and logging setup."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from bmad_common.config import (
    ENV_CORE_PATH,
    ENV_EXPANSION_PACKS_PATH,
    ENV_LOG_LEVEL,
    BmadConfig,
)
from bmad_common.logging import ROOT_LOGGER, JSONFormatter, get_logger, setup_logging


class TestBmadConfig:

    def test_defaults(self) -> None:
        config = BmadConfig()

        assert config.content.root == "./bmad-core"
        assert config.content.expansion_packs_path == Path("expansion-packs")
        assert config.logging.level == "INFO"
        assert config.server.name == "bmad-method"

    def test_from_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bmad.toml"
        path.write_text(
            '[content]\nroot = "/opt/bmad-core"\nunknown = 1\n'
            '[logging]\nlevel = "DEBUG"\n',
            encoding="utf-8",
        )

        config = BmadConfig.from_toml(path)

        assert config.content.root_path == Path("/opt/bmad-core")
        assert config.content.expansion_packs_path == Path("/opt/expansion-packs")
        assert config.logging.level == "DEBUG"

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert BmadConfig.from_toml(tmp_path / "absent.toml") == BmadConfig()

    def test_project_config_then_environment(self, tmp_path: Path) -> None:
        (tmp_path / ".bmad").mkdir()
        (tmp_path / ".bmad" / "config.toml").write_text(
            '[content]\nroot = "/project/core"\nexpansion_packs = "/project/packs"\n',
            encoding="utf-8",
        )

        config = BmadConfig.load(tmp_path, environ={})
        assert config.content.root == "/project/core"
        assert config.content.expansion_packs_path == Path("/project/packs")

        overridden = BmadConfig.load(
            tmp_path,
            environ={
                ENV_CORE_PATH: "/env/core",
                ENV_EXPANSION_PACKS_PATH: "/env/packs",
                ENV_LOG_LEVEL: "warning",
            },
        )
        assert overridden.content.root == "/env/core"
        assert overridden.content.expansion_packs == "/env/packs"
        assert overridden.logging.level == "WARNING"

    def test_with_content_root(self) -> None:
        config = BmadConfig().with_content_root(Path("/data/core"))
        assert config.content.root_path == Path("/data/core")


class TestLogging:

    def test_setup_is_idempotent(self) -> None:
        logger = setup_logging("DEBUG")
        handlers = list(logger.handlers)

        again = setup_logging("WARNING", json_output=True)

        assert again is logger
        assert again.handlers == handlers
        assert logger.name == ROOT_LOGGER
        assert logger.level == logging.WARNING
        assert isinstance(handlers[-1].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert setup_logging("chatty").level == logging.INFO

    def test_json_formatter(self) -> None:
        record = logging.LogRecord(
            "bmad.kb.store", logging.WARNING, __file__, 1, "Failed to load %s", ("x.md",), None
        )

        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "bmad.kb.store"
        assert entry["message"] == "Failed to load x.md"
        assert entry["time"].endswith("+00:00")
        assert "exception" not in entry

    def test_modules_log_under_the_bmad_namespace(self) -> None:
        from bmad_kb import store
        from bmad_tools import dispatch

        assert get_logger("kb.store") is store.logger
        assert dispatch.logger.name == "bmad.tools"
        assert store.logger.parent is logging.getLogger(ROOT_LOGGER)
