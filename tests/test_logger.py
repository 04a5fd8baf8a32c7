"""
Tests for the logging setup.
"""

import logging

from computex import constants
from computex.constants import EnvSetting
from computex.logger import LogManager, SettlementHighlighter, TerminalSafeFormatter, get_logger


class TestLogging:

    def test_singleton(self):
        assert LogManager() is LogManager()

    def test_configured_on_first_use(self):
        logger = get_logger("computex.swap.settlement")
        assert logger.name == "computex.swap.settlement"
        assert LogManager().configured

    def test_formatter_strips_control_characters(self):
        formatter = TerminalSafeFormatter("%(message)s")
        record = logging.LogRecord("computex", logging.INFO, __file__, 1, "tx\x1b[31m ok\x07", None, None)
        assert formatter.format(record) == "tx ok"

    def test_highlighter_has_stage_patterns(self):
        assert any("reconciled" in pattern for pattern in SettlementHighlighter.highlights)


class TestEnvSetting:

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("COMPUTEX_TEST_SETTING", raising=False)
        setting = EnvSetting("COMPUTEX_TEST_SETTING", "fallback")
        assert setting == "fallback"
        assert setting.fallback == "fallback"

    def test_environment_wins(self, monkeypatch):
        monkeypatch.setenv("COMPUTEX_TEST_SETTING", " DEBUG ")
        assert EnvSetting("COMPUTEX_TEST_SETTING", "INFO") == "DEBUG"

    def test_flags(self, monkeypatch):
        monkeypatch.setenv("COMPUTEX_TEST_FLAG", "yes")
        assert EnvSetting("COMPUTEX_TEST_FLAG", "false").enabled() is True
        monkeypatch.setenv("COMPUTEX_TEST_FLAG", "garbage")
        assert EnvSetting("COMPUTEX_TEST_FLAG", "false").enabled() is False
        assert EnvSetting("COMPUTEX_TEST_FLAG", "true").enabled() is True

    def test_log_settings_loaded(self):
        assert isinstance(constants.LOG_FILE_OUTPUT, bool)
        assert constants.LOG_FORMAT.fallback.startswith("%(asctime)s")
