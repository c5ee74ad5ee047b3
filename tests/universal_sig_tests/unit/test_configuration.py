"""
Tests for environment-driven configuration and logging setup.
"""

import importlib
import json
import logging

import pytest

from universal_sig.core import config
from universal_sig.core.exceptions import ConfigurationError
from universal_sig.core.logging_config import setup_logging, short_address


@pytest.fixture
def reload_config(monkeypatch):
    """Reload config after adjusting the environment; restore defaults afterwards."""
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload

    for key in (
        "UNIVERSAL_SIG_TRY_PREPARE",
        "UNIVERSAL_SIG_LOG_LEVEL",
        "UNIVERSAL_SIG_WEB3_RECEIPT_TIMEOUT",
        "UNIVERSAL_SIG_WEB3_CALL_GAS",
    ):
        monkeypatch.delenv(key, raising=False)
    importlib.reload(config)


class TestConfig:
    def test_defaults(self, reload_config, monkeypatch):
        for key in (
            "UNIVERSAL_SIG_TRY_PREPARE",
            "UNIVERSAL_SIG_LOG_LEVEL",
            "UNIVERSAL_SIG_WEB3_RECEIPT_TIMEOUT",
            "UNIVERSAL_SIG_WEB3_CALL_GAS",
        ):
            monkeypatch.delenv(key, raising=False)
        cfg = reload_config()
        assert cfg.TRY_PREPARE is False
        assert cfg.LOG_LEVEL == "INFO"
        assert cfg.WEB3_RECEIPT_TIMEOUT == 120.0
        assert cfg.WEB3_CALL_GAS == 0

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("0", False), ("off", False)])
    def test_try_prepare_flag(self, reload_config, raw, expected):
        assert reload_config(UNIVERSAL_SIG_TRY_PREPARE=raw).TRY_PREPARE is expected

    def test_invalid_flag(self, reload_config):
        with pytest.raises(ConfigurationError, match="UNIVERSAL_SIG_TRY_PREPARE"):
            reload_config(UNIVERSAL_SIG_TRY_PREPARE="maybe")

    def test_invalid_number(self, reload_config):
        with pytest.raises(ConfigurationError, match="numeric"):
            reload_config(UNIVERSAL_SIG_WEB3_CALL_GAS="lots")

    def test_negative_number(self, reload_config):
        with pytest.raises(ConfigurationError, match="negative"):
            reload_config(UNIVERSAL_SIG_WEB3_RECEIPT_TIMEOUT="-1")

    def test_log_level(self, reload_config):
        assert reload_config(UNIVERSAL_SIG_LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
        with pytest.raises(ConfigurationError):
            reload_config(UNIVERSAL_SIG_LOG_LEVEL="chatty")


class TestLogging:
    def test_json_output(self, capsys):
        logger = setup_logging(name="universal_sig_test_json", level="INFO")
        logger.info("Signature verification completed", extra={"event": "validator.test"})

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["message"] == "Signature verification completed"
        assert record["event"] == "validator.test"
        assert record["service"] == "universal_sig_test_json"
        assert record["source"]["function"] == "test_json_output"

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "universal_sig.json"
        logger = setup_logging(name="universal_sig_test_file", log_file=str(log_file), enable_console=False)
        logger.warning("written")
        for handler in logger.handlers:
            handler.flush()
        assert "written" in log_file.read_text()

    def test_no_duplicate_handlers(self):
        setup_logging(name="universal_sig_test_dupes")
        logger = setup_logging(name="universal_sig_test_dupes")
        assert len(logger.handlers) == 1
        assert logger.level == logging.getLevelName(config.LOG_LEVEL)

    def test_short_address(self):
        assert short_address(b"\xab" * 20) == "0xababababab"
        assert short_address(None) == "unknown"
