"""
Tests for environment-driven configuration, structured logging and the
error helpers.
"""

import importlib
import json
import logging

import pytest

from unfreeze.core import config as config_module
from unfreeze.core.logging_config import CustomJsonFormatter, setup_engine_logging, setup_logging
from unfreeze.core.unfreeze_exceptions import (
    AlreadyEmptiedError,
    BeforeDueError,
    ConfigurationError,
    FreezeError,
    LedgerError,
    NotFoundError,
    StorageError,
    UnfreezeError,
    get_error_context,
    is_recoverable_error,
)


@pytest.fixture
def reload_config(monkeypatch):
    def reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config_module)

    yield reload
    monkeypatch.undo()
    importlib.reload(config_module)


class TestConfig:
    def test_defaults(self):
        cfg = config_module.TestnetConfig
        assert cfg.STATE_NAMESPACE == "mavl"
        assert cfg.MODULE_NAME == "unfreeze"
        assert cfg.TOKEN_EXEC == "token"
        assert cfg.VALIDATE_AT_CREATE is False
        assert config_module.BASIS_POINTS_DENOMINATOR == 10000

    def test_mainnet_selection(self, reload_config):
        module = reload_config(UNFREEZE_NETWORK="mainnet")
        assert module.Config is module.MainnetConfig
        assert module.Config.NETWORK_TYPE == module.NetworkType.MAINNET

    def test_validate_at_create_flag(self, reload_config):
        module = reload_config(UNFREEZE_VALIDATE_AT_CREATE="true")
        assert module.Config.VALIDATE_AT_CREATE is True

    def test_invalid_flag(self, reload_config):
        with pytest.raises(ConfigurationError):
            reload_config(UNFREEZE_VALIDATE_AT_CREATE="maybe")

    def test_module_name_cannot_contain_separator(self, reload_config):
        with pytest.raises(ConfigurationError):
            reload_config(UNFREEZE_MODULE_NAME="un-freeze")

    def test_unknown_network(self, reload_config):
        with pytest.raises(ConfigurationError, match="UNFREEZE_NETWORK"):
            reload_config(UNFREEZE_NETWORK="devnet")


class TestLogging:
    def test_json_output(self, capsys):
        logger = setup_logging(name="unfreeze.test_json", level="INFO", environment="testnet", enable_file=False)
        logger.info("Schedule created", extra={"unfreeze_id": "unfreezeID_0x01"})
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "Schedule created"
        assert record["unfreeze_id"] == "unfreezeID_0x01"
        assert record["environment"] == "testnet"
        assert record["service"] == "unfreeze"
        assert record["source"]["function"] == "test_json_output"

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.json"
        logger = setup_logging(name="unfreeze.test_file", log_file=str(log_file), enable_console=False)
        logger.warning("disk check")
        for handler in logger.handlers:
            handler.flush()
        assert json.loads(log_file.read_text().splitlines()[0])["message"] == "disk check"

    def test_setup_is_idempotent(self):
        setup_logging(name="unfreeze.test_idem", enable_file=False)
        logger = setup_logging(name="unfreeze.test_idem", enable_file=False)
        assert len(logger.handlers) == 1

    def test_engine_logging_from_config(self):
        class QuietConfig(config_module.TestnetConfig):
            LOG_LEVEL = "WARNING"
            LOG_FILE = ""

        logger = setup_engine_logging(QuietConfig)
        try:
            assert logger.name == "unfreeze"
            assert logger.level == logging.WARNING
            assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)
        finally:
            logger.handlers = []
            logger.setLevel(logging.NOTSET)


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(NotFoundError, StorageError)
        assert issubclass(FreezeError, LedgerError)
        assert issubclass(AlreadyEmptiedError, UnfreezeError)

    def test_codes_are_stable(self):
        assert BeforeDueError("x").code == "ErrUnfreezeBeforeDue"
        assert AlreadyEmptiedError("x").code == "ErrUnfreezeEmptied"

    def test_recoverable(self):
        assert is_recoverable_error(BeforeDueError("later"))
        assert not is_recoverable_error(AlreadyEmptiedError("never"))
        assert is_recoverable_error(AlreadyEmptiedError("override", recoverable=True))
        assert not is_recoverable_error(ValueError("plain"))

    def test_error_context(self):
        context = get_error_context(FreezeError("short", details={"balance": 3}))
        assert context == {
            "error_type": "FreezeError",
            "error_message": "short",
            "error_code": "ErrNoBalance",
            "recoverable": False,
            "details": {"balance": 3},
        }
        assert get_error_context(KeyError("k"))["error_type"] == "KeyError"
