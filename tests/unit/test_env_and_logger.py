"""Tests for EnvManager and the pluggable logger."""

import logging

import pytest

from chainstore.core.env import EnvManager
from chainstore.core.logger import get_logger, set_logger


class RecordingLogger:
    def __init__(self):
        self.logs = []

    def debug(self, msg, *args, **kwargs):
        self.logs.append(("DEBUG", msg))

    def info(self, msg, *args, **kwargs):
        self.logs.append(("INFO", msg))

    def warning(self, msg, *args, **kwargs):
        self.logs.append(("WARNING", msg))

    def error(self, msg, *args, **kwargs):
        self.logs.append(("ERROR", msg))


class TestLogger:
    def test_default_is_stdlib(self):
        logger = get_logger("chainstore.test")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "chainstore.test"

    def test_custom_logger_is_shared(self):
        custom = RecordingLogger()
        set_logger(custom)

        assert get_logger("anything") is custom

        set_logger(None)
        assert isinstance(get_logger("anything"), logging.Logger)

    def test_components_use_custom_logger(self):
        from chainstore.store.error_handler import RedisErrorHandler

        custom = RecordingLogger()
        set_logger(custom)

        RedisErrorHandler().handle_error(Exception("ECONNREFUSED"), operation="get")

        assert custom.logs == [("ERROR", "Redis operation failed: Redis connection failed")]


class TestEnvManager:
    def test_get_with_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CHAINSTORE_TEST_VALUE", raising=False)
        env = EnvManager(project_root=tmp_path)

        assert env.get("CHAINSTORE_TEST_VALUE", "fallback") == "fallback"
        assert not env.loaded

    def test_empty_string_is_unset(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHAINSTORE_TEST_VALUE", "")
        assert EnvManager(project_root=tmp_path).get("CHAINSTORE_TEST_VALUE", "d") == "d"

    def test_required_missing(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CHAINSTORE_TEST_VALUE", raising=False)
        with pytest.raises(ValueError, match="CHAINSTORE_TEST_VALUE"):
            EnvManager(project_root=tmp_path).get("CHAINSTORE_TEST_VALUE", required=True)

    @pytest.mark.parametrize(
        "raw,expected",
        [("true", True), ("1", True), ("YES", True), ("off", False), ("0", False), ("maybe", True)],
    )
    def test_get_bool(self, monkeypatch, tmp_path, raw, expected):
        monkeypatch.setenv("CHAINSTORE_TEST_FLAG", raw)
        assert EnvManager(project_root=tmp_path).get_bool("CHAINSTORE_TEST_FLAG", True) is expected

    def test_get_int(self, monkeypatch, tmp_path):
        env = EnvManager(project_root=tmp_path)
        monkeypatch.setenv("CHAINSTORE_TEST_INT", "42")
        assert env.get_int("CHAINSTORE_TEST_INT") == 42
        monkeypatch.setenv("CHAINSTORE_TEST_INT", "forty-two")
        assert env.get_int("CHAINSTORE_TEST_INT", 7) == 7

    def test_loads_dotenv(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHAINSTORE_TEST_DOTENV", "")
        monkeypatch.delenv("CHAINSTORE_TEST_DOTENV")
        (tmp_path / ".env").write_text("CHAINSTORE_TEST_DOTENV=from-file\n")

        env = EnvManager(project_root=tmp_path)

        assert env.loaded
        assert env.get("CHAINSTORE_TEST_DOTENV") == "from-file"

    def test_explicit_missing_file(self, tmp_path):
        env = EnvManager(project_root=tmp_path, auto_load=False)
        assert env.load(tmp_path / "nope.env") is False
