"""Tests for RedisConfig."""

import socket

import pytest

from chainstore.core.env import EnvManager
from chainstore.store.config import RedisConfig

REDIS_VARS = (
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_PASSWORD",
    "REDIS_DB",
    "REDIS_MAX_RETRIES_PER_REQUEST",
    "REDIS_CONNECT_TIMEOUT",
    "REDIS_COMMAND_TIMEOUT",
    "REDIS_KEEP_ALIVE",
    "REDIS_ENABLE_OFFLINE_QUEUE",
    "REDIS_KEY_PREFIX",
    "REDIS_FAMILY",
    "REDIS_MAX_MEMORY_POLICY",
    "REDIS_RETRY_BASE_DELAY",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in REDIS_VARS:
        # setenv first so teardown also removes values a .env file loaded
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return EnvManager(project_root=tmp_path)


class TestRedisConfig:
    def test_defaults(self):
        config = RedisConfig()
        assert config.host == "localhost"
        assert config.port == 6379
        assert config.password is None
        assert config.db == 0
        assert config.max_retries_per_request == 3
        assert config.connect_timeout_ms == 10000
        assert config.command_timeout_ms == 5000
        assert config.keep_alive_ms == 30000
        assert config.enable_offline_queue is False
        assert config.key_prefix == "mce:blockchain:"
        assert config.family == 4
        assert config.max_memory_policy == "allkeys-lru"
        assert config.retry_base_delay_ms == 1000

    def test_password_hidden_from_repr(self):
        assert "hunter2" not in repr(RedisConfig(password="hunter2"))

    def test_address(self):
        assert RedisConfig(host="h", port=1, db=3).address == "h:1/3"

    @pytest.mark.parametrize(
        "family,expected",
        [(0, socket.AF_UNSPEC), (4, socket.AF_INET), (6, socket.AF_INET6)],
    )
    def test_socket_family(self, family, expected):
        assert RedisConfig(family=family).socket_family == expected

    def test_rejects_unknown_family(self):
        with pytest.raises(ValueError, match="family"):
            RedisConfig(family=5)

    def test_rejects_zero_retries(self):
        with pytest.raises(ValueError):
            RedisConfig(max_retries_per_request=0)

    def test_is_frozen(self):
        config = RedisConfig()
        with pytest.raises(AttributeError):
            config.host = "other"  # type: ignore[misc]


class TestFromEnv:
    def test_defaults_when_unset(self, clean_env):
        assert RedisConfig.from_env(clean_env) == RedisConfig()

    def test_reads_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("REDIS_HOST", "redis.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_PASSWORD", "pw")
        monkeypatch.setenv("REDIS_DB", "2")
        monkeypatch.setenv("REDIS_MAX_RETRIES_PER_REQUEST", "5")
        monkeypatch.setenv("REDIS_CONNECT_TIMEOUT", "2000")
        monkeypatch.setenv("REDIS_COMMAND_TIMEOUT", "750")
        monkeypatch.setenv("REDIS_KEEP_ALIVE", "10000")
        monkeypatch.setenv("REDIS_ENABLE_OFFLINE_QUEUE", "true")
        monkeypatch.setenv("REDIS_KEY_PREFIX", "svc:")
        monkeypatch.setenv("REDIS_FAMILY", "6")
        monkeypatch.setenv("REDIS_MAX_MEMORY_POLICY", "volatile-lru")
        monkeypatch.setenv("REDIS_RETRY_BASE_DELAY", "250")

        config = RedisConfig.from_env(clean_env)

        assert config == RedisConfig(
            host="redis.internal",
            port=6380,
            password="pw",
            db=2,
            max_retries_per_request=5,
            connect_timeout_ms=2000,
            command_timeout_ms=750,
            keep_alive_ms=10000,
            enable_offline_queue=True,
            key_prefix="svc:",
            family=6,
            max_memory_policy="volatile-lru",
            retry_base_delay_ms=250,
        )

    def test_unparseable_port_falls_back(self, clean_env, monkeypatch):
        monkeypatch.setenv("REDIS_PORT", "not-a-port")
        assert RedisConfig.from_env(clean_env).port == 6379

    def test_dotenv_file(self, clean_env, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("REDIS_HOST=from-dotenv\nREDIS_DB=4\n")
        monkeypatch.setenv("REDIS_DB", "1")

        env = EnvManager(project_root=tmp_path)
        config = RedisConfig.from_env(env)

        # Variables already set win over the file
        assert config.db == 1
        assert config.host == "from-dotenv"
