"""
Pytest configuration and shared fixtures for chainstore tests.

- FakeRedis: in-memory stand-in for redis.asyncio.Redis used by unit tests
- Session-scoped Redis container for integration tests (testcontainers)
"""

import fnmatch
import itertools
import time

import pytest

from chainstore.core.logger import set_logger
from chainstore.store.config import RedisConfig
from chainstore.store.connection import ConnectionState, RedisConnection
from chainstore.store.retry import RetryPolicy
from chainstore.store.service import RedisService


class FakeResponseError(Exception):
    """Mimics redis.exceptions.ResponseError messages."""


class FakeRedis:
    """
    Minimal async Redis double covering the commands RedisService issues.

    All keys share one dict, like a real keyspace. Replies mimic
    ``decode_responses=True``.
    """

    def __init__(self):
        self.data: dict[str, object] = {}
        self.groups: dict[str, dict[str, str]] = {}
        self.expiry: dict[str, int] = {}
        self.config: dict[str, str] = {}
        self.closed = False
        self.info_replies = {
            "memory": {"used_memory": 1048576, "maxmemory": 4194304},
            "clients": {"connected_clients": 3},
        }
        self._seq = itertools.count()

    # connection
    async def ping(self):
        return True

    async def info(self, section=None):
        return self.info_replies[section]

    async def config_set(self, name, value):
        self.config[name] = value
        return True

    async def aclose(self):
        self.closed = True

    # strings / keyspace
    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        if ex:
            self.expiry[key] = ex
        else:
            self.expiry.pop(key, None)
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.groups.pop(key, None)
            self.expiry.pop(key, None)
        return removed

    async def exists(self, *keys):
        return sum(1 for key in keys if key in self.data)

    async def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.expiry[key] = seconds
        return True

    async def ttl(self, key):
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    async def keys(self, pattern="*"):
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def mget(self, keys):
        return [self.data.get(key) for key in keys]

    async def mset(self, mapping):
        self.data.update(mapping)
        return True

    # streams
    async def xadd(self, name, fields, id="*"):
        entry_id = f"{int(time.time() * 1000)}-{next(self._seq)}" if id == "*" else id
        self.data.setdefault(name, []).append((entry_id, dict(fields)))
        return entry_id

    async def xread(self, streams, count=None, block=None):
        result = []
        for name, last_id in streams.items():
            entries = self.data.get(name, [])
            if last_id == "$":
                continue
            newer = [e for e in entries if _stream_id(e[0]) > _stream_id(last_id)]
            if count:
                newer = newer[:count]
            if newer:
                result.append([name, newer])
        return result

    async def xack(self, name, groupname, *ids):
        return len(ids) if name in self.groups and groupname in self.groups[name] else 0

    async def xgroup_create(self, name, groupname, id="$", mkstream=False):
        if name not in self.data:
            if not mkstream:
                msg = "ERR The XGROUP subcommand requires the key to exist"
                raise FakeResponseError(msg)
            self.data[name] = []
        if groupname in self.groups.get(name, {}):
            msg = "BUSYGROUP Consumer Group name already exists"
            raise FakeResponseError(msg)
        self.groups.setdefault(name, {})[groupname] = id
        return True

    async def xinfo_groups(self, name):
        return [
            {"name": group, "last-delivered-id": last_id, "consumers": 0, "pending": 0}
            for group, last_id in self.groups.get(name, {}).items()
        ]

    # sets
    async def sadd(self, name, *values):
        members = self.data.setdefault(name, set())
        before = len(members)
        members.update(values)
        return len(members) - before

    async def srem(self, name, *values):
        members = self.data.get(name, set())
        removed = len(members & set(values))
        members.difference_update(values)
        return removed

    async def smembers(self, name):
        return set(self.data.get(name, set()))

    async def sismember(self, name, value):
        return value in self.data.get(name, set())

    async def scard(self, name):
        return len(self.data.get(name, set()))

    # hashes
    async def hget(self, name, key):
        return self.data.get(name, {}).get(key)

    async def hset(self, name, key=None, value=None, mapping=None):
        fields = self.data.setdefault(name, {})
        updates = dict(mapping or {})
        if key is not None:
            updates[key] = value
        added = sum(1 for k in updates if k not in fields)
        fields.update(updates)
        return added

    async def hgetall(self, name):
        return dict(self.data.get(name, {}))

    async def hdel(self, name, *keys):
        fields = self.data.get(name, {})
        return sum(1 for key in keys if fields.pop(key, None) is not None)

    async def hexists(self, name, key):
        return key in self.data.get(name, {})

    async def hkeys(self, name):
        return list(self.data.get(name, {}))

    async def hvals(self, name):
        return list(self.data.get(name, {}).values())

    async def hlen(self, name):
        return len(self.data.get(name, {}))


def _stream_id(entry_id: str) -> tuple[int, int]:
    ms, _, seq = entry_id.partition("-")
    return int(ms), int(seq or 0)


async def _no_sleep(_seconds):
    return None


# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def reset_custom_logger():
    """Make sure a test that installs a custom logger does not leak it."""
    yield
    set_logger(None)


# ============================================
# UNIT FIXTURES
# ============================================


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_config():
    """Config that skips DNS resolution so no network is touched."""
    return RedisConfig(family=0, key_prefix="test:", retry_base_delay_ms=1)


@pytest.fixture
def connection(redis_config, fake_redis):
    """A RedisConnection whose factory returns the in-memory fake."""
    return RedisConnection(redis_config, client_factory=lambda **kwargs: fake_redis)


@pytest.fixture
def service(connection, fake_redis):
    """
    A connected RedisService backed by FakeRedis.

    The retry policy never sleeps, so retry tests run instantly.
    """
    connection._client = fake_redis
    connection._state = ConnectionState.READY
    policy = RetryPolicy(max_attempts=3, base_delay_ms=1, sleep=_no_sleep)
    return RedisService(connection, retry_policy=policy)


# ============================================
# SESSION-SCOPED CONTAINER FIXTURES
# ============================================

# Check for testcontainers availability
try:
    from testcontainers.redis import RedisContainer

    TESTCONTAINERS_AVAILABLE = True
except ImportError:
    TESTCONTAINERS_AVAILABLE = False
    RedisContainer = None


@pytest.fixture(scope="session")
def redis_container():
    """
    Session-scoped Redis container.

    Container starts once and stops at the end of the test session.
    Gracefully skips if container fails to start (e.g., Docker issues).
    """
    if not TESTCONTAINERS_AVAILABLE:
        pytest.skip("testcontainers not available")
        return None

    try:
        with RedisContainer("redis:7-alpine") as container:
            yield container
    except Exception as e:
        # Container failed to start (timeout, Docker issues, etc.)
        pytest.skip(f"Redis container failed to start: {e}")


@pytest.fixture(scope="session")
def redis_container_config(redis_container):
    """RedisConfig pointing at the container."""
    return RedisConfig(
        host=redis_container.get_container_host_ip(),
        port=int(redis_container.get_exposed_port(6379)),
        family=0,
        key_prefix="it:",
        retry_base_delay_ms=10,
    )
