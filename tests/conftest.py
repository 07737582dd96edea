import os
import sys

import pytest

# Ensure project root on path
sys.path.insert(0, os.getcwd())

from keyspace.storage.leaderboard import Leaderboard
from keyspace.storage.lists import Lists
from keyspace.storage.schemas import KeyConfig
from keyspace.storage.stats import Stats
from keyspace.storage.store import RedisStore


@pytest.fixture()
def fake_redis():
    try:
        from fakeredis import FakeRedis
    except Exception as e:
        pytest.skip(f"fakeredis not available: {e}")
    r = FakeRedis(decode_responses=True)
    r.flushall()
    yield r
    r.flushall()


@pytest.fixture()
def key_config() -> KeyConfig:
    return KeyConfig(environment="test")


@pytest.fixture()
def store(fake_redis, key_config) -> RedisStore:
    return RedisStore(fake_redis, key_config)


@pytest.fixture()
def stats(store) -> Stats:
    return Stats(store)


@pytest.fixture()
def lists(store) -> Lists:
    return Lists(store)


@pytest.fixture()
def board(store) -> Leaderboard:
    return Leaderboard("highscores", store)
