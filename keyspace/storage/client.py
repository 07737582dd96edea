"""The store client contract and the redis connection factory.

Only the commands listed on ``StoreClient`` are used by this package. A
``redis.Redis`` created with ``decode_responses=True`` satisfies it, and so
does ``fakeredis.FakeRedis`` in tests.
"""

from __future__ import annotations

import time
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from keyspace.core.logging import get_logger

log = get_logger("keyspace.storage.client")

Number = Union[int, float]


class StoreClient(Protocol):
    # scalars
    def get(self, name: str) -> Any: ...
    def set(self, name: str, value: Any) -> Any: ...
    def mget(self, keys: Sequence[str]) -> List[Any]: ...
    def mset(self, mapping: Mapping[str, Any]) -> Any: ...
    def delete(self, *names: str) -> int: ...
    def incrby(self, name: str, amount: int = 1) -> int: ...
    def incrbyfloat(self, name: str, amount: float = 1.0) -> float: ...
    def type(self, name: str) -> str: ...
    def expireat(self, name: str, when: Any) -> bool: ...
    def keys(self, pattern: str = "*") -> List[str]: ...
    def flushdb(self) -> Any: ...

    # hashes
    def hget(self, name: str, key: str) -> Any: ...
    def hgetall(self, name: str) -> dict: ...
    def hmget(self, name: str, keys: Sequence[str]) -> List[Any]: ...
    def hset(self, name: str, key: Optional[str] = None, value: Any = None, mapping: Optional[Mapping[str, Any]] = None) -> int: ...
    def hdel(self, name: str, *keys: str) -> int: ...
    def hincrby(self, name: str, key: str, amount: int = 1) -> int: ...
    def hincrbyfloat(self, name: str, key: str, amount: float = 1.0) -> float: ...
    def hlen(self, name: str) -> int: ...
    def hvals(self, name: str) -> List[Any]: ...

    # sorted sets
    def zadd(self, name: str, mapping: Mapping[str, Number]) -> int: ...
    def zrem(self, name: str, *values: str) -> int: ...
    def zcard(self, name: str) -> int: ...
    def zscore(self, name: str, value: str) -> Optional[float]: ...
    def zrevrank(self, name: str, value: str) -> Optional[int]: ...
    def zrevrange(self, name: str, start: int, end: int, withscores: bool = False) -> List[Any]: ...
    def zrangebyscore(self, name: str, min: Number, max: Number, withscores: bool = False) -> List[Any]: ...
    def zremrangebyscore(self, name: str, min: Number, max: Number) -> int: ...
    def zcount(self, name: str, min: Number, max: Number) -> int: ...
    def zincrby(self, name: str, amount: Number, value: str) -> float: ...

    # lists
    def rpush(self, name: str, *values: Any) -> int: ...
    def lpush(self, name: str, *values: Any) -> int: ...
    def rpushx(self, name: str, *values: Any) -> int: ...
    def lpushx(self, name: str, *values: Any) -> int: ...
    def lrange(self, name: str, start: int, end: int) -> List[Any]: ...
    def lindex(self, name: str, index: int) -> Any: ...
    def lset(self, name: str, index: int, value: Any) -> bool: ...
    def lpop(self, name: str) -> Any: ...
    def rpop(self, name: str) -> Any: ...
    def blpop(self, keys: Sequence[str], timeout: int = 0) -> Optional[Tuple[str, Any]]: ...
    def brpop(self, keys: Sequence[str], timeout: int = 0) -> Optional[Tuple[str, Any]]: ...
    def llen(self, name: str) -> int: ...


def connect(url: str, *, retries: int = 3, delay: float = 0.2) -> Redis:
    """Open a client and make sure the server answers.

    Failed pings are retried ``retries`` times; the last error is raised
    unchanged.
    """
    client = Redis.from_url(url, decode_responses=True)
    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            client.ping()
            log.bind(url=url, attempt=attempt).info("redis.connected")
            return client
        except (RedisConnectionError, RedisTimeoutError) as exc:
            log.bind(url=url, attempt=attempt, error=str(exc)).warning(
                "redis.connect_failed"
            )
            if attempt == attempts:
                raise
            time.sleep(delay)
    return client
