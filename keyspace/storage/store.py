from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from keyspace.storage.client import StoreClient
from keyspace.storage.keys import KeyResolver
from keyspace.storage.middleware import DEFAULT_MIDDLEWARE, Middleware, operation
from keyspace.storage.schemas import (
    Expiry,
    HashValue,
    KeyConfig,
    Missing,
    OtherValue,
    ScalarValue,
    StoredValue,
)

Fields = Union[str, Sequence[str], None]


def _number(value: Any) -> Union[int, float, None]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _field_list(fields: Fields) -> List[str]:
    if fields is None or fields == "":
        return []
    if isinstance(fields, str):
        return [fields]
    return list(fields)


def _timestamp(expiry: Expiry) -> int:
    if isinstance(expiry, timedelta):
        return int(time.time() + expiry.total_seconds())
    if isinstance(expiry, datetime):
        return int(expiry.timestamp())
    return int(expiry)


class RedisStore:
    """Scalar, hash and list operations on keys resolved by ``KeyResolver``.

    Keyword options accepted by every method are forwarded to
    ``KeyResolver.get_key`` (``namespace``, ``prefix``, ``format``,
    ``separator``, ``environment``, ``replacements``). Writes that the server
    rejects come back as ``False``; connection errors propagate.
    """

    component = "store"

    def __init__(
        self,
        client: StoreClient,
        config: Optional[KeyConfig] = None,
        middleware: Sequence[Middleware] = DEFAULT_MIDDLEWARE,
    ):
        self.client = client
        self.keys = KeyResolver(config)
        self.middleware = list(middleware)

    @property
    def config(self) -> KeyConfig:
        return self.keys.config

    @config.setter
    def config(self, value: KeyConfig) -> None:
        self.keys.config = value

    def _ttl(self, key: str, expiry: Expiry) -> bool:
        return bool(self.client.expireat(key, _timestamp(expiry)))

    # scalars

    @operation("write")
    def write(self, key, value: Any = None, *, expiry: Optional[Expiry] = None, **options):
        expiry = expiry if expiry is not None else self.config.expiry
        if isinstance(key, Mapping):
            resolved = {self.keys.get_key(k, **options): v for k, v in key.items()}
            if not self.client.mset(resolved):
                return False
            if expiry is not None:
                for k in resolved:
                    self._ttl(k, expiry)
            return self.keys.clean_keys(resolved, **options)
        if isinstance(value, Mapping):
            result = self.write_hash(key, value, **options)
            if expiry is not None:
                self._ttl(self.keys.get_key(key, **options), expiry)
            return result
        resolved = self.keys.get_key(key, **options)
        if not self.client.set(resolved, value):
            return False
        if expiry is not None:
            self._ttl(resolved, expiry)
        return value

    def _read_resolved(self, resolved: str) -> StoredValue:
        kind = self.client.type(resolved)
        if isinstance(kind, bytes):
            kind = kind.decode()
        if kind == "none":
            return Missing(key=resolved)
        if kind == "hash":
            return HashValue(key=resolved, fields=self.client.hgetall(resolved))
        if kind == "string":
            return ScalarValue(key=resolved, value=self.client.get(resolved))
        return OtherValue(key=resolved, redis_type=kind)

    @operation("read_value")
    def read_value(self, key, **options) -> StoredValue:
        return self._read_resolved(self.keys.get_key(key, **options))

    @operation("read")
    def read(self, key, **options):
        if isinstance(key, (list, tuple)):
            resolved = self.keys.get_key(list(key), **options)
            values = self.client.mget(resolved)
            result: Dict[str, Any] = {}
            for name, full, value in zip(key, resolved, values):
                if not value:
                    # mget reports hashes as missing
                    value = self._read_resolved(full).unwrap()
                result[name] = value
            return dict(sorted(result.items()))
        return self.read_value(key, **options).unwrap()

    @operation("delete")
    def delete(self, key, **options) -> bool:
        resolved = self.keys.get_key(key, **options)
        names = resolved if isinstance(resolved, list) else [resolved]
        if not names:
            return False
        return bool(self.client.delete(*names))

    @operation("increment")
    def increment(self, key, offset: Union[int, float] = 1, **options):
        resolved = self.keys.get_key(key, **options)
        if isinstance(offset, float):
            return self.client.incrbyfloat(resolved, offset)
        return self.client.incrby(resolved, offset)

    @operation("decrement")
    def decrement(self, key, offset: Union[int, float] = 1, **options):
        return self.increment(key, -offset, **options)

    # hashes

    @operation("write_hash")
    def write_hash(self, key, fields: Mapping[str, Any], **options):
        if fields:
            self.client.hset(self.keys.get_key(key, **options), mapping=dict(fields))
        return self.read_hash(key, **options)

    @operation("read_hash")
    def read_hash(self, key, fields: Fields = None, **options):
        resolved = self.keys.get_key(key, **options)
        names = _field_list(fields)
        if not names:
            return self.client.hgetall(resolved)
        if len(names) == 1:
            value = self.client.hget(resolved, names[0])
            return False if value is None else value
        values = self.client.hmget(resolved, names)
        return {
            name: (False if value is None else value)
            for name, value in zip(names, values)
        }

    def _change_hash(self, key, fields, sign: int, **options):
        resolved = self.keys.get_key(key, **options)
        if not isinstance(fields, Mapping):
            return self.client.hincrby(resolved, fields, sign)
        result: Dict[str, Any] = {}
        for name, value in fields.items():
            number = _number(value)
            if number is None:
                self.client.hset(resolved, name, value)
                result[name] = self.client.hget(resolved, name)
            elif isinstance(number, float):
                result[name] = self.client.hincrbyfloat(resolved, name, sign * number)
            else:
                result[name] = self.client.hincrby(resolved, name, sign * number)
        return result

    @operation("increment_hash")
    def increment_hash(self, key, fields, **options):
        return self._change_hash(key, fields, 1, **options)

    @operation("decrement_hash")
    def decrement_hash(self, key, fields, **options):
        return self._change_hash(key, fields, -1, **options)

    @operation("delete_from_hash")
    def delete_from_hash(self, key, fields: Fields, **options):
        resolved = self.keys.get_key(key, **options)
        names = _field_list(fields)
        if len(names) == 1:
            return bool(self.client.hdel(resolved, names[0]))
        return {name: bool(self.client.hdel(resolved, name)) for name in names}

    @operation("hash_length")
    def hash_length(self, key, **options) -> int:
        return self.client.hlen(self.keys.get_key(key, **options))

    @operation("hash_values")
    def hash_values(self, key, **options) -> List[Any]:
        return self.client.hvals(self.keys.get_key(key, **options))

    @operation("hash_sum")
    def hash_sum(self, key, **options) -> Union[int, float]:
        total: Union[int, float] = 0
        for value in self.client.hvals(self.keys.get_key(key, **options)):
            number = _number(value)
            if number is not None:
                total += number
        return total

    # search

    @operation("find")
    def find(self, search: str = "*", *, raw: bool = False, **options) -> List[str]:
        found = sorted(self.client.keys(self.keys.get_key(search, **options)))
        return self.keys.clean_keys(found, raw=raw, **options)

    @operation("fetch")
    def fetch(self, search: str = "*", *, raw: bool = False, **options) -> Dict[str, Any]:
        found = sorted(self.client.keys(self.keys.get_key(search, **options)))
        data = {name: self._read_resolved(name).unwrap() for name in found}
        return self.keys.clean_keys(data, raw=raw, **options)

    @operation("clear")
    def clear(self) -> bool:
        return bool(self.client.flushdb())

    # lists

    @operation("list_add")
    def list_add(self, key, values, *, prepend: bool = False, check: bool = False, **options) -> int:
        resolved = self.keys.get_key(key, **options)
        items = [values] if isinstance(values, (str, bytes, int, float)) else list(values)
        if not items:
            return self.client.llen(resolved)
        if prepend:
            push = self.client.lpushx if check else self.client.lpush
        else:
            push = self.client.rpushx if check else self.client.rpush
        return push(resolved, *items)

    @operation("list_get")
    def list_get(self, key, index: Union[int, Sequence[int], None] = None, **options):
        resolved = self.keys.get_key(key, **options)
        if isinstance(index, int):
            return self.client.lindex(resolved, index)
        bounds = list(index or [])
        start = bounds[0] if bounds else 0
        end = bounds[1] if len(bounds) > 1 else -1
        return self.client.lrange(resolved, start, end)

    @operation("list_set")
    def list_set(self, key, index: Union[int, Mapping[int, Any]], value: Any = None, **options):
        resolved = self.keys.get_key(key, **options)
        if isinstance(index, Mapping):
            return {i: bool(self.client.lset(resolved, i, v)) for i, v in index.items()}
        return bool(self.client.lset(resolved, index, value))

    @operation("list_pop")
    def list_pop(self, key, *, blocking: bool = False, last: bool = False, timeout: int = 0, **options):
        resolved = self.keys.get_key(key, **options)
        if blocking:
            pop = self.client.brpop if last else self.client.blpop
            item = pop([resolved], timeout=timeout)
            return item[1] if item else None
        return self.client.rpop(resolved) if last else self.client.lpop(resolved)

    @operation("list_length")
    def list_length(self, key, **options) -> int:
        return self.client.llen(self.keys.get_key(key, **options))
