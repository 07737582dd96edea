"""Bucketed counters stored as hashes.

Counting api requests for the whole application, one user and one year
in a single call::

    stats.inc("requests", "successful", ["global", {"user": "foo", "year": 2013}])

ends up in three hashes, all ending with ``requests``::

    <env>:stats:global:requests
    <env>:stats:user:foo:requests
    <env>:stats:year:2013:requests

Results for a single bucket come back unwrapped, several buckets come back
keyed by their label (``global``, ``user:foo``, ``year:2013``). The global
bucket is only touched when it is asked for.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from keyspace.storage.keys import Buckets, flatten
from keyspace.storage.store import Fields, RedisStore

DEFAULT_NAMESPACE = "stats"
DEFAULT_BUCKET = "global"


class Stats:
    def __init__(self, store: RedisStore, *, namespace: Optional[str] = None):
        self.store = store
        self.namespace = namespace or DEFAULT_NAMESPACE

    def _per_bucket(self, buckets: Buckets, fn: Callable[..., Any], **options) -> Dict[str, Any]:
        options.setdefault("namespace", self.namespace)
        return {
            label: fn(prefix=label, **options)
            for label in self.store.keys.render_buckets(buckets)
        }

    def inc(self, key: str, values, buckets: Buckets = DEFAULT_BUCKET, **options):
        values = {values: 1} if isinstance(values, str) else values
        return flatten(
            self._per_bucket(
                buckets,
                lambda **o: self.store.increment_hash(key, values, **o),
                **options,
            )
        )

    def dec(self, key: str, values, buckets: Buckets = DEFAULT_BUCKET, **options):
        values = {values: 1} if isinstance(values, str) else values
        return flatten(
            self._per_bucket(
                buckets,
                lambda **o: self.store.decrement_hash(key, values, **o),
                **options,
            )
        )

    def get(self, key: str, buckets: Buckets = DEFAULT_BUCKET, fields: Fields = None, **options):
        return flatten(
            self._per_bucket(
                buckets, lambda **o: self.store.read_hash(key, fields, **o), **options
            )
        )

    def set(self, key: str, values, buckets: Buckets = DEFAULT_BUCKET, **options):
        values = {values: 1} if isinstance(values, str) else values
        return flatten(
            self._per_bucket(
                buckets, lambda **o: self.store.write_hash(key, values, **o), **options
            )
        )

    def delete(self, key: str, fields: Fields = None, buckets: Buckets = DEFAULT_BUCKET, **options) -> int:
        def _delete(**o):
            if not fields:
                return int(self.store.delete(key, **o))
            removed = self.store.delete_from_hash(key, fields, **o)
            if isinstance(removed, dict):
                return sum(removed.values())
            return int(removed)

        return sum(self._per_bucket(buckets, _delete, **options).values())

    def values(self, key: str, fields: Fields = None, **options):
        """Fields of one hash, ``global`` unless ``prefix`` says otherwise."""
        options.setdefault("prefix", DEFAULT_BUCKET)
        options.setdefault("namespace", self.namespace)
        return self.store.read_hash(key, fields, **options)

    def sum(self, key: str, buckets: Buckets = DEFAULT_BUCKET, **options):
        return flatten(
            self._per_bucket(buckets, lambda **o: self.store.hash_sum(key, **o), **options)
        )

    def length(self, key: str, buckets: Buckets = DEFAULT_BUCKET, **options):
        return flatten(
            self._per_bucket(buckets, lambda **o: self.store.hash_length(key, **o), **options)
        )
