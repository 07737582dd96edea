"""Redis lists with the same bucket handling as ``Stats``.

::

    lists.add("inbox", "foo")
    lists.add("inbox", ["foo", "bar"])
    lists.get("inbox")                                   # ['foo', 'foo', 'bar']
    lists.get("inbox", buckets=[{"user": "foo"}, "news"])  # both lists merged
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from keyspace.storage.keys import Buckets, flatten
from keyspace.storage.store import RedisStore

DEFAULT_NAMESPACE = "lists"

Index = Union[int, Sequence[int], None]


class Lists:
    def __init__(self, store: RedisStore, *, namespace: Optional[str] = None):
        self.store = store
        self.namespace = namespace or DEFAULT_NAMESPACE

    def _labels(self, buckets: Buckets) -> List[str]:
        return self.store.keys.render_buckets(buckets)

    def add(
        self,
        key: str,
        values,
        buckets: Buckets = None,
        *,
        prepend: bool = False,
        check: bool = False,
        **options,
    ):
        options.setdefault("namespace", self.namespace)
        if buckets is None:
            return self.store.list_add(key, values, prepend=prepend, check=check, **options)
        items = [values] if isinstance(values, (str, bytes, int, float)) else list(values)
        return flatten(
            {
                label: self.store.list_add(
                    key, items, prepend=prepend, check=check, prefix=label, **options
                )
                for label in self._labels(buckets)
            }
        )

    def append(self, key: str, values, buckets: Buckets = None, **options):
        return self.add(key, values, buckets, prepend=False, **options)

    def append_if_exists(self, key: str, values, buckets: Buckets = None, **options):
        return self.add(key, values, buckets, prepend=False, check=True, **options)

    def prepend(self, key: str, values, buckets: Buckets = None, **options):
        return self.add(key, values, buckets, prepend=True, **options)

    def prepend_if_exists(self, key: str, values, buckets: Buckets = None, **options):
        return self.add(key, values, buckets, prepend=True, check=True, **options)

    def add_if_exists(self, key: str, values, buckets: Buckets = None, **options):
        return self.add(key, values, buckets, check=True, **options)

    def get(self, key: str, index: Index = None, buckets: Buckets = None, *, merge: bool = True, **options):
        options.setdefault("namespace", self.namespace)
        if buckets is None:
            return self.store.list_get(key, index, **options)
        rows: Dict[str, Any] = {
            label: self.store.list_get(key, index, prefix=label, **options)
            for label in self._labels(buckets)
        }
        if not merge:
            return rows
        merged: List[Any] = []
        for row in rows.values():
            if isinstance(row, list):
                merged.extend(row)
            elif row is not None:
                merged.append(row)
        return merged

    def set(self, key: str, index: Union[int, Mapping[int, Any]], value: Any = None, **options):
        options.setdefault("namespace", self.namespace)
        return self.store.list_set(key, index, value, **options)

    def pop(self, key: str, *, blocking: bool = False, last: bool = False, timeout: int = 0, **options):
        options.setdefault("namespace", self.namespace)
        return self.store.list_pop(key, blocking=blocking, last=last, timeout=timeout, **options)

    def pop_last(self, key: str, *, blocking: bool = False, timeout: int = 0, **options):
        return self.pop(key, blocking=blocking, last=True, timeout=timeout, **options)

    def count(self, key: str, buckets: Buckets = None, **options):
        options.setdefault("namespace", self.namespace)
        if buckets is None:
            return self.store.list_length(key, **options)
        return flatten(
            {
                label: self.store.list_length(key, prefix=label, **options)
                for label in self._labels(buckets)
            }
        )

    size = count
    length = count
