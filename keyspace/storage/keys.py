from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from keyspace.storage.schemas import DEFAULT_FORMAT, DEFAULT_SEPARATOR, KeyConfig

_PLACEHOLDER = re.compile(r"\{:(\w+)\}")

Buckets = Union[str, Mapping[str, Any], Iterable[Union[str, Mapping[str, Any]]], None]


def _placeholder_name(token: str) -> str:
    m = _PLACEHOLDER.fullmatch(token)
    return m.group(1) if m else token


def _as_name(name: Any) -> str:
    if name is None or name is False:
        return ""
    return str(name)


def resolve_format(
    name: Any = None,
    *,
    format: Optional[str] = None,
    separator: str = DEFAULT_SEPARATOR,
    environment: str = "",
    replacements: Optional[Mapping[str, Any]] = None,
    **_: Any,
) -> str:
    template = DEFAULT_FORMAT if format is None else format
    if "{:key}" not in template:
        template = f"{template}{separator}{{:key}}"

    values: Dict[str, str] = {
        _placeholder_name(token): str(value)
        for token, value in (replacements or {}).items()
    }
    values["environment"] = environment
    values["key"] = _as_name(name)

    resolved = _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
    return resolved.strip(separator)


def add_prefix(
    key: Any, prefix: Any = None, *, separator: str = DEFAULT_SEPARATOR, **_: Any
) -> str:
    key = _as_name(key)
    prefix = _as_name(prefix)
    if prefix:
        key = f"{prefix}{separator}{key}"
    return key.strip(separator)


def get_key(
    key: Any,
    *,
    prefix: Any = None,
    namespace: Any = None,
    separator: str = DEFAULT_SEPARATOR,
    **format_options: Any,
):
    if isinstance(key, Mapping):
        return {
            k: get_key(v, prefix=prefix, namespace=namespace, separator=separator, **format_options)
            for k, v in key.items()
        }
    if isinstance(key, (list, tuple)):
        return [
            get_key(k, prefix=prefix, namespace=namespace, separator=separator, **format_options)
            for k in key
        ]
    name = add_prefix(key, prefix, separator=separator)
    name = add_prefix(name, namespace, separator=separator)
    return resolve_format(name, separator=separator, **format_options)


def clean_keys(
    qualified_prefix: str,
    data: Any,
    *,
    separator: str = DEFAULT_SEPARATOR,
    raw: bool = False,
    **_: Any,
):
    if raw:
        return data
    head = f"{qualified_prefix}{separator}" if qualified_prefix else ""

    def _clean(value):
        if isinstance(value, str) and head:
            return value.removeprefix(head)
        return value

    if isinstance(data, Mapping):
        return {_clean(k): v for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_clean(v) for v in data]
    return _clean(data)


def render_buckets(buckets: Buckets, *, separator: str = DEFAULT_SEPARATOR) -> List[str]:
    if buckets is None:
        return []
    if isinstance(buckets, (str, int)):
        return [str(buckets)]
    if isinstance(buckets, Mapping):
        return [add_prefix(value, kind, separator=separator) for kind, value in buckets.items()]
    labels: List[str] = []
    for bucket in buckets:
        labels.extend(render_buckets(bucket, separator=separator))
    return labels


def flatten(results: Mapping[str, Any]):
    """One bucket returns its value unwrapped, several keep their labels."""
    if len(results) == 1:
        return next(iter(results.values()))
    return dict(results)


class KeyResolver:
    """Binds a ``KeyConfig`` to the key functions above.

    Every method takes the same keyword overrides as the module functions
    (``format``, ``separator``, ``environment``, ``namespace``, ``prefix``,
    ``replacements``); unknown keywords are ignored.
    """

    def __init__(self, config: Optional[KeyConfig] = None):
        self.config = config or KeyConfig()

    def options(self, **overrides: Any) -> Dict[str, Any]:
        merged: Dict[str, Any] = {
            "format": self.config.format,
            "separator": self.config.separator,
            "environment": self.config.environment,
            "namespace": self.config.namespace,
            "replacements": dict(self.config.replacements),
        }
        for name, value in overrides.items():
            if name in merged and value is None:
                continue
            merged[name] = value
        return merged

    @property
    def separator(self) -> str:
        return self.config.separator

    def resolve_format(self, name: Any = None, **overrides: Any) -> str:
        opts = self.options(**overrides)
        opts.pop("namespace", None)
        opts.pop("prefix", None)
        return resolve_format(name, **opts)

    def add_prefix(self, key: Any, prefix: Any = None, **overrides: Any) -> str:
        return add_prefix(key, prefix, separator=self.options(**overrides)["separator"])

    def get_key(self, key: Any, **overrides: Any):
        return get_key(key, **self.options(**overrides))

    def qualified_prefix(self, **overrides: Any) -> str:
        """The resolved key of an empty name, i.e. what ``clean_keys`` strips."""
        return self.get_key("", **overrides)

    def clean_keys(self, data: Any, *, raw: bool = False, **overrides: Any):
        opts = self.options(**overrides)
        return clean_keys(
            self.qualified_prefix(**overrides), data, separator=opts["separator"], raw=raw
        )

    def render_buckets(self, buckets: Buckets, **overrides: Any) -> List[str]:
        return render_buckets(buckets, separator=self.options(**overrides)["separator"])
