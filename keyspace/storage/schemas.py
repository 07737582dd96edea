from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


DEFAULT_FORMAT = "{:environment}:{:key}"
DEFAULT_SEPARATOR = ":"

Expiry = Union[int, float, datetime, timedelta]


class KeyConfig(BaseModel):
    """Key layout shared by every store, leaderboard and facade.

    ``format`` is the template, ``environment`` fills ``{:environment}``,
    ``namespace`` is the outermost scope applied when a call does not pass
    its own, ``replacements`` fills caller-defined placeholders and
    ``expiry`` is the default applied by ``RedisStore.write``.
    """

    format: str = DEFAULT_FORMAT
    separator: str = DEFAULT_SEPARATOR
    environment: str = ""
    namespace: Optional[str] = None
    replacements: Dict[str, str] = Field(default_factory=dict)
    expiry: Optional[Expiry] = None

    @field_validator("separator")
    @classmethod
    def _separator_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("separator must not be empty")
        return value


# Typed read results


class ScalarValue(BaseModel):
    kind: Literal["scalar"] = "scalar"
    key: str
    value: Any = None

    def unwrap(self) -> Any:
        return self.value


class HashValue(BaseModel):
    kind: Literal["hash"] = "hash"
    key: str
    fields: Dict[str, Any] = Field(default_factory=dict)

    def unwrap(self) -> Dict[str, Any]:
        return dict(self.fields)


class Missing(BaseModel):
    kind: Literal["missing"] = "missing"
    key: str

    def unwrap(self) -> None:
        return None


class OtherValue(BaseModel):
    """A key holding a list, set, sorted set or stream. Read through its own api."""

    kind: Literal["other"] = "other"
    key: str
    redis_type: str

    def unwrap(self) -> None:
        return None


StoredValue = Union[ScalarValue, HashValue, Missing, OtherValue]


class LeaderEntry(BaseModel):
    member: str
    score: Optional[float] = None
    # False when the member is not on the board
    rank: Union[int, Literal[False], None] = None
