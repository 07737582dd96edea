"""Sorted-set leaderboards.

Follows the agora games leaderboard design: one sorted set per board,
ranks counted from the highest score, pages of ``page_size`` members.

Every operation works on the handle's own board unless ``name`` names
another board in the same namespace::

    board = Leaderboard("highscores", store)
    board.rank_for("alice")
    board.rank_for("alice", name="weekly")
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional, Tuple, Union

from keyspace.storage.middleware import operation
from keyspace.storage.schemas import LeaderEntry
from keyspace.storage.store import RedisStore

DEFAULT_PAGE_SIZE = 100
DEFAULT_NAMESPACE = "leaderboards"


class MemberNotFound(LookupError):
    pass


class Leaderboard:
    component = "leaderboard"

    def __init__(
        self,
        name: str,
        store: RedisStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        namespace: Optional[str] = None,
    ):
        self.name = name
        self.store = store
        self.namespace = namespace or DEFAULT_NAMESPACE
        self.page_size = page_size

    @property
    def client(self):
        return self.store.client

    @property
    def middleware(self):
        return self.store.middleware

    @property
    def page_size(self) -> int:
        return self._page_size

    @page_size.setter
    def page_size(self, value: int) -> None:
        self._page_size = value if value and value >= 1 else DEFAULT_PAGE_SIZE

    def get_key(self, name: Optional[str] = None) -> str:
        return self.store.keys.get_key(name or self.name, namespace=self.namespace)

    def close(self) -> bool:
        return True

    @operation("add_member")
    def add_member(self, member: str, score: float, *, name: Optional[str] = None) -> int:
        return self.client.zadd(self.get_key(name), {member: score})

    @operation("remove_member")
    def remove_member(self, member: str, *, name: Optional[str] = None) -> int:
        return self.client.zrem(self.get_key(name), member)

    @operation("total_members")
    def total_members(self, *, name: Optional[str] = None) -> int:
        return self.client.zcard(self.get_key(name))

    def total_pages(self, *, name: Optional[str] = None) -> int:
        return math.ceil(self.total_members(name=name) / self.page_size)

    @operation("all_members")
    def all_members(self, *, name: Optional[str] = None) -> List[Tuple[str, float]]:
        return self.client.zrevrange(self.get_key(name), 0, -1, withscores=True)

    def total_score(self, *, name: Optional[str] = None) -> float:
        return sum(score for _, score in self.all_members(name=name))

    @operation("total_members_in_score_range")
    def total_members_in_score_range(
        self, min_score: float, max_score: float, *, name: Optional[str] = None
    ) -> int:
        return self.client.zcount(self.get_key(name), min_score, max_score)

    @operation("change_score_for")
    def change_score_for(self, member: str, delta: float, *, name: Optional[str] = None) -> float:
        return self.client.zincrby(self.get_key(name), delta, member)

    @operation("score_for")
    def score_for(self, member: str, *, name: Optional[str] = None) -> Optional[float]:
        return self.client.zscore(self.get_key(name), member)

    def check_member(self, member: str, *, name: Optional[str] = None) -> bool:
        return self.score_for(member, name=name) is not None

    @operation("rank_for")
    def rank_for(
        self, member: str, zero_indexed: bool = False, *, name: Optional[str] = None
    ) -> Union[int, bool]:
        key = self.get_key(name)
        # a score of 0 still counts as present
        if self.client.zscore(key, member) is None:
            return False
        rank = self.client.zrevrank(key, member)
        return rank if zero_indexed else rank + 1

    def score_and_rank_for(
        self, member: str, zero_indexed: bool = False, *, name: Optional[str] = None
    ) -> LeaderEntry:
        return LeaderEntry(
            member=member,
            score=self.score_for(member, name=name),
            rank=self.rank_for(member, zero_indexed, name=name),
        )

    @operation("remove_members_in_score_range")
    def remove_members_in_score_range(
        self, min_score: float, max_score: float, *, name: Optional[str] = None
    ) -> int:
        return self.client.zremrangebyscore(self.get_key(name), min_score, max_score)

    @operation("leaders")
    def leaders(
        self,
        page: int,
        with_scores: bool = True,
        with_rank: bool = True,
        zero_indexed: bool = False,
        *,
        name: Optional[str] = None,
    ) -> Optional[List[LeaderEntry]]:
        if page < 1:
            page = 1
        total_pages = self.total_pages(name=name)
        if page > total_pages:
            page = total_pages

        start = max((page - 1) * self.page_size, 0)
        end = start + self.page_size - 1
        return self._range(name, start, end, with_scores, with_rank, zero_indexed)

    @operation("around_me")
    def around_me(
        self,
        member: str,
        with_scores: bool = True,
        with_rank: bool = True,
        zero_indexed: bool = False,
        *,
        name: Optional[str] = None,
    ) -> Optional[List[LeaderEntry]]:
        center = self.client.zrevrank(self.get_key(name), member)
        if center is None:
            raise MemberNotFound(member)

        start = max(center - self.page_size // 2, 0)
        end = start + self.page_size - 1
        return self._range(name, start, end, with_scores, with_rank, zero_indexed)

    def ranked_in_list(
        self,
        members: Iterable[str],
        with_scores: bool = True,
        zero_indexed: bool = False,
        *,
        name: Optional[str] = None,
    ) -> List[LeaderEntry]:
        entries = []
        for member in members:
            score = None
            if with_scores:
                # members not on the board score 0.0
                score = self.score_for(member, name=name) or 0.0
            entries.append(
                LeaderEntry(
                    member=member,
                    score=score,
                    rank=self.rank_for(member, zero_indexed, name=name),
                )
            )
        return entries

    @operation("scored_in_list")
    def scored_in_list(
        self,
        from_score: float,
        to_score: float,
        with_scores: bool = True,
        *,
        name: Optional[str] = None,
    ) -> List[LeaderEntry]:
        data = self.client.zrangebyscore(
            self.get_key(name), from_score, to_score, withscores=with_scores
        )
        if with_scores:
            return [LeaderEntry(member=m, score=float(s)) for m, s in data]
        return [LeaderEntry(member=m) for m in data]

    def _range(
        self,
        name: Optional[str],
        start: int,
        end: int,
        with_scores: bool,
        with_rank: bool,
        zero_indexed: bool,
    ) -> Optional[List[LeaderEntry]]:
        data: List[Any] = self.client.zrevrange(
            self.get_key(name), start, end, withscores=with_scores
        )
        if not data:
            return None
        entries = []
        for item in data:
            member, score = item if with_scores else (item, None)
            entry = LeaderEntry(
                member=member, score=None if score is None else float(score)
            )
            if with_rank:
                # one extra round-trip per member
                entry.rank = self.rank_for(member, zero_indexed, name=name)
            entries.append(entry)
        return entries
