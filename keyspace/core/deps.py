from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from redis import Redis

from keyspace.core.config import Settings, settings
from keyspace.storage.client import StoreClient, connect
from keyspace.storage.leaderboard import Leaderboard
from keyspace.storage.lists import Lists
from keyspace.storage.middleware import DEFAULT_MIDDLEWARE, Middleware
from keyspace.storage.schemas import KeyConfig
from keyspace.storage.stats import Stats
from keyspace.storage.store import RedisStore


@lru_cache()
def _redis_client() -> Redis:
    return connect(settings.REDIS_URL, retries=settings.REDIS_CONNECT_RETRIES)


@dataclass
class StorageContext:
    """Everything a component needs, passed around explicitly."""

    client: StoreClient
    config: KeyConfig
    middleware: List[Middleware] = field(default_factory=lambda: list(DEFAULT_MIDDLEWARE))
    page_size: int = 100

    def store(self) -> RedisStore:
        return RedisStore(self.client, self.config, self.middleware)

    def leaderboard(self, name: str, page_size: Optional[int] = None) -> Leaderboard:
        return Leaderboard(name, self.store(), page_size=page_size or self.page_size)

    def stats(self) -> Stats:
        return Stats(self.store())

    def lists(self) -> Lists:
        return Lists(self.store())


def build_context(
    app_settings: Optional[Settings] = None, client: Optional[StoreClient] = None
) -> StorageContext:
    app_settings = app_settings or settings
    return StorageContext(
        client=client if client is not None else _redis_client(),
        config=app_settings.key_config(),
        page_size=app_settings.LEADERBOARD_PAGE_SIZE,
    )
