from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from keyspace.storage.schemas import KeyConfig


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "keyspace"
    APP_ENV: str = "development"
    APP_VERSION: str = "0.1.0"

    # Backing services
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CONNECT_RETRIES: int = 3

    # Key layout
    KEY_FORMAT: str = "{:environment}:{:key}"
    KEY_SEPARATOR: str = ":"
    KEY_NAMESPACE: str = ""
    DEFAULT_EXPIRY: Optional[int] = None
    LEADERBOARD_PAGE_SIZE: int = 100

    # Ops
    LOG_LEVEL: str = "INFO"

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    METRICS_NAMESPACE: str = "keyspace"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="")

    @property
    def OTEL_SERVICE_NAME(self) -> str:  # type: ignore
        return self.APP_NAME

    def key_config(self) -> KeyConfig:
        return KeyConfig(
            format=self.KEY_FORMAT,
            separator=self.KEY_SEPARATOR,
            environment=self.APP_ENV,
            namespace=self.KEY_NAMESPACE or None,
            expiry=self.DEFAULT_EXPIRY,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
