import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Remote data store (tracker API)
    remote_base_url: str = os.getenv("REMOTE_BASE_URL", "http://localhost:3000")
    remote_timeout: float = float(os.getenv("REMOTE_TIMEOUT", "30.0"))
    remote_api_token: str | None = os.getenv("REMOTE_API_TOKEN")

    # Query cache policy (seconds)
    query_stale_time: float = float(os.getenv("QUERY_STALE_TIME", "0"))
    query_gc_time: float = float(os.getenv("QUERY_GC_TIME", "300"))  # 5 minutes default
    query_retry: int = int(os.getenv("QUERY_RETRY", "0"))
    query_retry_delay_base: float = float(os.getenv("QUERY_RETRY_DELAY_BASE", "1.0"))
    query_retry_delay_max: float = float(os.getenv("QUERY_RETRY_DELAY_MAX", "30.0"))

    # Redis (snapshot persistence)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    snapshot_prefix: str = os.getenv("SNAPSHOT_PREFIX", "query_sync")
    snapshot_ttl: int = int(os.getenv("SNAPSHOT_TTL", "86400"))  # 1 day default

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.query_stale_time < 0:
            raise ValueError("QUERY_STALE_TIME must be >= 0")

        if self.query_gc_time < 0:
            raise ValueError("QUERY_GC_TIME must be >= 0")

        if self.query_retry < 0:
            raise ValueError(f"QUERY_RETRY must be >= 0, got {self.query_retry}")

        if self.query_retry_delay_max < self.query_retry_delay_base:
            raise ValueError("QUERY_RETRY_DELAY_MAX must be >= QUERY_RETRY_DELAY_BASE")

        if self.snapshot_ttl <= 0:
            raise ValueError("SNAPSHOT_TTL must be a positive number of seconds")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
