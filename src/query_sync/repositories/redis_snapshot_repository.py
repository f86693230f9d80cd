"""Redis implementation of SnapshotStore.

Each dehydrated cache entry is stored as a Redis hash under
``{prefix}:{key hash}`` with fields ``key``, ``data`` and ``updated_at``, and
expires after the configured TTL.
"""

import json
import logging

import redis

from query_sync.config import get_redis_client, settings
from query_sync.entities import CacheSnapshot, hash_key

logger = logging.getLogger(__name__)


class RedisSnapshotRepository:
    """Redis-backed snapshot storage.

    This class satisfies the SnapshotStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
        ttl: int | None = None,
    ) -> None:
        """Initialize the Redis snapshot repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            prefix: Key prefix for snapshot entries.
            ttl: Time-to-live for snapshots in seconds.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = prefix or settings.snapshot_prefix
        self._ttl = ttl or settings.snapshot_ttl

    @classmethod
    def create(
        cls,
        prefix: str | None = None,
        ttl: int | None = None,
    ) -> "RedisSnapshotRepository":
        """Factory method to create RedisSnapshotRepository with defaults.

        Args:
            prefix: Redis key prefix. If None, uses settings.
            ttl: Snapshot TTL in seconds. If None, uses settings.

        Returns:
            Configured RedisSnapshotRepository
        """
        return cls(prefix=prefix, ttl=ttl)

    def _storage_key(self, snapshot: CacheSnapshot) -> str:
        return f"{self._prefix}:{hash_key(snapshot.key)}"

    def save(self, snapshots: list[CacheSnapshot], ttl: int | None = None) -> int:
        """Persist snapshots in one pipeline.

        Snapshots whose data is not JSON-serializable are skipped.

        Args:
            snapshots: Snapshots to persist
            ttl: Time-to-live in seconds, repository default when None

        Returns:
            Number of snapshots written
        """
        expire = ttl or self._ttl
        pipe = self._client.pipeline()
        count = 0
        for snapshot in snapshots:
            try:
                data = json.dumps(snapshot.data)
            except (TypeError, ValueError) as e:
                logger.warning("Skipping snapshot %s: %s", snapshot.key, e)
                continue

            storage_key = self._storage_key(snapshot)
            pipe.hset(
                storage_key,
                mapping={
                    "key": json.dumps(snapshot.key),
                    "data": data,
                    "updated_at": str(snapshot.updated_at),
                },
            )
            pipe.expire(storage_key, expire)
            count += 1

        if count:
            pipe.execute()
        return count

    def load_all(self) -> list[CacheSnapshot]:
        """Load every persisted snapshot.

        Returns:
            List of snapshots; unreadable entries are skipped
        """
        snapshots = []
        for storage_key in self._client.scan_iter(match=f"{self._prefix}:*"):
            fields = self._client.hgetall(storage_key)
            if not fields:
                continue
            try:
                snapshots.append(
                    CacheSnapshot(
                        key=json.loads(_field(fields, "key")),
                        data=json.loads(_field(fields, "data")),
                        updated_at=float(_field(fields, "updated_at")),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable snapshot %r: %s", storage_key, e)
        return snapshots

    def clear_all(self) -> int:
        """Delete every persisted snapshot.

        Returns:
            Number of snapshots deleted
        """
        count = 0
        for storage_key in self._client.scan_iter(match=f"{self._prefix}:*"):
            if self._client.delete(storage_key):
                count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client


def _field(fields: dict, name: str) -> str:
    # Clients created with decode_responses=False return bytes keys and values
    value = fields[name.encode()] if name.encode() in fields else fields[name]
    return value.decode() if isinstance(value, bytes) else value
