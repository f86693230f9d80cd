"""Snapshot storage protocol.

Defines the interface for backends that persist dehydrated cache entries
between process restarts.
"""

from typing import Protocol, runtime_checkable

from query_sync.entities import CacheSnapshot


@runtime_checkable
class SnapshotStore(Protocol):
    """Protocol for snapshot storage backends."""

    def save(self, snapshots: list[CacheSnapshot], ttl: int | None = None) -> int:
        """Persist snapshots, replacing existing ones with the same key.

        Args:
            snapshots: Snapshots to persist
            ttl: Time-to-live in seconds, backend default when None

        Returns:
            Number of snapshots written
        """
        ...

    def load_all(self) -> list[CacheSnapshot]:
        """Load every persisted snapshot.

        Returns:
            List of snapshots (unordered)
        """
        ...

    def clear_all(self) -> int:
        """Delete every persisted snapshot.

        Returns:
            Number of snapshots deleted
        """
        ...

    def health_check(self) -> bool:
        """Check if the backend is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...
