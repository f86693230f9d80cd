"""Repository layer for data access.

This layer wraps external dependencies (the tracker HTTP API, Redis) behind
protocol-based interfaces. This enables:
- Easy swapping of implementations
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from query_sync.protocols import RemoteDataClient, SnapshotStore

from .http_client import HttpRemoteDataClient
from .redis_snapshot_repository import RedisSnapshotRepository

__all__ = [
    "HttpRemoteDataClient",
    "RedisSnapshotRepository",
    "RemoteDataClient",
    "SnapshotStore",
]
