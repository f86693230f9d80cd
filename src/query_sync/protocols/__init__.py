"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (HTTP → database client, Redis → file)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .remote_data_client import MutationOperation, Operation, RemoteDataClient, RemoteResult
from .snapshot_store import SnapshotStore

__all__ = [
    "MutationOperation",
    "Operation",
    "RemoteDataClient",
    "RemoteResult",
    "SnapshotStore",
]
