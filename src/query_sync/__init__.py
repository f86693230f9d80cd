"""Query Sync - data-synchronization layer for the tracker API.

This package sits between presentation code and the remote data store:

Layers:
    - protocols: Interface contracts (RemoteDataClient, SnapshotStore)
    - repositories: Data access implementations (HTTP, Redis)
    - services: Query cache, observers, mutations, tracker bindings
    - handlers: Render adapter and cache inspector HTTP handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from query_sync.services import QueryCache, QueryObserver, Mutation

    cache = QueryCache.create()
    observer = QueryObserver(cache, ("tasks", user_id), load_tasks, on_change=render)
    observer.mount()

    add_task = Mutation(cache, save_task, invalidates=[("tasks", user_id)])
    result = await add_task.mutate({"title": "Walk"})
    ```

For the inspector HTTP API:
    ```python
    from query_sync.api.app import app, create_app

    # Or inspect a cache the application already fills
    inspector = create_app(cache, remote_client, snapshot_repository)
    ```
"""

from query_sync.config import get_redis_client, settings
from query_sync.entities import CacheEntry, CacheSnapshot, Err, Ok, QueryResult, QueryStatus
from query_sync.errors import MutationError, QueryError, RemoteError, TransportError, describe_error
from query_sync.handlers import InspectorHandler, RenderBranch, conditional_render, select_branch
from query_sync.protocols import RemoteDataClient, RemoteResult, SnapshotStore
from query_sync.repositories import HttpRemoteDataClient, RedisSnapshotRepository
from query_sync.services import Mutation, QueryCache, QueryObserver, TrackerQueries

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "RemoteDataClient",
    "RemoteResult",
    "SnapshotStore",
    # Services
    "QueryCache",
    "QueryObserver",
    "Mutation",
    "TrackerQueries",
    # Handlers
    "InspectorHandler",
    "RenderBranch",
    "conditional_render",
    "select_branch",
    # Repositories (data access)
    "HttpRemoteDataClient",
    "RedisSnapshotRepository",
    # Entities (domain models)
    "CacheEntry",
    "CacheSnapshot",
    "QueryResult",
    "QueryStatus",
    "Ok",
    "Err",
    # Errors
    "RemoteError",
    "TransportError",
    "QueryError",
    "MutationError",
    "describe_error",
]
