"""Service layer.

Contains the query cache and the objects built on it: observers for reads,
mutations for writes, and the tracker resource bindings. Services depend on
protocols (interfaces), not concrete implementations.

Usage:
    ```python
    from query_sync.services import QueryCache, QueryObserver, Mutation

    cache = QueryCache.create()
    observer = QueryObserver(cache, ("tasks", user_id), load_tasks).mount()
    ```
"""

from .mutation import Mutation
from .query_cache import CacheMetrics, QueryCache
from .query_observer import QueryObserver
from .tracker import STALE_TIMES, TrackerQueries

__all__ = [
    "CacheMetrics",
    "Mutation",
    "QueryCache",
    "QueryObserver",
    "STALE_TIMES",
    "TrackerQueries",
]
