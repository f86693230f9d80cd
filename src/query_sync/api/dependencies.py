"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Cache, clients and handler created during lifespan
    - Dependency functions retrieve from request.app.state
    - Objects the lifespan creates are released on shutdown, no global mutable state
    - ``build_lifespan`` exposes an existing cache instead of creating one
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from query_sync.config import settings
from query_sync.handlers import InspectorHandler
from query_sync.logging_config import setup_logging
from query_sync.protocols import RemoteDataClient, SnapshotStore
from query_sync.repositories import HttpRemoteDataClient, RedisSnapshotRepository
from query_sync.services import QueryCache

logger = logging.getLogger(__name__)


def get_query_cache(request: Request) -> QueryCache:
    """Dependency injection for QueryCache from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The QueryCache instance from app.state

    Raises:
        RuntimeError: If the cache is not initialized
    """
    cache = getattr(request.app.state, "query_cache", None)
    if cache is None:
        raise RuntimeError("QueryCache not initialized. Check lifespan setup.")
    return cache


def get_handler(request: Request) -> InspectorHandler:
    """Dependency injection for InspectorHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The InspectorHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "inspector_handler", None)
    if handler is None:
        raise RuntimeError("InspectorHandler not initialized. Check lifespan setup.")
    return handler


def build_lifespan(
    cache: QueryCache | None = None,
    remote: RemoteDataClient | None = None,
    snapshots: SnapshotStore | None = None,
):
    """Build the lifespan context manager for a FastAPI app.

    Pass the cache and clients an application already uses to inspect that
    cache. Anything not passed is created here, from settings.

    Args:
        cache: Query cache to expose. Created and hydrated when None.
        remote: Remote data client. An ``HttpRemoteDataClient`` when None.
        snapshots: Snapshot store. A ``RedisSnapshotRepository`` when None.

    Returns:
        Lifespan context manager for ``FastAPI(lifespan=...)``
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize all layers and store them in app.state.

        1. Remote data client and snapshot repository (data access)
        2. Query cache, hydrated from the snapshot store when created here
        3. Inspector handler (HTTP endpoints)

        Cleanup:
            Disposes the cache and closes the HTTP client when created
            here, clears app.state
        """
        setup_logging(settings.log_level)

        owns_cache = cache is None
        owns_remote = remote is None
        active_remote = remote if remote is not None else HttpRemoteDataClient.create()
        active_snapshots = snapshots if snapshots is not None else RedisSnapshotRepository.create()
        active_cache = cache if cache is not None else QueryCache.create()

        if owns_cache:
            if active_snapshots.health_check():
                restored = active_cache.hydrate(active_snapshots.load_all())
                logger.info("Restored %d cache entries from snapshot store", restored)
            else:
                logger.warning(
                    "Snapshot store unreachable at %s; starting with an empty cache",
                    settings.redis_url,
                )

        app.state.query_cache = active_cache
        app.state.remote_client = active_remote
        app.state.snapshot_repository = active_snapshots
        app.state.inspector_handler = InspectorHandler(
            cache=active_cache, remote=active_remote, snapshots=active_snapshots
        )

        logger.info("Query sync initialized (%d cache entries)", len(active_cache.find()))

        yield

        if owns_cache:
            active_cache.dispose()
        if owns_remote:
            await active_remote.close()
        del app.state.inspector_handler
        del app.state.snapshot_repository
        del app.state.remote_client
        del app.state.query_cache
        logger.info("Query sync shut down")

    return lifespan



# Type aliases for cleaner dependency injection
HandlerDep = Annotated[InspectorHandler, Depends(get_handler)]
CacheDep = Annotated[QueryCache, Depends(get_query_cache)]
