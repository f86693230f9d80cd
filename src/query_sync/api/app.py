from typing import Any

from fastapi import APIRouter, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from query_sync.api.dependencies import HandlerDep, build_lifespan
from query_sync.config import settings
from query_sync.dto import (
    CacheEntriesResponse,
    CacheStatsResponse,
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    RemoveRequest,
    RemoveResponse,
    SnapshotRequest,
    SnapshotResponse,
)
from query_sync.protocols import RemoteDataClient, SnapshotStore
from query_sync.services import QueryCache

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Query Sync Inspector",
        "version": "0.1.0",
        "description": "Inspect and steer the query cache of the tracker data-sync layer",
        "endpoints": {
            "entries": "/cache/entries",
            "stats": "/cache/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@router.get("/cache/entries", response_model=CacheEntriesResponse)
async def list_entries(
    handler: HandlerDep,
    prefix: list[str] | None = Query(
        None, description="Key prefix, one JSON-decoded segment per value (quote numeric strings)"
    ),
    include_data: bool = False,
) -> CacheEntriesResponse:
    """List cache entries, optionally filtered by key prefix."""
    return await handler.list_entries(prefix=prefix, include_data=include_data)


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
    """Get cache statistics."""
    return await handler.get_stats()


@router.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate(request: InvalidateRequest, handler: HandlerDep) -> InvalidateResponse:
    """Invalidate entries by key or key prefix."""
    return await handler.invalidate(request)


@router.delete("/cache", response_model=RemoveResponse)
async def remove(handler: HandlerDep, request: RemoveRequest | None = None) -> RemoveResponse:
    """Remove entries (all entries when no keys are given)."""
    return await handler.remove(request)


@router.post("/cache/snapshot", response_model=SnapshotResponse)
async def snapshot(handler: HandlerDep, request: SnapshotRequest | None = None) -> SnapshotResponse:
    """Persist successful entries to the snapshot store."""
    return await handler.snapshot(request or SnapshotRequest())


@router.post("/cache/restore", response_model=SnapshotResponse)
async def restore(handler: HandlerDep) -> SnapshotResponse:
    """Seed the cache from the snapshot store."""
    return await handler.restore()


def create_app(
    cache: QueryCache | None = None,
    remote: RemoteDataClient | None = None,
    snapshots: SnapshotStore | None = None,
) -> FastAPI:
    """Create the inspector app.

    Args:
        cache: Cache to inspect, e.g. the one a running client already fills.
            A fresh cache hydrated from the snapshot store when None.
        remote: Remote data client used for health checks
        snapshots: Snapshot store for the snapshot endpoints

    Returns:
        Configured FastAPI application
    """
    application = FastAPI(
        title="Query Sync Inspector",
        description="Inspect and steer the query cache of the tracker data-sync layer",
        version="0.1.0",
        lifespan=build_lifespan(cache, remote, snapshots),
    )

    application.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "query_sync.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
