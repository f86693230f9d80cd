"""HTTP handlers for the cache inspector.

Handlers convert between DTOs (API contracts) and cache calls.
They handle HTTP concerns like status codes and error responses.
"""

import json
import logging
from typing import Any

from fastapi import HTTPException, status

from query_sync.dto import (
    CacheEntriesResponse,
    CacheEntryItem,
    CacheStatsResponse,
    HealthCheckResponse,
    InvalidateRequest,
    InvalidateResponse,
    RemoveRequest,
    RemoveResponse,
    SnapshotRequest,
    SnapshotResponse,
)
from query_sync.entities import CacheEntry
from query_sync.errors import RemoteError
from query_sync.protocols import RemoteDataClient, SnapshotStore
from query_sync.services import QueryCache

logger = logging.getLogger(__name__)


def _error_payload(error: Any) -> dict[str, Any] | None:
    if error is None:
        return None
    if isinstance(error, RemoteError):
        return error.to_dict()
    if isinstance(error, dict):
        return error
    return {"message": str(error), "type": type(error).__name__}


def _parse_segment(segment: str) -> Any:
    try:
        return json.loads(segment)
    except ValueError:
        return segment


class InspectorHandler:
    """HTTP handlers for inspecting and steering a query cache.

    Example:
        ```python
        handler = InspectorHandler(cache=cache, remote=client, snapshots=repo)

        @app.get("/cache/stats", response_model=CacheStatsResponse)
        async def stats():
            return await handler.get_stats()
        ```
    """

    def __init__(
        self,
        cache: QueryCache,
        remote: RemoteDataClient,
        snapshots: SnapshotStore | None = None,
    ) -> None:
        """Initialize the inspector handler.

        Args:
            cache: The query cache to inspect (required).
            remote: Remote data client, used for health checks (required).
            snapshots: Snapshot store; snapshot endpoints answer 503 without one.
        """
        self._cache = cache
        self._remote = remote
        self._snapshots = snapshots

    def _to_item(self, entry: CacheEntry, include_data: bool) -> CacheEntryItem:
        now = self._cache.now()
        return CacheEntryItem(
            key=entry.key,
            status=entry.status.value,
            subscriber_count=entry.subscriber_count,
            has_data=entry.has_data,
            is_stale=entry.is_stale(self._cache.stale_time, now),
            is_fetching=entry.in_flight is not None,
            age_seconds=max(0.0, now - entry.data_updated_at) if entry.has_data else None,
            error=_error_payload(entry.error),
            data=entry.data if include_data else None,
        )

    async def list_entries(
        self,
        prefix: list[str] | None = None,
        include_data: bool = False,
    ) -> CacheEntriesResponse:
        """Handle GET /cache/entries requests.

        Each prefix segment is read as JSON when it parses, so ``50`` matches
        the number and ``"50"`` (quoted) the string. Anything else is taken
        as a plain string.
        """
        if prefix:
            entries = self._cache.find([_parse_segment(segment) for segment in prefix])
        else:
            entries = self._cache.find()
        items = [self._to_item(entry, include_data) for entry in entries]
        return CacheEntriesResponse(total=len(items), entries=items)

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Raises:
            HTTPException: If an error occurs while collecting stats
        """
        try:
            return CacheStatsResponse(**self._cache.get_stats())
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def invalidate(self, request: InvalidateRequest) -> InvalidateResponse:
        """Handle POST /cache/invalidate requests.

        Raises:
            HTTPException: If invalidation fails
        """
        try:
            matched = {
                entry.hash
                for key in request.keys
                for entry in self._cache.find(key, exact=request.exact)
            }
            tasks = self._cache.invalidate(request.keys, exact=request.exact)
            return InvalidateResponse(
                success=True,
                matched=len(matched),
                refetched=len(tasks),
                message=f"Invalidated {len(matched)} entries",
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to invalidate: {e}",
            ) from e

    async def remove(self, request: RemoveRequest | None = None) -> RemoveResponse:
        """Handle DELETE /cache requests."""
        try:
            if request is None or request.keys is None:
                count = self._cache.clear()
            else:
                count = self._cache.remove(request.keys, exact=request.exact)
            return RemoveResponse(
                success=True,
                deleted_count=count,
                message="Cache cleared successfully" if request is None or request.keys is None
                else f"Removed {count} entries",
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to remove entries: {e}",
            ) from e

    def _require_snapshots(self) -> SnapshotStore:
        if self._snapshots is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Snapshot store is not configured",
            )
        return self._snapshots

    async def snapshot(self, request: SnapshotRequest) -> SnapshotResponse:
        """Handle POST /cache/snapshot requests."""
        store = self._require_snapshots()
        try:
            count = store.save(self._cache.dehydrate(), ttl=request.ttl)
            logger.info("Persisted %d cache snapshots", count)
            return SnapshotResponse(success=True, count=count, message=f"Saved {count} entries")
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to save snapshot: {e}",
            ) from e

    async def restore(self) -> SnapshotResponse:
        """Handle POST /cache/restore requests."""
        store = self._require_snapshots()
        try:
            count = self._cache.hydrate(store.load_all())
            logger.info("Restored %d cache snapshots", count)
            return SnapshotResponse(success=True, count=count, message=f"Restored {count} entries")
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to restore snapshot: {e}",
            ) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        remote_healthy = await self._remote.is_available()
        store_healthy = self._snapshots.health_check() if self._snapshots is not None else None
        healthy = remote_healthy and store_healthy is not False

        return HealthCheckResponse(
            status="healthy" if healthy else "unhealthy",
            remote_healthy=remote_healthy,
            snapshot_store_healthy=store_healthy,
        )
