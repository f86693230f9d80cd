"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class CacheEntryItem(BaseModel):
    """Single cache entry (in entries array)."""

    key: list[Any] = Field(..., description="Normalized query key")
    status: str = Field(..., description="idle, loading, success or error")
    subscriber_count: int = Field(..., description="Active subscriptions", ge=0)
    has_data: bool = Field(..., description="Whether data has ever been stored")
    is_stale: bool = Field(..., description="Whether the next subscriber would refetch")
    is_fetching: bool = Field(..., description="Whether a fetch is in flight")
    age_seconds: float | None = Field(
        None,
        description="Seconds since the last successful fetch",
        ge=0.0,
    )
    error: dict[str, Any] | None = Field(None, description="Last error, if the entry failed")
    data: Any = Field(None, description="Cached data (only when requested)")


class CacheEntriesResponse(BaseModel):
    """Response DTO for listing cache entries."""

    total: int = Field(..., description="Number of entries returned", ge=0)
    entries: list[CacheEntryItem] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_entries: int = Field(..., ge=0)
    active_entries: int = Field(..., ge=0)
    fetching_entries: int = Field(..., ge=0)
    stale_time: float = Field(..., description="Default freshness window in seconds", ge=0.0)
    gc_time: float = Field(..., description="Retention window in seconds", ge=0.0)
    fetches: int = Field(..., ge=0)
    deduplicated: int = Field(..., ge=0)
    dedup_rate: float = Field(..., ge=0.0, le=1.0)
    fresh_hits: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    invalidations: int = Field(..., ge=0)
    evictions: int = Field(..., ge=0)


class InvalidateResponse(BaseModel):
    """Response DTO for invalidation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    matched: int = Field(..., description="Entries marked stale", ge=0)
    refetched: int = Field(..., description="Observed entries refetched right away", ge=0)
    message: str = Field(..., description="Human-readable status message")


class RemoveResponse(BaseModel):
    """Response DTO for removal."""

    success: bool
    deleted_count: int = Field(..., ge=0)
    message: str


class SnapshotResponse(BaseModel):
    """Response DTO for snapshot and restore operations."""

    success: bool
    count: int = Field(..., description="Entries written or restored", ge=0)
    message: str


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    remote_healthy: bool = Field(..., description="Whether the tracker API is reachable")
    snapshot_store_healthy: bool | None = Field(
        None,
        description="Whether the snapshot store is reachable (null if not configured)",
    )
