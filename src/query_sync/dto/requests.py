"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class InvalidateRequest(BaseModel):
    """Request DTO for invalidating cache entries.

    The handler will convert this to a ``QueryCache.invalidate`` call.
    """

    keys: list[list[Any]] = Field(
        ...,
        description="Query keys or key prefixes, e.g. [[\"tasks\", \"u1\"]]",
        min_length=1,
    )
    exact: bool = Field(False, description="Match keys exactly instead of by prefix")


class RemoveRequest(BaseModel):
    """Request DTO for removing cache entries."""

    keys: list[list[Any]] | None = Field(
        None,
        description="Keys or prefixes to remove (if null, clears all)",
    )
    exact: bool = Field(False, description="Match keys exactly instead of by prefix")


class SnapshotRequest(BaseModel):
    """Request DTO for persisting a cache snapshot."""

    ttl: int | None = Field(
        None,
        description="Snapshot time-to-live in seconds (defaults to settings)",
        ge=1,
    )
