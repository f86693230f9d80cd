"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal logic should use entities from the entities package.
"""

from .requests import InvalidateRequest, RemoveRequest, SnapshotRequest
from .responses import (
    CacheEntriesResponse,
    CacheEntryItem,
    CacheStatsResponse,
    HealthCheckResponse,
    InvalidateResponse,
    RemoveResponse,
    SnapshotResponse,
)

__all__ = [
    "InvalidateRequest",
    "RemoveRequest",
    "SnapshotRequest",
    "CacheEntryItem",
    "CacheEntriesResponse",
    "CacheStatsResponse",
    "InvalidateResponse",
    "RemoveResponse",
    "SnapshotResponse",
    "HealthCheckResponse",
]
