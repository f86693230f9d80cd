"""Cache entry domain entity."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class QueryStatus(str, Enum):
    """Lifecycle status of a cache entry."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(eq=False)
class CacheEntry(Generic[T]):
    """Cached state of one query key.

    Entries are updated in place by the cache; listeners receive the same
    object on every change.

    Attributes:
        key: Normalized query key
        hash: Canonical hash of the key
        data: Last successfully fetched data
        status: Current status
        error: Error of the last failed fetch, cleared on success
        data_updated_at: Clock time of the last successful fetch, None if never
        error_updated_at: Clock time of the last failure
        subscriber_count: Number of active subscriptions
        invalidated: Set by invalidation, cleared by the next successful fetch
        operation: Last operation used to fetch this key
        in_flight: Task of the running fetch, if any
        inactive_since: Clock time the entry lost its last subscriber
        refetch_on_settle: Invalidated while loading; refetch once the fetch settles
    """

    key: list[Any]
    hash: str
    data: T | None = None
    status: QueryStatus = QueryStatus.IDLE
    error: Any = None
    data_updated_at: float | None = None
    error_updated_at: float | None = None
    subscriber_count: int = 0
    invalidated: bool = False
    operation: Callable[[], Awaitable[Any]] | None = field(default=None, repr=False)
    in_flight: "asyncio.Task[Any] | None" = field(default=None, repr=False)
    inactive_since: float | None = None
    refetch_on_settle: bool = False

    @property
    def has_data(self) -> bool:
        """True once data has been stored, even if that data is None."""
        return self.data_updated_at is not None

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    def is_stale(self, stale_time: float, now: float) -> bool:
        """Check whether the entry should be refetched.

        Args:
            stale_time: Seconds data stays fresh after a successful fetch
            now: Current clock time

        Returns:
            True if invalidated, never fetched, or older than ``stale_time``
        """
        if self.invalidated or self.data_updated_at is None:
            return True
        return now - self.data_updated_at >= stale_time
