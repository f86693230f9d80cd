"""Query observer: binds a consumer's lifetime to one cache entry.

This is the Python counterpart of a query hook. A consumer mounts the
observer, reads ``result`` (or gets it pushed through ``on_change``) and
unmounts it when it goes away.
"""

import asyncio
import logging
from collections.abc import Callable
from functools import partial
from typing import Any, Generic, TypeVar

from query_sync.config import settings
from query_sync.entities import CacheEntry, QueryKey, QueryResult, QueryStatus, hash_key
from query_sync.protocols import Operation
from query_sync.utils import backoff_delay, with_retry

from .query_cache import QueryCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryObserver(Generic[T]):
    """Reactive view of one query key.

    While mounted and enabled the observer holds a subscription on the cache
    and starts a background fetch whenever the entry is stale. Its ``result``
    follows the stale-while-revalidate contract: ``is_loading`` is only true
    while nothing has been fetched yet, so refetching cached data never
    flips a populated view back to a loading state.

    Example:
        ```python
        observer = QueryObserver(
            cache,
            ("tasks", user_id),
            client.query("/api/tasks", {"user_id": user_id}),
            stale_time=120,
            on_change=render,
        )
        with observer:
            ...  # result updates are pushed to render()
        ```
    """

    def __init__(
        self,
        cache: QueryCache,
        key: QueryKey,
        operation: Operation,
        *,
        enabled: bool = True,
        stale_time: float | None = None,
        retry: int | None = None,
        retry_delay: Callable[[int], float] | None = None,
        on_change: Callable[[QueryResult[T]], Any] | None = None,
    ) -> None:
        """Initialize the observer (not mounted yet).

        Args:
            cache: Shared query cache
            key: Query key to observe
            operation: Zero-argument read returning ``(data, error)``
            enabled: When False nothing is fetched and ``result`` stays empty
            stale_time: Seconds fetched data stays fresh. Defaults to the cache's.
            retry: Extra attempts for a failing fetch. Defaults to settings.
            retry_delay: Attempt index to sleep seconds. Defaults to exponential backoff.
            on_change: Called with the new result whenever it changes
        """
        self._cache = cache
        self._key = key
        self._enabled = enabled
        self._stale_time = stale_time
        self._retry = settings.query_retry if retry is None else retry
        self._retry_delay = retry_delay or partial(
            backoff_delay,
            base=settings.query_retry_delay_base,
            cap=settings.query_retry_delay_max,
        )
        self._operation = self._wrap(operation)
        self._on_change = on_change
        self._mounted = False
        self._unsubscribe: Callable[[], None] | None = None
        self._result: QueryResult[T] = QueryResult()

    # -- lifetime ---------------------------------------------------------

    def mount(self) -> "QueryObserver[T]":
        """Start observing. Must be called with a running event loop."""
        if self._mounted:
            return self
        self._mounted = True
        if self._enabled:
            self._attach()
        return self

    def unmount(self) -> None:
        """Stop observing.

        A fetch already sent to the remote store is not aborted; its outcome
        still lands in the cache, this observer just stops reacting to it.
        """
        self._mounted = False
        self._detach()

    def __enter__(self) -> "QueryObserver[T]":
        return self.mount()

    def __exit__(self, *exc_info: Any) -> None:
        self.unmount()

    # -- inputs -----------------------------------------------------------

    def set_key(self, key: QueryKey, operation: Operation | None = None) -> None:
        """Switch to another key.

        The old subscription is torn down before the new one is made, so the
        result never shows data of the previous key.
        """
        if hash_key(key) == hash_key(self._key) and operation is None:
            return
        self._detach()
        self._key = key
        if operation is not None:
            self._operation = self._wrap(operation)
        self._set_result(QueryResult())
        if self._mounted and self._enabled:
            self._attach()

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable fetching."""
        if enabled == self._enabled:
            return
        self._enabled = enabled
        if enabled:
            if self._mounted:
                self._attach()
        else:
            self._detach()
            self._set_result(QueryResult())

    async def refetch(self) -> QueryResult[T]:
        """Fetch now regardless of staleness and return the new result.

        Failures are reported through the result, never raised.
        """
        if not self._enabled:
            return self._result
        task = self._cache.prefetch(self._key, self._operation)
        await asyncio.shield(task)
        self._update_result()
        return self._result

    # -- state ------------------------------------------------------------

    @property
    def result(self) -> QueryResult[T]:
        """Current projection of the observed entry."""
        return self._result

    @property
    def key(self) -> QueryKey:
        return self._key

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def stale_time(self) -> float:
        return self._cache.stale_time if self._stale_time is None else self._stale_time

    # -- internals --------------------------------------------------------

    def _wrap(self, operation: Operation) -> Operation:
        return with_retry(operation, self._retry, self._retry_delay)

    def _attach(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._cache.subscribe(self._key, self._handle_change)
        self._cache.ensure_fresh(self._key, self._operation, self.stale_time)
        self._update_result()

    def _detach(self) -> None:
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        unsubscribe()

    def _handle_change(self, entry: CacheEntry) -> None:
        if self._unsubscribe is None:
            return
        self._set_result(self._project(entry))

    def _update_result(self) -> None:
        self._set_result(self._project(self._cache.get(self._key)))

    def _project(self, entry: CacheEntry | None) -> QueryResult[T]:
        if not self._enabled or entry is None:
            return QueryResult()
        return QueryResult(
            data=entry.data,
            status=entry.status,
            error=entry.error,
            is_loading=entry.status is QueryStatus.LOADING and not entry.has_data,
            is_error=entry.status is QueryStatus.ERROR,
            is_success=entry.status is QueryStatus.SUCCESS,
            is_fetching=entry.status is QueryStatus.LOADING,
            is_stale=entry.is_stale(self.stale_time, self._cache.now()),
            data_updated_at=entry.data_updated_at,
        )

    def _set_result(self, result: QueryResult[T]) -> None:
        if result == self._result:
            return
        self._result = result
        if self._on_change is not None:
            self._on_change(result)
