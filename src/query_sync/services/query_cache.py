"""Query cache: the single source of truth for reads.

The cache keeps one ``CacheEntry`` per structurally distinct query key,
de-duplicates concurrent fetches of the same key, notifies subscribers
synchronously after every transition, and evicts entries that have had no
subscribers for ``gc_time`` seconds.

Everything runs on one event loop; entries are only mutated between
suspension points, so no locking is involved.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from query_sync.config import settings
from query_sync.entities import (
    CacheEntry,
    CacheSnapshot,
    QueryKey,
    QueryStatus,
    hash_key,
    matches_key,
    normalize_key,
)
from query_sync.errors import QueryError
from query_sync.protocols import Operation, RemoteResult

logger = logging.getLogger(__name__)

Listener = Callable[[CacheEntry], None]


@dataclass
class CacheMetrics:
    """Track cache activity counters."""

    fetches: int = 0
    deduplicated: int = 0
    fresh_hits: int = 0
    errors: int = 0
    invalidations: int = 0
    evictions: int = 0

    @property
    def dedup_rate(self) -> float:
        """Share of fetch requests answered by an in-flight fetch."""
        total = self.fetches + self.deduplicated
        if total == 0:
            return 0.0
        return self.deduplicated / total

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "fetches": self.fetches,
            "deduplicated": self.deduplicated,
            "dedup_rate": self.dedup_rate,
            "fresh_hits": self.fresh_hits,
            "errors": self.errors,
            "invalidations": self.invalidations,
            "evictions": self.evictions,
        }


class _Subscription:
    __slots__ = ("listener", "active")

    def __init__(self, listener: Listener) -> None:
        self.listener = listener
        self.active = True


def _as_key_list(keys: QueryKey | Iterable[QueryKey]) -> list[QueryKey]:
    # A bare string is a single key; anything else is a collection of keys
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class QueryCache:
    """Keyed store of read results.

    Create one instance at start-up and hand it to observers and mutations;
    call ``dispose()`` on shutdown.

    Example:
        ```python
        cache = QueryCache.create()

        tasks = await cache.fetch(("tasks", user_id), load_tasks)
        unsubscribe = cache.subscribe(("tasks", user_id), print)
        cache.invalidate([("tasks",)])
        unsubscribe()

        cache.dispose()
        ```
    """

    def __init__(
        self,
        stale_time: float | None = None,
        gc_time: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the query cache.

        Args:
            stale_time: Default seconds fetched data stays fresh. Defaults to settings.
            gc_time: Seconds an entry without subscribers is retained. Defaults to settings.
            clock: Monotonic clock used for freshness and retention.
        """
        self._stale_time = settings.query_stale_time if stale_time is None else stale_time
        self._gc_time = settings.query_gc_time if gc_time is None else gc_time
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._subscriptions: dict[str, list[_Subscription]] = {}
        self._gc_handles: dict[str, asyncio.TimerHandle] = {}
        self._metrics = CacheMetrics()
        self._disposed = False

    @classmethod
    def create(
        cls,
        stale_time: float | None = None,
        gc_time: float | None = None,
    ) -> "QueryCache":
        """Factory method to create a QueryCache with settings defaults.

        Args:
            stale_time: Default freshness window. If None, uses settings.
            gc_time: Retention window. If None, uses settings.

        Returns:
            Configured QueryCache
        """
        cache = cls(stale_time=stale_time, gc_time=gc_time)
        logger.info(
            "Query cache created (stale_time=%ss, gc_time=%ss)",
            cache.stale_time,
            cache.gc_time,
        )
        return cache

    # -- lookup -----------------------------------------------------------

    def get(self, key: QueryKey) -> CacheEntry | None:
        """Return the entry for ``key`` without creating or touching it."""
        return self._entries.get(hash_key(key))

    def get_query_data(self, key: QueryKey) -> Any:
        """Return the cached data for ``key``, or None."""
        entry = self.get(key)
        return entry.data if entry is not None else None

    def find(self, key: QueryKey | None = None, exact: bool = False) -> list[CacheEntry]:
        """List entries addressed by ``key`` (all entries when None)."""
        if key is None:
            return list(self._entries.values())
        return [e for e in self._entries.values() if matches_key(e.key, key, exact)]

    def is_stale(self, key: QueryKey, stale_time: float | None = None) -> bool:
        """Check whether the entry for ``key`` needs a refetch."""
        entry = self.get(key)
        if entry is None:
            return True
        window = self._stale_time if stale_time is None else stale_time
        return entry.is_stale(window, self._clock())

    # -- subscriptions ----------------------------------------------------

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for changes of the entry for ``key``.

        Creates an idle entry when none exists. The returned unsubscribe
        function may be called any number of times.

        Args:
            key: Query key to watch
            listener: Called synchronously with the entry after every change

        Returns:
            Function that removes the subscription
        """
        self._ensure_alive()
        entry = self._ensure_entry(key)
        subscription = _Subscription(listener)
        self._subscriptions.setdefault(entry.hash, []).append(subscription)
        entry.subscriber_count += 1
        entry.inactive_since = None
        self._cancel_gc(entry.hash)

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            registered = self._subscriptions.get(entry.hash)
            if registered is not None and subscription in registered:
                registered.remove(subscription)
            if self._entries.get(entry.hash) is not entry:
                # Entry was removed while subscribed
                return
            entry.subscriber_count -= 1
            if entry.subscriber_count == 0:
                self._schedule_gc(entry)

        return unsubscribe

    # -- fetching ---------------------------------------------------------

    async def fetch(self, key: QueryKey, operation: Operation) -> Any:
        """Fetch ``key`` and return its data.

        When a fetch for the key is already in flight, waits for that one and
        ``operation`` is not called. Cancelling the caller does not cancel the
        shared fetch.

        Args:
            key: Query key
            operation: Zero-argument read returning ``(data, error)``

        Returns:
            The fetched data

        Raises:
            Exception: The raised or returned error, as-is
            QueryError: If the returned error is not an exception
        """
        task = self.prefetch(key, operation)
        data, error = await asyncio.shield(task)
        if error is None:
            return data
        if isinstance(error, BaseException):
            raise error
        raise QueryError(error)

    def prefetch(self, key: QueryKey, operation: Operation) -> "asyncio.Task[RemoteResult]":
        """Start fetching ``key`` in the background.

        Returns the in-flight task when one exists. The task never raises; it
        resolves to the ``(data, error)`` outcome of the fetch.
        """
        self._ensure_alive()
        entry = self._ensure_entry(key)

        if entry.in_flight is not None and not entry.in_flight.done():
            self._metrics.deduplicated += 1
            logger.debug("Fetch deduplicated: %s", entry.hash)
            return entry.in_flight

        entry.operation = operation
        entry.status = QueryStatus.LOADING
        self._metrics.fetches += 1
        task = asyncio.get_running_loop().create_task(self._run(entry, operation))
        entry.in_flight = task
        logger.debug("Fetch started: %s", entry.hash)
        self._notify(entry)
        return task

    def ensure_fresh(
        self,
        key: QueryKey,
        operation: Operation,
        stale_time: float | None = None,
    ) -> "asyncio.Task[RemoteResult] | None":
        """Fetch ``key`` only if its entry is stale.

        Returns:
            The fetch task, or None when cached data is still fresh
        """
        if not self.is_stale(key, stale_time):
            self._metrics.fresh_hits += 1
            entry = self.get(key)
            if entry is not None and entry.operation is None:
                entry.operation = operation
            return None
        return self.prefetch(key, operation)

    async def _run(self, entry: CacheEntry, operation: Operation) -> RemoteResult:
        try:
            data, error = await operation()
        except Exception as e:
            # Transport failure: same treatment as a returned error
            data, error = None, e

        now = self._clock()
        entry.in_flight = None
        if error is not None:
            entry.status = QueryStatus.ERROR
            entry.error = error
            entry.error_updated_at = now
            self._metrics.errors += 1
            logger.debug("Fetch failed: %s (%r)", entry.hash, error)
        else:
            entry.status = QueryStatus.SUCCESS
            entry.data = data
            entry.error = None
            entry.data_updated_at = now
            entry.invalidated = False
            logger.debug("Fetch succeeded: %s", entry.hash)

        if self._disposed or self._entries.get(entry.hash) is not entry:
            return RemoteResult(data, error)

        self._notify(entry)

        if entry.refetch_on_settle:
            entry.refetch_on_settle = False
            if entry.subscriber_count > 0 and entry.operation is not None:
                self.prefetch(entry.key, entry.operation)
            else:
                entry.invalidated = True
        if entry.subscriber_count == 0 and entry.in_flight is None:
            self._schedule_gc(entry)

        return RemoteResult(data, error)

    # -- invalidation and direct writes -----------------------------------

    def invalidate(
        self,
        keys: QueryKey | Iterable[QueryKey],
        exact: bool = False,
    ) -> list["asyncio.Task[RemoteResult]"]:
        """Mark entries stale and refetch the ones that are observed.

        Each key addresses entries by prefix, so ``["tasks"]`` covers
        ``["tasks", "u1"]`` and ``["tasks", "u1", {...}]``. Observed entries
        are refetched right away with their last operation; unobserved ones
        are refetched by their next subscriber. An entry that is already
        loading is refetched once its current fetch settles.

        Args:
            keys: List of keys (a bare string counts as one key)
            exact: Match keys exactly instead of by prefix

        Returns:
            Refetch tasks started by this call
        """
        self._ensure_alive()
        key_list = _as_key_list(keys)
        tasks = []
        for entry in self._match(key_list, exact):
            entry.invalidated = True
            self._metrics.invalidations += 1
            if entry.in_flight is not None and not entry.in_flight.done():
                entry.refetch_on_settle = True
            elif entry.subscriber_count > 0 and entry.operation is not None:
                tasks.append(self.prefetch(entry.key, entry.operation))

        logger.debug("Invalidated %s (%d refetches)", key_list, len(tasks))
        return tasks

    def set_query_data(self, key: QueryKey, data: Any) -> CacheEntry:
        """Store ``data`` for ``key`` as if it had just been fetched."""
        self._ensure_alive()
        entry = self._ensure_entry(key)
        entry.data = data
        entry.status = QueryStatus.SUCCESS if entry.in_flight is None else entry.status
        entry.error = None
        entry.data_updated_at = self._clock()
        entry.invalidated = False
        self._notify(entry)
        if entry.subscriber_count == 0:
            self._schedule_gc(entry)
        return entry

    def remove(self, keys: QueryKey | Iterable[QueryKey], exact: bool = False) -> int:
        """Drop entries from the cache.

        In-flight fetches of removed entries still run to completion but no
        longer update anything. Subscriptions of removed entries go silent.

        Returns:
            Number of entries removed
        """
        removed = self._match(_as_key_list(keys), exact)
        for entry in removed:
            self._drop(entry.hash)
        return len(removed)

    def clear(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed
        """
        count = len(self._entries)
        for entry_hash in list(self._entries):
            self._drop(entry_hash)
        logger.info("Query cache cleared (%d entries)", count)
        return count

    # -- eviction ---------------------------------------------------------

    def collect_garbage(self) -> int:
        """Evict every entry whose retention window has elapsed.

        Eviction timers run on their own while an event loop is running; this
        sweep covers entries that went inactive outside of one.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        evicted = 0
        for entry_hash, entry in list(self._entries.items()):
            if (
                entry.subscriber_count == 0
                and entry.in_flight is None
                and entry.inactive_since is not None
                and now - entry.inactive_since >= self._gc_time
            ):
                self._evict(entry_hash)
                evicted += 1
        return evicted

    def _schedule_gc(self, entry: CacheEntry) -> None:
        entry.inactive_since = self._clock()
        self._cancel_gc(entry.hash)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._gc_handles[entry.hash] = loop.call_later(self._gc_time, self._evict, entry.hash)

    def _cancel_gc(self, entry_hash: str) -> None:
        handle = self._gc_handles.pop(entry_hash, None)
        if handle is not None:
            handle.cancel()

    def _evict(self, entry_hash: str) -> None:
        self._gc_handles.pop(entry_hash, None)
        entry = self._entries.get(entry_hash)
        if entry is None or entry.subscriber_count > 0 or entry.in_flight is not None:
            return
        self._drop(entry_hash)
        self._metrics.evictions += 1
        logger.debug("Evicted: %s", entry_hash)

    # -- persistence ------------------------------------------------------

    def dehydrate(self) -> list[CacheSnapshot]:
        """Export successful entries with wall-clock timestamps."""
        now, wall = self._clock(), time.time()
        snapshots = []
        for entry in self._entries.values():
            if not entry.has_data:
                continue
            snapshots.append(
                CacheSnapshot(
                    key=list(entry.key),
                    data=entry.data,
                    updated_at=wall - (now - entry.data_updated_at),
                )
            )
        return snapshots

    def hydrate(self, snapshots: Iterable[CacheSnapshot]) -> int:
        """Seed entries from snapshots.

        Hydrated entries keep the age of their original fetch, so they are
        served as fresh or stale by the usual ``stale_time`` rules. Newer
        cached data is never overwritten.

        Returns:
            Number of entries seeded
        """
        self._ensure_alive()
        now, wall = self._clock(), time.time()
        count = 0
        for snapshot in snapshots:
            updated_at = now - max(0.0, wall - snapshot.updated_at)
            existing = self.get(snapshot.key)
            if existing is not None and existing.has_data and existing.data_updated_at >= updated_at:
                continue
            entry = self._ensure_entry(snapshot.key)
            entry.data = snapshot.data
            entry.error = None
            entry.invalidated = False
            if entry.in_flight is None:
                entry.status = QueryStatus.SUCCESS
            entry.data_updated_at = updated_at
            self._notify(entry)
            if entry.subscriber_count == 0:
                self._schedule_gc(entry)
            count += 1
        return count

    # -- lifecycle --------------------------------------------------------

    def dispose(self) -> None:
        """Cancel timers and in-flight fetches and drop all entries.

        The cache cannot be used afterwards.
        """
        if self._disposed:
            return
        for handle in self._gc_handles.values():
            handle.cancel()
        self._gc_handles.clear()
        for entry in self._entries.values():
            if entry.in_flight is not None and not entry.in_flight.done():
                entry.in_flight.cancel()
        self._entries.clear()
        self._subscriptions.clear()
        self._disposed = True
        logger.info("Query cache disposed")

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with entry counts, policy and activity counters
        """
        entries = self._entries.values()
        stats: dict[str, Any] = {
            "total_entries": len(self._entries),
            "active_entries": sum(1 for e in entries if e.subscriber_count > 0),
            "fetching_entries": sum(1 for e in entries if e.in_flight is not None),
            "stale_time": self._stale_time,
            "gc_time": self._gc_time,
        }
        stats.update(self._metrics.to_dict())
        return stats

    @property
    def stale_time(self) -> float:
        """Default freshness window in seconds."""
        return self._stale_time

    @property
    def gc_time(self) -> float:
        """Retention window in seconds."""
        return self._gc_time

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def now(self) -> float:
        """Current reading of the cache clock."""
        return self._clock()

    # -- internals --------------------------------------------------------

    def _ensure_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("QueryCache has been disposed")

    def _ensure_entry(self, key: QueryKey) -> CacheEntry:
        entry_hash = hash_key(key)
        entry = self._entries.get(entry_hash)
        if entry is None:
            entry = CacheEntry(key=normalize_key(key), hash=entry_hash)
            self._entries[entry_hash] = entry
        return entry

    def _match(self, keys: list[QueryKey], exact: bool) -> list[CacheEntry]:
        return [
            entry
            for entry in self._entries.values()
            if any(matches_key(entry.key, key, exact) for key in keys)
        ]

    def _drop(self, entry_hash: str) -> None:
        self._cancel_gc(entry_hash)
        self._entries.pop(entry_hash, None)
        for subscription in self._subscriptions.pop(entry_hash, []):
            subscription.active = False

    def _notify(self, entry: CacheEntry) -> None:
        for subscription in list(self._subscriptions.get(entry.hash, ())):
            if not subscription.active:
                continue
            try:
                subscription.listener(entry)
            except Exception:
                logger.exception("Cache listener failed for %s", entry.hash)
