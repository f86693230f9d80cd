"""
Tests for the query observer.
"""

import pytest

from query_sync.entities import QueryResult, QueryStatus
from query_sync.errors import RemoteError
from query_sync.protocols import RemoteResult
from query_sync.services import QueryObserver


@pytest.mark.asyncio
async def test_mount_starts_first_fetch(cache, make_operation):
    """Test mounting an observer with an empty cache shows loading then data."""
    operation = make_operation(RemoteResult(["t1"], None))
    results = []
    observer = QueryObserver(cache, ("tasks", "u1"), operation, retry=0, on_change=results.append)

    observer.mount()

    assert observer.result.is_loading is True
    assert observer.result.is_fetching is True
    assert observer.result.data is None

    await cache.get(("tasks", "u1")).in_flight

    assert observer.result.is_success is True
    assert observer.result.is_loading is False
    assert observer.result.data == ["t1"]
    assert [r.status for r in results] == [QueryStatus.LOADING, QueryStatus.SUCCESS]
    observer.unmount()


@pytest.mark.asyncio
async def test_fresh_data_is_served_without_fetch(cache, make_operation):
    """Test a fresh cache entry is used as-is."""
    operation = make_operation(RemoteResult(["t1"], None))
    await cache.fetch(("tasks", "u1"), operation)

    with QueryObserver(cache, ("tasks", "u1"), operation, retry=0) as observer:
        assert operation.calls == 1
        assert observer.result.data == ["t1"]
        assert observer.result.is_fetching is False
        assert observer.result.is_stale is False


@pytest.mark.asyncio
async def test_stale_data_refetches_in_background(cache, clock, make_operation):
    """Test stale data stays visible with is_loading False during a refetch."""
    operation = make_operation(RemoteResult(["old"], None), RemoteResult(["new"], None))
    await cache.fetch(("tasks", "u1"), operation)
    clock.advance(11)

    with QueryObserver(cache, ("tasks", "u1"), operation, retry=0) as observer:
        assert observer.result.data == ["old"]
        assert observer.result.is_loading is False
        assert observer.result.is_fetching is True

        await cache.get(("tasks", "u1")).in_flight

        assert observer.result.data == ["new"]
        assert observer.result.is_fetching is False


@pytest.mark.asyncio
async def test_per_observer_stale_time(cache, clock, make_operation):
    """Test an observer's stale_time overrides the cache default."""
    operation = make_operation(RemoteResult(["t1"], None))
    await cache.fetch("profile", operation)
    clock.advance(30)

    with QueryObserver(cache, "profile", operation, stale_time=300, retry=0) as observer:
        assert operation.calls == 1
        assert observer.stale_time == 300
        assert observer.result.is_stale is False


@pytest.mark.asyncio
async def test_set_key_never_shows_previous_data(cache, make_operation):
    """Test switching keys resets the result before the new key loads."""
    first = make_operation(RemoteResult("a", None))
    second = make_operation(RemoteResult("b", None), gate=True)
    await cache.fetch(("task", "a"), first)
    observer = QueryObserver(cache, ("task", "a"), first, retry=0).mount()
    assert observer.result.data == "a"

    observer.set_key(("task", "b"), second)

    assert observer.result.data is None
    assert observer.result.is_loading is True
    cache.set_query_data(("task", "a"), "a2")
    assert observer.result.data is None

    second.release()
    await cache.get(("task", "b")).in_flight
    assert observer.result.data == "b"
    assert cache.get(("task", "a")).subscriber_count == 0
    observer.unmount()


@pytest.mark.asyncio
async def test_disabled_observer_does_nothing(cache, make_operation):
    """Test a disabled observer neither fetches nor subscribes."""
    operation = make_operation(RemoteResult("x", None))
    observer = QueryObserver(cache, ("task", None), operation, enabled=False, retry=0).mount()

    assert operation.calls == 0
    assert cache.get(("task", None)) is None
    assert observer.result == QueryResult()
    assert await observer.refetch() == QueryResult()

    observer.set_enabled(True)
    await cache.get(("task", None)).in_flight

    assert observer.result.data == "x"
    observer.set_enabled(False)
    assert observer.result == QueryResult()
    observer.unmount()


@pytest.mark.asyncio
async def test_refetch_reports_errors_in_result(cache, make_operation):
    """Test refetch never raises and keeps the previous data."""
    error = RemoteError("server down", status=503)
    operation = make_operation(RemoteResult(["t1"], None), RemoteResult(None, error))

    with QueryObserver(cache, "tasks", operation, retry=0) as observer:
        await cache.get("tasks").in_flight

        result = await observer.refetch()

    assert result.is_error is True
    assert result.error is error
    assert result.data == ["t1"]
    assert result.is_loading is False


@pytest.mark.asyncio
async def test_retry_recovers_from_transient_failure(cache, make_operation):
    """Test an observer with retry > 0 retries a failing fetch."""
    operation = make_operation(
        RemoteResult(None, RemoteError("flaky")),
        RemoteResult(["t1"], None),
    )
    observer = QueryObserver(
        cache, "tasks", operation, retry=2, retry_delay=lambda attempt: 0
    ).mount()

    await cache.get("tasks").in_flight

    assert operation.calls == 2
    assert observer.result.is_success is True
    observer.unmount()


@pytest.mark.asyncio
async def test_unmount_stops_updates(cache, make_operation):
    """Test an unmounted observer no longer follows the entry."""
    results = []
    operation = make_operation(RemoteResult(1, None))
    await cache.fetch("count", operation)
    observer = QueryObserver(cache, "count", operation, retry=0, on_change=results.append).mount()
    seen = len(results)

    observer.unmount()
    cache.set_query_data("count", 2)

    assert len(results) == seen
    assert observer.result.data == 1
    assert cache.get("count").subscriber_count == 0


@pytest.mark.asyncio
async def test_observers_share_one_fetch(cache, make_operation):
    """Test two observers of one key trigger a single fetch."""
    operation = make_operation(RemoteResult(["t1"], None))

    first = QueryObserver(cache, ("tasks", "u1"), operation, retry=0).mount()
    second = QueryObserver(cache, ("tasks", "u1"), operation, retry=0).mount()
    await cache.get(("tasks", "u1")).in_flight

    assert operation.calls == 1
    assert first.result.data is second.result.data
    first.unmount()
    second.unmount()
