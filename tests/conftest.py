"""
Shared fixtures for query sync tests.
"""

import asyncio

import pytest

from query_sync.protocols import RemoteResult
from query_sync.services import QueryCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeOperation:
    """Read operation returning scripted results.

    Results are consumed in order and the last one repeats. An exception in
    the script is raised instead of returned. With ``gate=True`` every call
    blocks until ``release()``.
    """

    def __init__(self, *results, gate: bool = False) -> None:
        self.results = list(results) or [RemoteResult(None, None)]
        self.calls = 0
        self.gate = asyncio.Event() if gate else None

    async def __call__(self) -> RemoteResult:
        self.calls += 1
        index = min(self.calls - 1, len(self.results) - 1)
        result = self.results[index]
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(result, BaseException):
            raise result
        return result

    def release(self) -> None:
        self.gate.set()


class FakeRemoteClient:
    """RemoteDataClient recording requests and answering from a table."""

    def __init__(self, responses=None, available: bool = True) -> None:
        self.responses = responses or {}
        self.requests = []
        self.available = available
        self.closed = False

    async def request(self, method, path, *, params=None, json=None) -> RemoteResult:
        self.requests.append((method, path, params, json))
        return self.responses.get((method, path), RemoteResult(None, None))

    async def is_available(self) -> bool:
        return self.available

    async def close(self) -> None:
        self.closed = True


class InMemorySnapshotStore:
    """SnapshotStore keeping snapshots in a dict."""

    def __init__(self, healthy: bool = True) -> None:
        self.snapshots = {}
        self.healthy = healthy

    def save(self, snapshots, ttl=None) -> int:
        for snapshot in snapshots:
            self.snapshots[str(snapshot.key)] = snapshot
        return len(snapshots)

    def load_all(self):
        return list(self.snapshots.values())

    def clear_all(self) -> int:
        count = len(self.snapshots)
        self.snapshots.clear()
        return count

    def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def clock():
    """Fake clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Query cache on the fake clock (stale after 10s, evicted after 60s)."""
    query_cache = QueryCache(stale_time=10, gc_time=60, clock=clock)
    yield query_cache
    query_cache.dispose()


@pytest.fixture
def make_operation():
    """Factory for scripted read operations."""
    return FakeOperation


@pytest.fixture
def make_remote_client():
    """Factory for recording remote clients."""
    return FakeRemoteClient


@pytest.fixture
def remote_client():
    """Recording remote client with no canned responses."""
    return FakeRemoteClient()


@pytest.fixture
def snapshot_store():
    """In-memory snapshot store."""
    return InMemorySnapshotStore()
