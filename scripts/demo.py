#!/usr/bin/env python3
"""
Demo script for the query sync layer.

This script walks through de-duplication, stale-while-revalidate,
invalidation after a write and stale-while-error against a small in-memory
store, so it runs without the tracker API.
"""

import asyncio
import itertools

from query_sync.errors import RemoteError
from query_sync.handlers import conditional_render
from query_sync.protocols import RemoteResult
from query_sync.services import Mutation, QueryCache, QueryObserver


class InMemoryStore:
    """Tiny stand-in for the tracker API."""

    def __init__(self) -> None:
        self.tasks: list[dict] = [{"id": "t1", "titel": "Morning walk"}]
        self.calls = 0
        self.fail_next = False
        self._ids = itertools.count(2)

    async def list_tasks(self) -> RemoteResult:
        self.calls += 1
        await asyncio.sleep(0.05)
        if self.fail_next:
            self.fail_next = False
            return RemoteResult(None, RemoteError("Service unavailable", status=503))
        return RemoteResult(list(self.tasks), None)

    async def add_task(self, task: dict) -> RemoteResult:
        await asyncio.sleep(0.02)
        created = {"id": f"t{next(self._ids)}", **task}
        self.tasks.append(created)
        return RemoteResult(created, None)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def render(result) -> str:
    return conditional_render(
        result,
        lambda tasks: ", ".join(task["titel"] for task in tasks),
        loading="(loading)",
        empty="(no tasks)",
    )


async def demo_deduplication(cache: QueryCache, store: InMemoryStore) -> None:
    """Demonstrate request de-duplication."""
    print_section("Request De-duplication")

    first, second = await asyncio.gather(
        cache.fetch(("tasks", "u1"), store.list_tasks),
        cache.fetch(("tasks", "u1"), store.list_tasks),
    )
    print(f"\n  Remote calls: {store.calls}")
    print(f"  Same object returned: {first is second}")


async def demo_invalidation(cache: QueryCache, store: InMemoryStore) -> None:
    """Demonstrate a write refreshing an observed read."""
    print_section("Invalidation After a Write")

    observer = QueryObserver(
        cache,
        ("tasks", "u1"),
        store.list_tasks,
        on_change=lambda result: print(f"  → {render(result)} (fetching={result.is_fetching})"),
    )
    with observer:
        await asyncio.sleep(0.1)

        add_task = Mutation(cache, store.add_task, invalidates=[("tasks", "u1")])
        result = await add_task.mutate({"titel": "Stretching"})
        print(f"\n  Mutation result: {result}")
        await asyncio.sleep(0.1)

        print_section("Stale-While-Error")
        store.fail_next = True
        await observer.refetch()
        print(f"\n  is_error={observer.result.is_error}, data kept: {render_data(observer)}")
        print(f"  Error branch: {render(observer.result)}")


def render_data(observer: QueryObserver) -> str:
    data = observer.result.data or []
    return ", ".join(task["titel"] for task in data)


async def main() -> None:
    """Run all demos."""
    print("\n🚀 Query Sync Demo")
    print("=" * 70)

    cache = QueryCache.create(stale_time=0, gc_time=60)
    store = InMemoryStore()
    try:
        await demo_deduplication(cache, store)
        await demo_invalidation(cache, store)

        print_section("Cache Statistics")
        for name, value in cache.get_stats().items():
            print(f"  {name}: {value}")

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)
    finally:
        cache.dispose()


if __name__ == "__main__":
    asyncio.run(main())
