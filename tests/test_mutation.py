"""
Tests for mutations and the Ok/Err result type.
"""

import asyncio

import pytest

from query_sync.entities import Err, MutationStatus, Ok
from query_sync.errors import MutationError, RemoteError, TransportError
from query_sync.protocols import RemoteResult
from query_sync.services import Mutation, QueryObserver


class TaskStore:
    """Remote task list with a controllable write."""

    def __init__(self) -> None:
        self.tasks = [{"id": "t1", "titel": "Walk"}]

    async def list_tasks(self) -> RemoteResult:
        return RemoteResult(list(self.tasks), None)

    async def add_task(self, task: dict) -> RemoteResult:
        created = {"id": f"t{len(self.tasks) + 1}", **task}
        self.tasks.append(created)
        return RemoteResult(created, None)


class TestResult:
    """Test the Ok/Err result type."""

    def test_ok(self):
        result = Ok(5)

        assert result.is_ok and not result.is_err
        assert result.unwrap() == 5
        assert result.unwrap_or(0) == 5

    def test_err_reraises_exception(self):
        """Test unwrap re-raises exception payloads as-is."""
        error = RemoteError("nope")

        with pytest.raises(RemoteError) as exc_info:
            Err(error).unwrap()

        assert exc_info.value is error

    def test_err_wraps_plain_payload(self):
        """Test unwrap wraps non-exception payloads."""
        result = Err({"code": "23505"})

        with pytest.raises(MutationError) as exc_info:
            result.unwrap()

        assert exc_info.value.error == {"code": "23505"}
        assert result.unwrap_or("fallback") == "fallback"


class TestMutate:
    """Test mutate outcomes and shared state."""

    @pytest.mark.asyncio
    async def test_success_returns_ok(self, cache):
        store = TaskStore()
        mutation = Mutation(cache, store.add_task)

        result = await mutation.mutate({"titel": "Stretch"})

        assert result == Ok({"id": "t2", "titel": "Stretch"})
        assert mutation.status is MutationStatus.SUCCESS
        assert mutation.is_success
        assert mutation.data == {"id": "t2", "titel": "Stretch"}

    @pytest.mark.asyncio
    async def test_error_is_forwarded_verbatim(self, cache):
        """Test a failed write returns the error untouched and leaves the cache alone."""
        error = RemoteError("duplicate key", code="23505")
        cache.set_query_data(("tasks", "u1"), ["t1"])

        async def failing(task):
            return RemoteResult(None, error)

        mutation = Mutation(cache, failing, invalidates=[("tasks",)])

        result = await mutation.mutate({"titel": "Walk"})

        assert isinstance(result, Err)
        assert result.error is error
        assert mutation.is_error
        assert mutation.error is error
        assert cache.get(("tasks", "u1")).invalidated is False

    @pytest.mark.asyncio
    async def test_raised_exception_becomes_err(self, cache):
        """Test a raising write is reported as Err, not raised."""

        async def offline(task):
            raise TransportError("connection refused")

        result = await Mutation(cache, offline).mutate({})

        assert result.is_err
        assert isinstance(result.error, TransportError)

    @pytest.mark.asyncio
    async def test_reset(self, cache):
        mutation = Mutation(cache, TaskStore().add_task)
        await mutation.mutate({"titel": "Walk"})

        mutation.reset()

        assert mutation.status is MutationStatus.IDLE
        assert mutation.data is None
        assert mutation.error is None


class TestInvalidation:
    """Test writes propagating to the read side."""

    @pytest.mark.asyncio
    async def test_observed_list_refreshes_after_add(self, cache):
        """Test adding a task refreshes a mounted task list."""
        store = TaskStore()
        observer = QueryObserver(cache, ("tasks", "u1"), store.list_tasks, retry=0).mount()
        await cache.get(("tasks", "u1")).in_flight
        assert len(observer.result.data) == 1

        add_task = Mutation(cache, store.add_task, invalidates=[("tasks", "u1")])
        result = await add_task.mutate({"titel": "Stretch"})

        assert result.is_ok
        assert observer.result.is_fetching is True
        assert observer.result.is_loading is False
        assert len(observer.result.data) == 1

        await cache.get(("tasks", "u1")).in_flight

        assert [task["titel"] for task in observer.result.data] == ["Walk", "Stretch"]
        observer.unmount()

    @pytest.mark.asyncio
    async def test_invalidation_is_scoped_to_declared_keys(self, cache):
        """Test unrelated entries stay fresh."""
        cache.set_query_data(("tasks", "u1"), [])
        cache.set_query_data(("profile", "u1"), {})
        mutation = Mutation(cache, TaskStore().add_task, invalidates=[("tasks",)])

        await mutation.mutate({"titel": "Walk"})

        assert cache.get(("tasks", "u1")).invalidated is True
        assert cache.get(("profile", "u1")).invalidated is False

    @pytest.mark.asyncio
    async def test_invalidates_from_callable(self, cache):
        """Test keys can be derived from the written data and variables."""
        cache.set_query_data(("reflections", "u1"), [])
        cache.set_query_data(("reflections", "u2"), [])

        async def save(reflection):
            return RemoteResult({"id": "r1", **reflection}, None)

        mutation = Mutation(
            cache,
            save,
            invalidates=lambda data, variables: [("reflections", data["user_id"])],
        )

        await mutation.mutate({"user_id": "u2"})

        assert cache.get(("reflections", "u1")).invalidated is False
        assert cache.get(("reflections", "u2")).invalidated is True

    @pytest.mark.asyncio
    async def test_callbacks_run_after_invalidation(self, cache):
        """Test success callbacks see the cache already invalidated."""
        cache.set_query_data(("tasks", "u1"), [])
        calls = []

        def on_success(data, variables):
            calls.append(("instance", cache.get(("tasks", "u1")).invalidated, variables))

        mutation = Mutation(
            cache,
            TaskStore().add_task,
            invalidates=[("tasks",)],
            on_success=on_success,
        )

        await mutation.mutate({"titel": "Walk"}, on_success=lambda data: calls.append(("call", data["id"])))

        assert calls == [("instance", True, {"titel": "Walk"}), ("call", "t2")]

    @pytest.mark.asyncio
    async def test_error_callbacks(self, cache):
        error = RemoteError("invalid", code="22P02")
        calls = []

        async def failing(task):
            return RemoteResult(None, error)

        mutation = Mutation(cache, failing, on_error=lambda e, v: calls.append(("instance", e, v)))

        await mutation.mutate("bad", on_error=lambda e: calls.append(("call", e)))

        assert calls == [("instance", error, "bad"), ("call", error)]

    @pytest.mark.asyncio
    async def test_raising_success_callback_keeps_ok(self, cache):
        """Test a failing instance callback is logged and the call still succeeds."""
        cache.set_query_data(("tasks", "u1"), [])
        calls = []

        def broken(data, variables):
            raise RuntimeError("render failed")

        mutation = Mutation(cache, TaskStore().add_task, invalidates=[("tasks",)], on_success=broken)

        result = await mutation.mutate({"titel": "Walk"}, on_success=lambda data: calls.append(data["id"]))

        assert result.is_ok
        assert result.value["id"] == "t2"
        assert calls == ["t2"]
        assert mutation.status is MutationStatus.SUCCESS
        assert cache.get(("tasks", "u1")).invalidated is True

    @pytest.mark.asyncio
    async def test_raising_error_callback_keeps_err(self, cache):
        error = RemoteError("invalid", code="22P02")
        calls = []

        async def failing(task):
            return RemoteResult(None, error)

        def broken(e, variables):
            raise ValueError("toast failed")

        mutation = Mutation(cache, failing, on_error=broken)

        result = await mutation.mutate("bad", on_error=lambda e: calls.append(e))

        assert result.is_err
        assert result.error is error
        assert calls == [error]
        assert mutation.status is MutationStatus.ERROR


class TestConcurrentCalls:
    """Test concurrent mutate calls."""

    @pytest.mark.asyncio
    async def test_latest_call_owns_shared_state(self, cache):
        """Test an older call finishing last does not overwrite shared state."""
        gates = {"slow": asyncio.Event(), "fast": asyncio.Event()}

        async def write(name):
            await gates[name].wait()
            if name == "slow":
                return RemoteResult(None, RemoteError("timeout"))
            return RemoteResult(name, None)

        mutation = Mutation(cache, write)
        slow = asyncio.create_task(mutation.mutate("slow"))
        fast = asyncio.create_task(mutation.mutate("fast"))
        await asyncio.sleep(0)
        assert mutation.is_pending

        gates["fast"].set()
        assert (await fast).is_ok
        gates["slow"].set()
        assert (await slow).is_err

        assert mutation.status is MutationStatus.SUCCESS
        assert mutation.data == "fast"
        assert mutation.error is None
