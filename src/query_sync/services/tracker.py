"""Tracker resources: query keys, freshness and read/write bindings.

Records (tasks, task logs, reflections, profiles, insights, specialist
relations) are opaque JSON objects identified by ``id``; this module only
knows how to address them and which reads a write makes stale.
"""

from collections.abc import Callable
from typing import Any

from query_sync.protocols import RemoteDataClient, RemoteResult
from query_sync.utils import read_operation, write_operation

from .mutation import Mutation
from .query_cache import QueryCache
from .query_observer import QueryObserver

# Seconds each resource stays fresh after a fetch
STALE_TIMES: dict[str, float] = {
    "profiles": 5 * 60,
    "tasks": 2 * 60,
    "task_logs": 1 * 60,
    "reflections": 5 * 60,
    "insights": 10 * 60,
    "relations": 5 * 60,
}


def tasks_key(user_id: str | None, filters: dict[str, Any] | None = None) -> tuple:
    return ("tasks", user_id, filters or {})


def task_key(task_id: str | None) -> tuple:
    return ("task", task_id)


def task_logs_key(user_id: str | None, limit: int = 50) -> tuple:
    return ("taskLogs", user_id, limit)


def task_log_key(log_id: str | None) -> tuple:
    return ("taskLog", log_id)


def recent_logs_key(user_id: str | None, limit: int = 10) -> tuple:
    return ("recentLogs", user_id, limit)


def reflections_key(user_id: str | None, limit: int = 10) -> tuple:
    return ("reflections", user_id, limit)


def reflection_key(reflection_id: str | None) -> tuple:
    return ("reflection", reflection_id)


def insights_key(user_id: str | None, limit: int = 5) -> tuple:
    return ("insights", user_id, limit)


def profile_key(user_id: str | None) -> tuple:
    return ("profile", user_id)


def my_specialists_key(patient_id: str | None) -> tuple:
    return ("mySpecialists", patient_id)


def my_patients_key(specialist_id: str | None) -> tuple:
    return ("myPatients", specialist_id)


class TrackerQueries:
    """Factory for tracker observers and mutations.

    Every read method returns an unmounted ``QueryObserver``; reads that
    need an id are disabled until one is given. Extra keyword arguments are
    passed through to the observer.

    Example:
        ```python
        tracker = TrackerQueries(cache, HttpRemoteDataClient.create())

        with tracker.tasks(user_id, on_change=render) as tasks:
            ...

        result = await tracker.upsert_task().mutate({"titel": "Walk", "user_id": user_id})
        ```
    """

    def __init__(self, cache: QueryCache, client: RemoteDataClient) -> None:
        self._cache = cache
        self._client = client

    # -- reads ------------------------------------------------------------

    def tasks(
        self,
        user_id: str | None,
        filters: dict[str, Any] | None = None,
        **options: Any,
    ) -> QueryObserver:
        filters = filters or {}
        params = {
            "user_id": user_id,
            "type": filters.get("type"),
            "pattern": filters.get("pattern"),
        }
        return self._observe(
            tasks_key(user_id, filters),
            read_operation(self._client, "/api/tasks", params),
            requires=user_id,
            default_stale_time=STALE_TIMES["tasks"],
            **options,
        )

    def task(self, task_id: str | None, **options: Any) -> QueryObserver:
        return self._observe(
            task_key(task_id),
            read_operation(self._client, f"/api/tasks/{task_id}"),
            requires=task_id,
            default_stale_time=STALE_TIMES["tasks"],
            **options,
        )

    def task_logs(self, user_id: str | None, limit: int = 50, **options: Any) -> QueryObserver:
        return self._observe(
            task_logs_key(user_id, limit),
            read_operation(self._client, "/api/task-logs", {"user_id": user_id, "limit": limit}),
            requires=user_id,
            default_stale_time=STALE_TIMES["task_logs"],
            **options,
        )

    def recent_logs(self, user_id: str | None, limit: int = 10, **options: Any) -> QueryObserver:
        return self._observe(
            recent_logs_key(user_id, limit),
            read_operation(self._client, "/api/task-logs", {"user_id": user_id, "limit": limit}),
            requires=user_id,
            default_stale_time=STALE_TIMES["task_logs"],
            **options,
        )

    def reflections(self, user_id: str | None, limit: int = 10, **options: Any) -> QueryObserver:
        return self._observe(
            reflections_key(user_id, limit),
            read_operation(self._client, "/api/reflecties", {"user_id": user_id, "limit": limit}),
            requires=user_id,
            default_stale_time=STALE_TIMES["reflections"],
            **options,
        )

    def insights(self, user_id: str | None, limit: int = 5, **options: Any) -> QueryObserver:
        return self._observe(
            insights_key(user_id, limit),
            read_operation(self._client, "/api/ai-insights", {"user_id": user_id, "limit": limit}),
            requires=user_id,
            default_stale_time=STALE_TIMES["insights"],
            **options,
        )

    def profile(self, user_id: str | None, **options: Any) -> QueryObserver:
        """Profile of ``user_id``; pass ``"me"`` for the signed-in user."""
        return self._observe(
            profile_key(user_id),
            read_operation(self._client, f"/api/profiles/{user_id}"),
            requires=user_id,
            default_stale_time=STALE_TIMES["profiles"],
            **options,
        )

    def my_specialists(self, patient_id: str | None, **options: Any) -> QueryObserver:
        return self._observe(
            my_specialists_key(patient_id),
            read_operation(self._client, "/api/specialist-patienten", {"patient_id": patient_id}),
            requires=patient_id,
            default_stale_time=STALE_TIMES["relations"],
            **options,
        )

    def my_patients(self, specialist_id: str | None, **options: Any) -> QueryObserver:
        return self._observe(
            my_patients_key(specialist_id),
            read_operation(
                self._client, "/api/specialist-patienten", {"specialist_id": specialist_id}
            ),
            requires=specialist_id,
            default_stale_time=STALE_TIMES["relations"],
            **options,
        )

    # -- writes -----------------------------------------------------------

    def upsert_task(self, **callbacks: Any) -> Mutation:
        """Create a task (no ``id``) or update one (with ``id``)."""

        async def operation(task: dict[str, Any]) -> RemoteResult:
            if task.get("id"):
                return await self._client.request("PUT", f"/api/tasks/{task['id']}", json=task)
            return await self._client.request("POST", "/api/tasks", json=task)

        def invalidates(data: Any, task: dict[str, Any]) -> list:
            keys: list = [("tasks",)]
            if task.get("id"):
                keys.append(task_key(task["id"]))
            return keys

        return self._mutation(
            operation,
            invalidates,
            seed=lambda data, task: [(task_key(data["id"]), data)] if _has_id(data) else [],
            **callbacks,
        )

    def delete_task(self, **callbacks: Any) -> Mutation:
        """Delete a task; variables are the task id."""

        async def operation(task_id: str) -> RemoteResult:
            return await self._client.request("DELETE", f"/api/tasks/{task_id}")

        return self._mutation(
            operation,
            [("tasks",)],
            drop=lambda data, task_id: [task_key(task_id)],
            **callbacks,
        )

    def update_profile(self, **callbacks: Any) -> Mutation:
        """Update a profile; variables are ``{"id": ..., "data": {...}}``."""

        async def operation(variables: dict[str, Any]) -> RemoteResult:
            return await self._client.request(
                "PUT", f"/api/profiles/{variables['id']}", json=variables["data"]
            )

        return self._mutation(
            operation,
            lambda data, variables: [profile_key(variables["id"]), profile_key("me")],
            seed=lambda data, variables: [
                (profile_key(variables["id"]), data),
                (profile_key("me"), data),
            ],
            **callbacks,
        )

    def add_task_log(self, **callbacks: Any) -> Mutation:
        return self._mutation(
            write_operation(self._client, "POST", "/api/task-logs"),
            [("taskLogs",), ("recentLogs",)],
            **callbacks,
        )

    def update_task_log(self, **callbacks: Any) -> Mutation:
        """Update a task log; variables are the log including its ``id``."""
        return self._mutation(
            write_operation(self._client, "PUT", lambda log: f"/api/task-logs/{log['id']}"),
            [("taskLogs",), ("recentLogs",)],
            seed=lambda data, log: [(task_log_key(log["id"]), data)],
            **callbacks,
        )

    def upsert_reflection(self, **callbacks: Any) -> Mutation:
        """Create a reflection (no ``id``) or update one (with ``id``)."""

        async def operation(reflection: dict[str, Any]) -> RemoteResult:
            if reflection.get("id"):
                return await self._client.request(
                    "PUT", f"/api/reflecties/{reflection['id']}", json=reflection
                )
            return await self._client.request("POST", "/api/reflecties", json=reflection)

        def invalidates(data: Any, reflection: dict[str, Any]) -> list:
            user_id = (data or {}).get("user_id") if isinstance(data, dict) else None
            user_id = user_id or reflection.get("user_id")
            return [("reflections", user_id) if user_id else ("reflections",)]

        return self._mutation(
            operation,
            invalidates,
            seed=lambda data, reflection: (
                [(reflection_key(data["id"]), data)] if _has_id(data) else []
            ),
            **callbacks,
        )

    def delete_reflection(self, **callbacks: Any) -> Mutation:
        """Delete a reflection; variables are ``{"id": ..., "user_id": ...}``."""

        async def operation(variables: dict[str, Any]) -> RemoteResult:
            return await self._client.request("DELETE", f"/api/reflecties/{variables['id']}")

        return self._mutation(
            operation,
            lambda data, variables: [
                ("reflections", variables["user_id"])
                if variables.get("user_id")
                else ("reflections",)
            ],
            drop=lambda data, variables: [reflection_key(variables["id"])],
            **callbacks,
        )

    def add_specialist_relation(self, **callbacks: Any) -> Mutation:
        """Link a specialist and a patient."""

        def invalidates(data: Any, relation: dict[str, Any]) -> list:
            source = data if isinstance(data, dict) else relation
            return [
                my_specialists_key(source.get("patient_id")),
                my_patients_key(source.get("specialist_id")),
            ]

        return self._mutation(
            write_operation(self._client, "POST", "/api/specialist-patienten"),
            invalidates,
            **callbacks,
        )

    def delete_specialist_relation(self, **callbacks: Any) -> Mutation:
        """Remove a specialist-patient link; variables are the relation id."""
        return self._mutation(
            write_operation(
                self._client,
                "DELETE",
                lambda relation_id: f"/api/specialist-patienten/{relation_id}",
            ),
            [("mySpecialists",), ("myPatients",)],
            **callbacks,
        )

    # -- internals --------------------------------------------------------

    def _observe(
        self,
        key: tuple,
        operation: Any,
        *,
        requires: Any,
        default_stale_time: float,
        **options: Any,
    ) -> QueryObserver:
        # Caller options win, but a missing id always disables the read
        options.setdefault("stale_time", default_stale_time)
        options["enabled"] = bool(requires) and options.get("enabled", True)
        return QueryObserver(self._cache, key, operation, **options)

    def _mutation(
        self,
        operation: Any,
        invalidates: Any,
        *,
        seed: Callable[[Any, Any], list] | None = None,
        drop: Callable[[Any, Any], list] | None = None,
        on_success: Callable[[Any, Any], Any] | None = None,
        on_error: Callable[[Any, Any], Any] | None = None,
    ) -> Mutation:
        def after_success(data: Any, variables: Any) -> None:
            if seed is not None:
                for key, value in seed(data, variables):
                    self._cache.set_query_data(key, value)
            if drop is not None:
                self._cache.remove(drop(data, variables), exact=True)
            if on_success is not None:
                on_success(data, variables)

        return Mutation(
            self._cache,
            operation,
            invalidates=invalidates,
            on_success=after_success,
            on_error=on_error,
        )


def _has_id(data: Any) -> bool:
    return isinstance(data, dict) and bool(data.get("id"))
