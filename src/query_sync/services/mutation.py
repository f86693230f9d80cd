"""Mutation: a single write that propagates to the read side.

This is the Python counterpart of a mutation hook. ``mutate`` returns an
``Ok``/``Err`` result; callbacks are optional sugar on top of it.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar, Union

from query_sync.entities import Err, MutationStatus, Ok, QueryKey, Result
from query_sync.protocols import MutationOperation

from .query_cache import QueryCache

logger = logging.getLogger(__name__)

V = TypeVar("V")
T = TypeVar("T")

# Static keys, or keys derived from the written data and the variables
Invalidates = Union[Iterable[QueryKey], Callable[[Any, Any], Iterable[QueryKey]]]
SuccessCallback = Callable[[Any, Any], Any]
ErrorCallback = Callable[[Any, Any], Any]


class Mutation(Generic[V, T]):
    """Write operation bound to a query cache.

    On success the declared keys are invalidated (observed entries refetch in
    the background) before any success callback runs. On failure the cache
    is left untouched. Nothing is retried. A callback that raises is logged
    and does not change the result.

    Concurrent ``mutate`` calls are allowed. The shared state (``status``,
    ``error``, ``data``) follows the most recent call; each call still gets
    its own result and callbacks.

    Example:
        ```python
        add_task = Mutation(
            cache,
            client.mutation("POST", "/api/tasks"),
            invalidates=[("tasks", user_id)],
        )
        result = await add_task.mutate({"title": "Walk"})
        if result.is_err:
            show_error(result.error)
        ```
    """

    def __init__(
        self,
        cache: QueryCache,
        operation: MutationOperation,
        *,
        invalidates: Invalidates = (),
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize the mutation.

        Args:
            cache: Shared query cache
            operation: One-argument write returning ``(data, error)``
            invalidates: Keys to invalidate on success, or ``(data, variables) -> keys``
            on_success: Called with ``(data, variables)`` after every successful call
            on_error: Called with ``(error, variables)`` after every failed call
        """
        self._cache = cache
        self._operation = operation
        self._invalidates = invalidates
        self._on_success = on_success
        self._on_error = on_error
        self._status = MutationStatus.IDLE
        self._data: T | None = None
        self._error: Any = None
        self._latest_call = 0

    async def mutate(
        self,
        variables: V,
        *,
        invalidates: Invalidates | None = None,
        on_success: Callable[[Any], Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
    ) -> Result[T, Any]:
        """Run the write.

        Args:
            variables: Input passed to the operation
            invalidates: Overrides the keys declared on the instance
            on_success: Called with the data of this call on success
            on_error: Called with the error of this call on failure

        Returns:
            ``Ok(data)`` or ``Err(error)`` with the error forwarded verbatim
        """
        self._latest_call += 1
        call_id = self._latest_call
        self._status = MutationStatus.PENDING
        self._error = None

        try:
            data, error = await self._operation(variables)
        except Exception as e:
            # Transport failure: same treatment as a returned error
            data, error = None, e

        is_latest = call_id == self._latest_call

        if error is not None:
            logger.error("Mutation failed: %r", error)
            if is_latest:
                self._status = MutationStatus.ERROR
                self._error = error
            _run_callback("on_error", self._on_error, error, variables)
            _run_callback("on_error", on_error, error)
            return Err(error)

        if is_latest:
            self._status = MutationStatus.SUCCESS
            self._data = data

        keys = self._resolve_keys(invalidates, data, variables)
        if keys:
            self._cache.invalidate(keys)

        _run_callback("on_success", self._on_success, data, variables)
        _run_callback("on_success", on_success, data)
        return Ok(data)

    def reset(self) -> None:
        """Return the shared state to idle."""
        self._status = MutationStatus.IDLE
        self._data = None
        self._error = None

    def _resolve_keys(self, override: Invalidates | None, data: Any, variables: V) -> list[QueryKey]:
        declared = self._invalidates if override is None else override
        if callable(declared):
            declared = declared(data, variables)
        if isinstance(declared, str):
            declared = [declared]
        return [key for key in declared if key is not None]

    @property
    def status(self) -> MutationStatus:
        return self._status

    @property
    def is_pending(self) -> bool:
        return self._status is MutationStatus.PENDING

    @property
    def is_error(self) -> bool:
        return self._status is MutationStatus.ERROR

    @property
    def is_success(self) -> bool:
        return self._status is MutationStatus.SUCCESS

    @property
    def error(self) -> Any:
        return self._error

    @property
    def data(self) -> T | None:
        return self._data


def _run_callback(name: str, callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("Mutation %s callback failed", name)
