"""Conditional render adapter.

Maps read state to one of four mutually exclusive branches with a fixed
priority: error, loading, empty, content. Pure functions, no state.
"""

from collections.abc import Callable, Mapping, Sequence, Set
from enum import Enum
from typing import Any, Protocol

from query_sync.errors import describe_error

DEFAULT_LOADING = "Loading..."
DEFAULT_EMPTY = "No data available."


class RenderBranch(str, Enum):
    """Render branch selected for a read state."""

    ERROR = "error"
    LOADING = "loading"
    EMPTY = "empty"
    CONTENT = "content"


class ReadState(Protocol):
    """Anything exposing the read-state flags, e.g. ``QueryResult``."""

    is_loading: bool
    is_error: bool
    error: Any
    data: Any


def is_empty(data: Any) -> bool:
    """True for None and for empty collections.

    Strings and bytes are values, not collections, and never count as empty.
    """
    if data is None:
        return True
    if isinstance(data, (str, bytes)):
        return False
    if isinstance(data, (Sequence, Mapping, Set)):
        return len(data) == 0
    return False


def select_branch(is_loading: bool, is_error: bool, data: Any) -> RenderBranch:
    """Pick the branch for a read state.

    An error wins over loading because it means the load attempt concluded.
    """
    if is_error:
        return RenderBranch.ERROR
    if is_loading:
        return RenderBranch.LOADING
    if is_empty(data):
        return RenderBranch.EMPTY
    return RenderBranch.CONTENT


def _default_error(error: Any) -> str:
    return describe_error(error).user_message


def conditional_render(
    state: ReadState,
    render: Callable[[Any], Any],
    *,
    loading: Any = DEFAULT_LOADING,
    error: Any = _default_error,
    empty: Any = DEFAULT_EMPTY,
) -> Any:
    """Render a read state.

    Args:
        state: Object with ``is_loading``, ``is_error``, ``error`` and ``data``
        render: Called with ``data`` for the content branch
        loading: Loading placeholder, or a zero-argument callable producing it
        error: Error display, or a callable receiving the error
        empty: Empty-state display, or a zero-argument callable producing it

    Returns:
        Whatever the selected branch produces
    """
    branch = select_branch(state.is_loading, state.is_error, state.data)
    if branch is RenderBranch.ERROR:
        return error(state.error) if callable(error) else error
    if branch is RenderBranch.LOADING:
        return loading() if callable(loading) else loading
    if branch is RenderBranch.EMPTY:
        return empty() if callable(empty) else empty
    return render(state.data)
