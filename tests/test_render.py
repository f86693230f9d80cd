"""
Tests for the conditional render adapter.
"""

import pytest

from query_sync.entities import QueryResult, QueryStatus
from query_sync.errors import RemoteError
from query_sync.handlers import RenderBranch, conditional_render, is_empty, select_branch


@pytest.mark.parametrize(
    "is_loading,is_error,data,expected",
    [
        (True, True, None, RenderBranch.ERROR),
        (False, True, [1], RenderBranch.ERROR),
        (True, False, None, RenderBranch.LOADING),
        (True, False, [1], RenderBranch.LOADING),
        (False, False, None, RenderBranch.EMPTY),
        (False, False, [], RenderBranch.EMPTY),
        (False, False, {}, RenderBranch.EMPTY),
        (False, False, [1], RenderBranch.CONTENT),
        (False, False, 0, RenderBranch.CONTENT),
        (False, False, "", RenderBranch.CONTENT),
    ],
)
def test_select_branch(is_loading, is_error, data, expected):
    """Test branch priority: error, loading, empty, content."""
    assert select_branch(is_loading, is_error, data) is expected


def test_is_empty():
    assert is_empty(None)
    assert is_empty(set())
    assert not is_empty(False)
    assert not is_empty(b"")


def test_renders_content():
    state = QueryResult(data=["a", "b"], status=QueryStatus.SUCCESS, is_success=True)

    assert conditional_render(state, lambda data: ",".join(data)) == "a,b"


def test_default_fallbacks():
    """Test the built-in loading, empty and error displays."""
    loading = QueryResult(status=QueryStatus.LOADING, is_loading=True, is_fetching=True)
    empty = QueryResult(data=[], status=QueryStatus.SUCCESS, is_success=True)
    failed = QueryResult(
        status=QueryStatus.ERROR,
        error=RemoteError("duplicate key value", code="23505"),
        is_error=True,
    )

    assert conditional_render(loading, repr) == "Loading..."
    assert conditional_render(empty, repr) == "No data available."
    assert conditional_render(failed, repr) == "This data already exists."


def test_custom_fallbacks():
    """Test fallbacks may be values or callables."""
    error = RemoteError("boom")
    failed = QueryResult(status=QueryStatus.ERROR, error=error, is_error=True)
    empty = QueryResult(data=None, status=QueryStatus.SUCCESS, is_success=True)

    assert conditional_render(failed, repr, error=lambda e: f"failed: {e.message}") == "failed: boom"
    assert conditional_render(failed, repr, error="oops") == "oops"
    assert conditional_render(empty, repr, empty=lambda: "nothing yet") == "nothing yet"


def test_render_is_not_called_outside_content_branch():
    calls = []
    loading = QueryResult(status=QueryStatus.LOADING, is_loading=True)

    conditional_render(loading, calls.append)

    assert calls == []
