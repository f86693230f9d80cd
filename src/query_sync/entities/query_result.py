"""Read-side projections handed to consumers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from .cache_entry import QueryStatus

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Reactive state of a query observer.

    ``is_loading`` is only true while the first fetch of a key is running.
    A background refetch of cached data keeps ``is_loading`` False and only
    sets ``is_fetching``.
    """

    data: T | None = None
    status: QueryStatus = QueryStatus.IDLE
    error: Any = None
    is_loading: bool = False
    is_error: bool = False
    is_success: bool = False
    is_fetching: bool = False
    is_stale: bool = False
    data_updated_at: float | None = None


class MutationStatus(str, Enum):
    """Shared status of a mutation instance."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
