"""Discriminated result type returned by mutations."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from query_sync.errors import MutationError

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the operation's data."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying the error verbatim."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the error.

        Exceptions are re-raised as-is; other payloads are wrapped in
        ``MutationError``.
        """
        if isinstance(self.error, BaseException):
            raise self.error
        raise MutationError(self.error)

    def unwrap_or(self, default: Any) -> Any:
        return default


Result = Union[Ok[T], Err[E]]
