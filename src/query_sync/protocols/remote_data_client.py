"""Remote data client protocol.

Every operation handed to the cache, a query observer or a mutation must
resolve to a ``(data, error)`` pair where exactly one side is set. Raising is
reserved for transport failures; the layer treats a raised exception exactly
like a returned error.

Implementations can include:
- The tracker REST API over HTTP (default)
- A database client wrapper
- In-memory fakes for tests
"""

from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, Protocol, TypeVar, runtime_checkable

V = TypeVar("V")


class RemoteResult(NamedTuple):
    """Outcome of a single read or write."""

    data: Any = None
    error: Any = None


# Zero-argument read and one-argument write operations
Operation = Callable[[], Awaitable[RemoteResult]]
MutationOperation = Callable[[V], Awaitable[RemoteResult]]


@runtime_checkable
class RemoteDataClient(Protocol):
    """Protocol for remote data store clients.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> RemoteResult:
        """Execute a single request against the store.

        Args:
            method: HTTP-style verb (GET, POST, PUT, DELETE)
            path: Resource path
            params: Optional query parameters
            json: Optional request body

        Returns:
            RemoteResult with either data or error set

        Raises:
            TransportError: If the store cannot be reached
        """
        ...

    async def is_available(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if reachable, False otherwise
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
