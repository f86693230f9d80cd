"""HTTP implementation of RemoteDataClient.

Talks to the tracker REST routes (``/api/tasks``, ``/api/task-logs``, ...).
Route handlers answer with either ``{"data": ...}`` or the bare payload on
success, and ``{"error": {...}}`` or ``{"message": ...}`` on failure.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from query_sync.config import settings
from query_sync.errors import RemoteError, TransportError
from query_sync.protocols import MutationOperation, Operation, RemoteResult
from query_sync.utils import read_operation, write_operation

logger = logging.getLogger(__name__)


class HttpRemoteDataClient:
    """httpx-based implementation of the RemoteDataClient protocol.

    This class satisfies the RemoteDataClient protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        client = HttpRemoteDataClient.create()

        data, error = await client.request("GET", "/api/tasks", params={"user_id": "u1"})

        # Or build operations for the cache
        load_tasks = client.query("/api/tasks", {"user_id": "u1"})
        save_task = client.mutation("POST", "/api/tasks")
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the tracker API. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
            api_token: Bearer token sent with every request. Defaults to settings.
            transport: Custom httpx transport (used by tests).
        """
        self._base_url = base_url or settings.remote_base_url
        self._timeout = timeout or settings.remote_timeout
        self._api_token = api_token if api_token is not None else settings.remote_api_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> "HttpRemoteDataClient":
        """Factory method to create HttpRemoteDataClient with defaults.

        Args:
            base_url: Tracker API URL. If None, uses settings.
            timeout: Request timeout. If None, uses settings.

        Returns:
            Configured HttpRemoteDataClient
        """
        return cls(base_url=base_url, timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> RemoteResult:
        """Execute one request.

        Args:
            method: HTTP verb
            path: Path relative to the base URL
            params: Query parameters; None values are dropped
            json: JSON body

        Returns:
            RemoteResult with data on 2xx, RemoteError otherwise

        Raises:
            TransportError: If the API cannot be reached or times out
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await self.client.request(method, path, params=query or None, json=json)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}") from e

        body = _decode_body(response)

        if not response.is_success:
            error = RemoteError.from_payload(body, status=response.status_code)
            logger.debug("%s %s -> %d %s", method, path, response.status_code, error.message)
            return RemoteResult(None, error)

        if isinstance(body, dict) and "data" in body:
            return RemoteResult(body["data"], None)
        return RemoteResult(body, None)

    def query(self, path: str, params: dict[str, Any] | None = None) -> Operation:
        """Build a zero-argument GET operation."""
        return read_operation(self, path, params)

    def mutation(
        self,
        method: str,
        path: str | Callable[[Any], str],
        body: Callable[[Any], Any] | None = None,
    ) -> MutationOperation:
        """Build a one-argument write operation (see ``write_operation``)."""
        return write_operation(self, method, path, body)

    async def is_available(self) -> bool:
        """Check if the tracker API answers.

        Returns:
            True if any HTTP response comes back, False on transport failure
        """
        try:
            await self.client.get("/")
            return True
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}
