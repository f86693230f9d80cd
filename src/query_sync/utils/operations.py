"""Operation builders over a RemoteDataClient.

Turn a route into the zero-argument read or one-argument write that the
cache, observers and mutations expect.
"""

from collections.abc import Callable
from typing import Any

from query_sync.protocols import MutationOperation, Operation, RemoteDataClient, RemoteResult


def read_operation(
    client: RemoteDataClient,
    path: str,
    params: dict[str, Any] | None = None,
) -> Operation:
    """Build a GET operation for ``path``."""

    async def operation() -> RemoteResult:
        return await client.request("GET", path, params=params)

    return operation


def write_operation(
    client: RemoteDataClient,
    method: str,
    path: str | Callable[[Any], str],
    body: Callable[[Any], Any] | None = None,
) -> MutationOperation:
    """Build a write operation.

    Args:
        client: Client the request is sent through
        method: HTTP verb
        path: Fixed path, or a function of the variables returning one
        body: Maps variables to the JSON body. Defaults to the variables
            themselves; DELETE requests send no body.

    Returns:
        Operation taking the mutation variables
    """

    async def operation(variables: Any) -> RemoteResult:
        target = path(variables) if callable(path) else path
        if body is not None:
            payload = body(variables)
        elif method.upper() == "DELETE":
            payload = None
        else:
            payload = variables
        return await client.request(method, target, json=payload)

    return operation
