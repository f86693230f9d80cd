"""Caller-side retry for read operations.

The cache never retries on its own. A query observer configured with
``retry > 0`` wraps its operation with ``with_retry`` before handing it over.
"""

import asyncio
import logging
from collections.abc import Callable

from query_sync.protocols import Operation, RemoteResult

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 30.0) -> float:
    """Exponential backoff: ``min(base * 2**attempt, cap)`` seconds."""
    return min(base * (2**attempt), cap)


def with_retry(
    operation: Operation,
    retries: int,
    delay: Callable[[int], float] = backoff_delay,
) -> Operation:
    """Wrap a read operation so failures are retried.

    A returned error and a raised exception both count as a failure. The last
    failure is passed through unchanged once the retries are exhausted.

    Args:
        operation: Zero-argument read operation
        retries: Number of extra attempts after the first one
        delay: Maps the attempt index (0-based) to a sleep in seconds

    Returns:
        A new operation with the same contract
    """
    if retries <= 0:
        return operation

    async def retrying() -> RemoteResult:
        attempt = 0
        while True:
            try:
                data, error = await operation()
            except Exception:
                if attempt >= retries:
                    raise
                logger.debug("Operation raised, retrying (attempt %d/%d)", attempt + 1, retries)
            else:
                if error is None or attempt >= retries:
                    return RemoteResult(data, error)
                logger.debug("Operation failed, retrying (attempt %d/%d)", attempt + 1, retries)

            await asyncio.sleep(delay(attempt))
            attempt += 1

    return retrying
