"""Query key hashing.

Keys are ordered tuples such as ``("tasks", user_id, {"type": "daily"})``.
Two keys address the same entry when they are structurally equal, so dicts
with different insertion order hash identically.
"""

import json
from collections.abc import Sequence
from typing import Any

QueryKey = str | Sequence[Any]


def normalize_key(key: QueryKey) -> list[Any]:
    """Return the canonical list form of a key.

    A bare string is treated as a one-element key. Nested tuples become lists
    and dicts are key-sorted, matching what ``hash_key`` serializes.
    """
    if isinstance(key, str):
        return [key]
    if not isinstance(key, Sequence):
        raise TypeError(f"Query key must be a string or a sequence, got {type(key).__name__}")
    return json.loads(hash_key(key))


def hash_key(key: QueryKey) -> str:
    """Serialize a key to its canonical JSON string."""
    if isinstance(key, str):
        key = [key]
    return json.dumps(list(key), sort_keys=True, separators=(",", ":"), default=str)


def matches_key(entry_key: Sequence[Any], filter_key: QueryKey, exact: bool = False) -> bool:
    """Check whether a normalized entry key is addressed by ``filter_key``.

    Args:
        entry_key: Normalized key of a cache entry
        filter_key: Key or key prefix to match against
        exact: Require full equality instead of prefix match

    Returns:
        True if the entry is addressed by the filter
    """
    prefix = normalize_key(filter_key)
    if exact:
        return list(entry_key) == prefix
    return list(entry_key[: len(prefix)]) == prefix
