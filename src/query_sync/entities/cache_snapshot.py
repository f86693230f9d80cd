"""Cache snapshot domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheSnapshot:
    """A persisted successful read.

    Attributes:
        key: Normalized query key
        data: JSON-serializable payload
        updated_at: Wall-clock Unix timestamp of the fetch
    """

    key: list[Any]
    data: Any
    updated_at: float
