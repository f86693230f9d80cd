"""Domain entities for internal representation.

These are plain dataclasses used by services and repositories. They are NOT
used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
"""

from .cache_entry import CacheEntry, QueryStatus
from .cache_snapshot import CacheSnapshot
from .query_key import QueryKey, hash_key, matches_key, normalize_key
from .query_result import MutationStatus, QueryResult
from .result import Err, Ok, Result

__all__ = [
    "CacheEntry",
    "CacheSnapshot",
    "Err",
    "MutationStatus",
    "Ok",
    "QueryKey",
    "QueryResult",
    "QueryStatus",
    "Result",
    "hash_key",
    "matches_key",
    "normalize_key",
]
