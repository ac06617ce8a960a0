from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value with the monotonic time it was stored."""

    value: T
    stored_at: float
    content_hash: str  # MD5 of the JSON form, diagnostics only
