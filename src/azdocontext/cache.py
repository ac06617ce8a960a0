"""In-memory TTL cache owned by a single domain service.

Entries expire lazily: ``get`` evicts an entry whose age exceeds the TTL,
there is no background sweep. ``size`` therefore counts entries that are
logically expired but not yet looked up.

Cache operations never raise. A value that cannot be serialised for its
diagnostic content hash (unsupported types, cycles, nesting too deep for the
encoder) is logged as ``cache_write_error`` and not stored, so the next
lookup is a plain miss.

Values are shallow-copied on the way in and on the way out. Callers may
append to or reorder a returned list without touching the cached one;
the items inside are shared.

Nothing here awaits, which keeps every read and write atomic under the
event loop.
"""

from __future__ import annotations

import copy
import hashlib
import json
import time
from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

from azdocontext.models.cache import CacheEntry

log = structlog.get_logger()

T = TypeVar("T")


def content_hash(value: object) -> str:
    """MD5 of the JSON form of ``value``. Raises on unserialisable input."""
    payload = json.dumps(value, sort_keys=True, default=_encode_model)
    return hashlib.md5(payload.encode()).hexdigest()


def _encode_model(value: object) -> object:
    # pydantic models are cached directly; anything else is unserialisable
    model_dump = getattr(value, "model_dump", None)
    if model_dump is None:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return model_dump(mode="json")


class Cache(Generic[T]):
    """Key/value store with a fixed time-to-live per entry."""

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> T | None:
        """Return the cached value, or ``None`` on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.stored_at > self._ttl:
            del self._entries[key]
            log.debug("cache_expired", key=key)
            return None

        return copy.copy(entry.value)

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``. Non-fatal on failure."""
        try:
            digest = content_hash(value)
        except Exception:
            log.warning("cache_write_error", key=key, exc_info=True)
            return

        self._entries[key] = CacheEntry(
            value=copy.copy(value), stored_at=self._clock(), content_hash=digest
        )

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)
