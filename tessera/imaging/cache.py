"""
Image Cache - Cropped images held in memory for a fixed window.

The cache:
- Keys entries by an opaque id that embeds the insertion timestamp
- Treats entries older than the expiry window as absent (checked on get)
- Optionally bounds total bytes, evicting expired then oldest entries
- Is safe for concurrent put/get from independent requests

Expiry is a hard contract. Eviction under the byte budget is not: an
entry may disappear early when memory is tight, and callers see the
same miss either way.
"""

from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable
import logging
import secrets
import threading
import time

from ..engine_core.errors import CapacityError

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 30 * 60


@dataclass(frozen=True)
class CacheEntry:
    """A cached image."""
    cache_id: str
    data: bytes
    content_type: str
    created_at: float

    @property
    def size(self) -> int:
        return len(self.data)


class ImageCache:
    """
    In-memory image cache with lazy expiry.

    Usage:
        cache = ImageCache(expiry_seconds=1800)

        cache_id = cache.put(jpeg_bytes, photo_id="3945683")
        entry = cache.get(cache_id)
        if entry is None:
            ...  # unknown or expired
    """

    def __init__(
        self,
        expiry_seconds: float = DEFAULT_EXPIRY_SECONDS,
        max_bytes: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.expiry_seconds = expiry_seconds
        self.max_bytes = max_bytes or None
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._total_bytes = 0
        self._lock = threading.Lock()

    def put(
        self,
        data: bytes,
        content_type: str = "image/jpeg",
        photo_id: str | int | None = None,
    ) -> str:
        """
        Store bytes under a fresh id and return the id.

        Raises CapacityError if the entry alone exceeds the byte budget.
        """
        size = len(data)
        if self.max_bytes is not None and size > self.max_bytes:
            raise CapacityError(
                f"Image of {size} bytes exceeds cache budget of {self.max_bytes} bytes"
            )

        now = self._clock()
        cache_id = self._make_cache_id(photo_id, now)
        entry = CacheEntry(
            cache_id=cache_id,
            data=data,
            content_type=content_type,
            created_at=now,
        )

        with self._lock:
            self._make_room(size, now)
            self._entries[cache_id] = entry
            self._total_bytes += size

        logger.info("Cached image %s (%d bytes)", cache_id, size)
        return cache_id

    def get(self, cache_id: str) -> CacheEntry | None:
        """Return the entry, or None if it never existed or has expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(cache_id)
            if entry is None:
                return None
            if self._is_expired(entry, now):
                self._remove(cache_id)
                logger.debug("Cache entry %s expired", cache_id)
                return None
            return entry

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, cache_id: str) -> bool:
        return self.get(cache_id) is not None

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    # =========================================================================
    # Internals (call with lock held)
    # =========================================================================

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.expiry_seconds

    def _remove(self, cache_id: str):
        entry = self._entries.pop(cache_id, None)
        if entry is not None:
            self._total_bytes -= entry.size

    def _purge_expired_locked(self, now: float) -> int:
        expired = [cid for cid, entry in self._entries.items() if self._is_expired(entry, now)]
        for cache_id in expired:
            self._remove(cache_id)
        return len(expired)

    def _make_room(self, size: int, now: float):
        if self.max_bytes is None or self._total_bytes + size <= self.max_bytes:
            return
        self._purge_expired_locked(now)
        while self._entries and self._total_bytes + size > self.max_bytes:
            oldest_id = next(iter(self._entries))
            self._remove(oldest_id)
            logger.warning("Evicted %s under memory pressure", oldest_id)

    @staticmethod
    def _make_cache_id(photo_id: str | int | None, now: float) -> str:
        """img_<photo>_<millis>_<random>; the suffix keeps same-millisecond puts unique."""
        millis = int(now * 1000)
        return f"img_{photo_id if photo_id is not None else 'x'}_{millis}_{secrets.token_hex(4)}"
