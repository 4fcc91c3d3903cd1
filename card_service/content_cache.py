"""
In-process content cache with a bounded staleness window.

The whole corpus is held as an immutable snapshot. A request within the TTL
reuses it; the first request after expiry reloads it from the backing store
under a single-writer lock while concurrent callers wait and then reuse the
new snapshot. If the store is down and an older snapshot exists, the stale
snapshot keeps being served.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .content_store import ContentStore
from .errors import StoreUnavailable
from .models import ContentItem

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 5 * 60


class ContentCache:
    """Time-bounded snapshot of the content corpus."""

    def __init__(
        self,
        store: ContentStore,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        only_with_images: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.only_with_images = only_with_images
        self._clock = clock
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._snapshot: Optional[Tuple[ContentItem, ...]] = None
        self._refreshed_at: Optional[float] = None
        self.hits = 0
        self.misses = 0
        self.refreshes = 0
        self.stale_serves = 0

    # Internals ----------------------------------------------------------------

    def _fresh_snapshot(self) -> Optional[Tuple[ContentItem, ...]]:
        snapshot, refreshed_at = self._snapshot, self._refreshed_at
        if snapshot is None or refreshed_at is None:
            return None
        if self._clock() - refreshed_at >= self.ttl_seconds:
            return None
        return snapshot

    def _reload_locked(self) -> Tuple[ContentItem, ...]:
        """Reload from the store. Caller must hold ``self._lock``."""
        now = self._clock()
        try:
            items = self.store.fetch_all(only_with_images=self.only_with_images)
        except StoreUnavailable as exc:
            if self._snapshot is None:
                raise
            # Serve the last known snapshot and retry after another TTL
            self.stale_serves += 1
            self._refreshed_at = now
            logger.warning(
                f"Content store unavailable, serving stale snapshot of {len(self._snapshot)} items: {exc}"
            )
            return self._snapshot

        if self.only_with_images:
            items = [item for item in items if item.has_image]

        snapshot = tuple(items)
        self._snapshot = snapshot
        self._refreshed_at = now
        self.refreshes += 1
        logger.info(
            f"Cached {len(snapshot)} content items{' (with images only)' if self.only_with_images else ''}"
        )
        return snapshot

    def _count(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1

    def _get_snapshot(self) -> Tuple[ContentItem, ...]:
        snapshot = self._fresh_snapshot()
        if snapshot is not None:
            self._count(hit=True)
            return snapshot

        with self._lock:
            # Another caller may have refreshed while we waited
            snapshot = self._fresh_snapshot()
            if snapshot is not None:
                self._count(hit=True)
                return snapshot
            self._count(hit=False)
            return self._reload_locked()

    # Public API ---------------------------------------------------------------

    def get_candidates(self, language: Optional[str] = None) -> List[ContentItem]:
        """Return the cached corpus, optionally restricted to one language.

        Raises:
            StoreUnavailable: if the cache was never populated and the store
                cannot be reached.
        """
        snapshot = self._get_snapshot()
        if language:
            return [item for item in snapshot if item.language == language]
        return list(snapshot)

    def refresh(self) -> int:
        """Force a reload from the store and return the snapshot size."""
        with self._lock:
            return len(self._reload_locked())

    def invalidate(self) -> None:
        """Mark the snapshot as expired; it is kept for the stale fallback."""
        with self._lock:
            self._refreshed_at = None

    def size(self) -> int:
        return len(self._get_snapshot())

    def stats(self) -> Dict[str, object]:
        refreshed_at = self._refreshed_at
        return {
            "size": len(self._snapshot) if self._snapshot is not None else 0,
            "populated": self._snapshot is not None,
            "age_seconds": (self._clock() - refreshed_at) if refreshed_at is not None else None,
            "ttl_seconds": self.ttl_seconds,
            "only_with_images": self.only_with_images,
            "hits": self.hits,
            "misses": self.misses,
            "refreshes": self.refreshes,
            "stale_serves": self.stale_serves,
        }
