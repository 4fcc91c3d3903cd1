"""
Card engine: the facade the transport layer talks to.

The engine strings the core together for one request: the content cache
supplies candidates, the selector picks a card, and the profile updater folds
the delivery or feedback back into the visitor state. Token encoding and
decoding stay with the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .content_cache import ContentCache
from .content_store import ContentStore
from .errors import InvalidFeedbackAction, ItemNotFound
from .models import ContentItem, VisitorState
from .profile_updater import (
    DEFAULT_ROTATION_CEILING,
    DEFAULT_ROTATION_KEEP_RECENT,
    FeedbackAction,
    apply_delivery,
    apply_feedback,
    apply_show_later,
)
from .recommendations import CardSelector, build_default_scorer

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Result of a card delivery."""

    item: Optional[ContentItem]
    state: VisitorState
    all_seen: bool = False
    score: Optional[float] = None

    @property
    def has_item(self) -> bool:
        return self.item is not None


@dataclass
class CardStats:
    """Progress of a visitor through the corpus."""

    total_available: int
    total_seen: int
    percent_complete: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalAvailable": self.total_available,
            "totalSeen": self.total_seen,
            "percentageComplete": self.percent_complete,
        }


class CardEngine:
    """Delivers cards and records feedback over a visitor state."""

    def __init__(
        self,
        cache: ContentCache,
        store: ContentStore,
        selector: Optional[CardSelector] = None,
        rotation_ceiling: int = DEFAULT_ROTATION_CEILING,
        rotation_keep_recent: int = DEFAULT_ROTATION_KEEP_RECENT,
    ):
        self.cache = cache
        self.store = store
        self.selector = selector or CardSelector(build_default_scorer())
        self.rotation_ceiling = rotation_ceiling
        self.rotation_keep_recent = rotation_keep_recent

    def deliver_card(self, state: VisitorState, language: Optional[str] = None) -> DeliveryResult:
        """Select the next card and record its delivery.

        An empty result (no candidate matched the filter) leaves the state as
        it was.

        Raises:
            StoreUnavailable: if the cache cannot be populated.
        """
        candidates = self.cache.get_candidates(language=language)
        selection = self.selector.select(state, candidates)
        if not selection.has_item:
            logger.info(f"No candidates available (language={language!r})")
            return DeliveryResult(item=None, state=state)

        new_state = apply_delivery(
            state,
            selection.item,
            rotation_ceiling=self.rotation_ceiling,
            keep_recent=self.rotation_keep_recent,
        )
        return DeliveryResult(
            item=selection.item,
            state=new_state,
            all_seen=selection.was_all_seen_fallback,
            score=selection.score,
        )

    def _require_item(self, item_id: str) -> ContentItem:
        item = self.store.get_by_id(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    def submit_feedback(self, state: VisitorState, item_id: str, action: str) -> VisitorState:
        """Record feedback on an existing card.

        Raises:
            InvalidFeedbackAction: for actions outside like/dislike/skip.
            ItemNotFound: if the card does not exist.
        """
        if not FeedbackAction.is_valid(action):
            raise InvalidFeedbackAction(str(action))
        self._require_item(item_id)
        return apply_feedback(state, item_id, action)

    def show_later(self, state: VisitorState, item_id: str) -> VisitorState:
        """Make an already delivered card eligible again."""
        self._require_item(item_id)
        return apply_show_later(state, item_id)

    def get_stats(self, state: VisitorState) -> CardStats:
        total = self.cache.size()
        seen = len(state.delivered_items)
        percent = round(seen / total * 100, 1) if total > 0 else 0.0
        return CardStats(total_available=total, total_seen=seen, percent_complete=percent)

    def get_profile_summary(self, state: VisitorState) -> Dict[str, Any]:
        """Stats plus the visitor's preference profile."""
        summary = self.get_stats(state).to_dict()
        summary.update({
            "totalLikes": len(state.liked_items),
            "totalClicks": state.interaction_count,
            "lastSeen": state.last_seen_at.isoformat(),
            "preferredTypes": dict(state.preferences.content_types),
            "readingLengths": dict(state.preferences.reading_lengths),
            "languages": list(state.languages),
        })
        return summary

    def prewarm(self) -> bool:
        """Populate the cache ahead of the first request."""
        try:
            size = self.cache.refresh()
        except Exception:
            logger.exception("Card cache prewarm failed; first request will retry")
            return False
        logger.info(f"Card cache prewarmed with {size} items")
        return True
