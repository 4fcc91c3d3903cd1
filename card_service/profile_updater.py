"""
Profile updates: fold deliveries and feedback back into a visitor state.

All functions are pure: they return a new ``VisitorState`` and leave the
input untouched, and none of them performs I/O.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Union

from .errors import InvalidFeedbackAction
from .models import ContentItem, VisitorState

DEFAULT_ROTATION_CEILING = 100
DEFAULT_ROTATION_KEEP_RECENT = 50


class FeedbackAction(Enum):
    """Feedback a visitor can leave on a card."""

    LIKE = "like"
    DISLIKE = "dislike"
    SKIP = "skip"

    @classmethod
    def is_valid(cls, action: str) -> bool:
        """Check if an action string is valid."""
        try:
            cls(action)
            return True
        except ValueError:
            return False

    @classmethod
    def get_allowed_actions(cls) -> set[str]:
        return {a.value for a in cls}


def _dedupe(ids: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item_id in ids:
        if item_id not in seen:
            seen.add(item_id)
            result.append(item_id)
    return result


def rotate_delivered(
    delivered: List[str],
    liked: List[str],
    ceiling: int = DEFAULT_ROTATION_CEILING,
    keep_recent: int = DEFAULT_ROTATION_KEEP_RECENT,
) -> List[str]:
    """Shrink the delivered list once it grows past ``ceiling``.

    The result is the ``keep_recent`` most recent deliveries unioned with all
    liked items. Liked items outside the recent window are placed first so
    that the list stays roughly oldest-first. If many likes push the union
    past the ceiling, the oldest non-liked entries go first.
    """
    if ceiling < 1:
        raise ValueError(f"Rotation ceiling must be at least 1, got {ceiling}")
    if len(delivered) <= ceiling:
        return list(delivered)

    keep_recent = max(0, min(keep_recent, ceiling))
    recent = delivered[-keep_recent:] if keep_recent else []
    recent_set = set(recent)
    older_likes = [item_id for item_id in liked if item_id not in recent_set]
    rotated = _dedupe(older_likes + recent)

    overflow = len(rotated) - ceiling
    if overflow > 0:
        liked_set = set(liked)
        kept = []
        for item_id in rotated:
            if overflow > 0 and item_id not in liked_set:
                overflow -= 1
                continue
            kept.append(item_id)
        # Only likes remain and still too many: keep the latest
        rotated = kept[-ceiling:]
    return rotated


def apply_delivery(
    state: VisitorState,
    item: ContentItem,
    rotation_ceiling: int = DEFAULT_ROTATION_CEILING,
    keep_recent: int = DEFAULT_ROTATION_KEEP_RECENT,
    now: Optional[datetime] = None,
) -> VisitorState:
    """Record that ``item`` was delivered to the visitor."""
    delivered = list(state.delivered_items)
    if item.id not in delivered:
        delivered.append(item.id)
    delivered = rotate_delivered(delivered, state.liked_items, rotation_ceiling, keep_recent)

    content_types = dict(state.preferences.content_types)
    if item.content_type:
        content_types[item.content_type] = content_types.get(item.content_type, 0) + 1

    reading_lengths = dict(state.preferences.reading_lengths)
    if item.reading_length:
        reading_lengths[item.reading_length] = reading_lengths.get(item.reading_length, 0) + 1

    languages = list(state.languages)
    if item.language and item.language not in languages:
        languages.append(item.language)

    preferences = state.preferences.model_copy(
        update={"content_types": content_types, "reading_lengths": reading_lengths}
    )
    return state.model_copy(
        update={
            "delivered_items": delivered,
            "preferences": preferences,
            "languages": languages,
            "interaction_count": state.interaction_count + 1,
            "last_seen_at": now or datetime.now(timezone.utc),
        }
    )


def apply_feedback(
    state: VisitorState,
    item_id: str,
    action: Union[str, FeedbackAction],
    now: Optional[datetime] = None,
) -> VisitorState:
    """Record visitor feedback on a card.

    Only ``like`` changes the profile; ``dislike`` and ``skip`` are accepted
    without touching any counter.
    """
    try:
        action = FeedbackAction(action)
    except ValueError as exc:
        raise InvalidFeedbackAction(str(action)) from exc

    liked = list(state.liked_items)
    if action is FeedbackAction.LIKE and item_id not in liked:
        liked.append(item_id)

    return state.model_copy(
        update={
            "liked_items": liked,
            "last_seen_at": now or datetime.now(timezone.utc),
        }
    )


def apply_show_later(
    state: VisitorState,
    item_id: str,
    now: Optional[datetime] = None,
) -> VisitorState:
    """Forget that ``item_id`` was delivered so it can be shown again."""
    return state.model_copy(
        update={
            "delivered_items": [i for i in state.delivered_items if i != item_id],
            "last_seen_at": now or datetime.now(timezone.utc),
        }
    )
