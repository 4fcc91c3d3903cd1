"""
Visitor state data models.

The visitor state is the complete personalization profile of one anonymous
visitor. It never lives on the server: it is sealed into the session cookie
by ``card_service.session_codec`` and travels back and forth on every request.
Unknown fields are ignored and missing fields take their defaults so the
token format can grow without invalidating cookies already in the wild.
"""

from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

DEFAULT_LANGUAGE = "en"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PreferenceCounters(BaseModel):
    """Frequency tables of delivered content attributes."""

    model_config = ConfigDict(extra="ignore")

    content_types: Dict[str, NonNegativeInt] = Field(
        default_factory=dict, description="content_type -> number of deliveries"
    )
    reading_lengths: Dict[str, NonNegativeInt] = Field(
        default_factory=dict, description="reading_length -> number of deliveries"
    )


class VisitorState(BaseModel):
    """Personalization state carried in the encrypted session token."""

    model_config = ConfigDict(extra="ignore")

    delivered_items: List[str] = Field(
        default_factory=list, description="Ids already shown, oldest first, no duplicates"
    )
    liked_items: List[str] = Field(
        default_factory=list, description="Ids the visitor explicitly liked, no duplicates"
    )
    preferences: PreferenceCounters = Field(default_factory=PreferenceCounters)
    languages: List[str] = Field(
        default_factory=lambda: [DEFAULT_LANGUAGE],
        description="Languages the visitor has been shown content in",
    )
    interaction_count: NonNegativeInt = Field(default=0, description="Total number of deliveries")
    last_seen_at: datetime = Field(default_factory=_utcnow, description="Time of the last mutation")

    @classmethod
    def new(cls, default_language: str = DEFAULT_LANGUAGE) -> "VisitorState":
        """Create a fresh state for a visitor without a valid token."""
        return cls(languages=[default_language] if default_language else [])

    def has_seen(self, item_id: str) -> bool:
        return item_id in self.delivered_items

    def is_cold_start(self, threshold: int) -> bool:
        return self.interaction_count < threshold
