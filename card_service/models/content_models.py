"""
Content-related data models.

This module contains the Pydantic model for a single content card as it is
read from the backing store and held by the content cache.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeInt, field_validator


class ContentItem(BaseModel):
    """Immutable content card record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        validation_alias=AliasChoices("id", "_id"),
        description="Unique, opaque item identifier",
    )
    content_type: Optional[str] = Field(default=None, description="Kind of content, e.g. article or analysis")
    reading_length: Optional[str] = Field(default=None, description="Reading length bucket: short, medium or long")
    language: Optional[str] = Field(default=None, description="Content language code")
    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt"),
        description="Creation time (timezone aware)",
    )
    likes: Optional[NonNegativeInt] = Field(default=None, description="Number of likes, if tracked")
    image_data: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_data", "imageData"),
        description="Base64 encoded image payload",
    )
    image_mime_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_mime_type", "imageMimeType"),
        description="MIME type of the image payload",
    )
    # Display fields, passed through to the client untouched
    headline: Optional[str] = Field(default=None)
    subheadline: Optional[str] = Field(default=None)
    byline: Optional[str] = Field(default=None)
    body: Optional[str] = Field(default=None)
    reader_type: Optional[str] = Field(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # MongoDB hands out ObjectId instances
        if value is None:
            raise ValueError("id is required")
        return str(value)

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def has_image(self) -> bool:
        """Whether the card carries an image payload."""
        return bool(self.image_data) and bool(self.image_mime_type)

    def age_days(self, now: datetime) -> Optional[float]:
        """Age of the item in fractional days, or None when undated."""
        if self.created_at is None:
            return None
        return (now - self.created_at).total_seconds() / 86400.0

    def to_card_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape delivered to clients."""
        return {
            "_id": self.id,
            "headline": self.headline,
            "subheadline": self.subheadline,
            "byline": self.byline,
            "body": self.body,
            "reader_type": self.reader_type,
            "reading_length": self.reading_length,
            "content_type": self.content_type,
            "language": self.language,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "imageData": self.image_data,
            "imageMimeType": self.image_mime_type,
        }
