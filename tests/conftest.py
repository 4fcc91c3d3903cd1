"""
Shared fixtures for the card service tests.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from card_service import ContentItem, StoreUnavailable

NOW = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_item(
    item_id: str,
    content_type: Optional[str] = "article",
    reading_length: Optional[str] = "short",
    language: Optional[str] = "en",
    days_old: Optional[float] = 0,
    likes: Optional[int] = None,
    with_image: bool = False,
) -> ContentItem:
    doc = {
        "_id": item_id,
        "headline": f"Headline {item_id}",
        "content_type": content_type,
        "reading_length": reading_length,
        "language": language,
        "likes": likes,
    }
    if days_old is not None:
        doc["createdAt"] = NOW - timedelta(days=days_old)
    if with_image:
        doc["imageData"] = "aGVsbG8="
        doc["imageMimeType"] = "image/png"
    return ContentItem.model_validate(doc)


class FakeStore:
    """In-memory content store with a failure switch and call counters."""

    def __init__(self, items: List[ContentItem]):
        self.items = list(items)
        self.fail = False
        self.fetch_calls = 0

    def fetch_all(self, only_with_images: bool = False) -> List[ContentItem]:
        self.fetch_calls += 1
        if self.fail:
            raise StoreUnavailable("store is down")
        if only_with_images:
            return [item for item in self.items if item.has_image]
        return list(self.items)

    def get_by_id(self, item_id: str) -> Optional[ContentItem]:
        if self.fail:
            raise StoreUnavailable("store is down")
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def count(self) -> int:
        return len(self.items)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_items():
    return [
        make_item("a1", content_type="article", reading_length="short", days_old=1),
        make_item("a2", content_type="analysis", reading_length="long", days_old=60),
        make_item("a3", content_type="article", reading_length="medium", language="fr", days_old=10),
    ]


@pytest.fixture
def fake_store(sample_items):
    return FakeStore(sample_items)
