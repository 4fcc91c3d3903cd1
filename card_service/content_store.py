"""
Backing content stores.

The content cache and the card engine only depend on the ``ContentStore``
protocol; two adapters are provided: a JSON file store for local runs and
tests, and a MongoDB store for deployments.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError
from bson import ObjectId
from bson.errors import InvalidId

from .errors import StoreUnavailable
from .models import ContentItem

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Read interface of the backing content store."""

    def fetch_all(self, only_with_images: bool = False) -> List[ContentItem]:
        """Return the whole corpus, optionally only items carrying an image."""

    def get_by_id(self, item_id: str) -> Optional[ContentItem]:
        """Return a single item or None when it does not exist."""

    def count(self) -> int:
        """Return the number of items in the store."""


def parse_items(documents: Iterable[Dict[str, Any]], source: str = "store") -> List[ContentItem]:
    """Validate raw documents, skipping the ones that do not form a valid item."""
    items: List[ContentItem] = []
    for doc in documents:
        try:
            items.append(ContentItem.model_validate(doc))
        except ValidationError as exc:
            logger.warning(f"Skipping invalid content document from {source}: {exc.error_count()} error(s)")
    return items


# ---------------------------------------------------------------------------
# JSON file store
# ---------------------------------------------------------------------------


class JsonContentStore:
    """Content store backed by a JSON file.

    The file holds either a list of documents or an object with an ``items``
    list. The file is re-read on every call; the content cache in front of
    it decides how often that happens.
    """

    def __init__(self, content_file: Path):
        self.content_file = Path(content_file)

    def _load_documents(self) -> List[Dict[str, Any]]:
        try:
            with open(self.content_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StoreUnavailable(f"Cannot read content file {self.content_file}: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise StoreUnavailable(f"Content file {self.content_file} does not contain a list of items")
        return [doc for doc in data if isinstance(doc, dict)]

    def fetch_all(self, only_with_images: bool = False) -> List[ContentItem]:
        items = parse_items(self._load_documents(), source=str(self.content_file))
        if only_with_images:
            items = [item for item in items if item.has_image]
        return items

    def get_by_id(self, item_id: str) -> Optional[ContentItem]:
        for item in self.fetch_all():
            if item.id == item_id:
                return item
        return None

    def count(self) -> int:
        return len(self.fetch_all())


# ---------------------------------------------------------------------------
# MongoDB store
# ---------------------------------------------------------------------------


class MongoContentStore:
    """Content store backed by a MongoDB collection."""

    INDEXED_FIELDS = ("language", "content_type", "reading_length", "createdAt")

    def __init__(
        self,
        uri: str,
        database: str,
        collection: str = "contentcards",
        timeout_ms: int = 1200,
        client: Optional[MongoClient] = None,
    ):
        self.uri = uri
        self.database = database
        self.collection_name = collection
        self.timeout_ms = timeout_ms
        self._client = client

    def _collection(self):
        if self._client is None:
            self._client = MongoClient(
                self.uri,
                serverSelectionTimeoutMS=self.timeout_ms,
                connectTimeoutMS=self.timeout_ms,
            )
        return self._client[self.database][self.collection_name]

    def fetch_all(self, only_with_images: bool = False) -> List[ContentItem]:
        query: Dict[str, Any] = {}
        if only_with_images:
            query["imageData"] = {"$exists": True, "$ne": None}
            query["imageMimeType"] = {"$exists": True, "$ne": None}
        try:
            documents = list(self._collection().find(query))
        except PyMongoError as exc:
            raise StoreUnavailable(f"MongoDB query failed: {exc}") from exc
        return parse_items(documents, source=f"mongo:{self.collection_name}")

    def get_by_id(self, item_id: str) -> Optional[ContentItem]:
        try:
            object_id = ObjectId(item_id)
        except (InvalidId, TypeError):
            return None
        try:
            document = self._collection().find_one({"_id": object_id})
        except PyMongoError as exc:
            raise StoreUnavailable(f"MongoDB lookup failed: {exc}") from exc
        if document is None:
            return None
        items = parse_items([document], source=f"mongo:{self.collection_name}")
        return items[0] if items else None

    def count(self) -> int:
        try:
            return self._collection().count_documents({})
        except PyMongoError as exc:
            raise StoreUnavailable(f"MongoDB count failed: {exc}") from exc

    def ensure_indexes(self) -> List[str]:
        """Create the single-field indexes used by card queries."""
        collection = self._collection()
        created = []
        try:
            for field_name in self.INDEXED_FIELDS:
                created.append(collection.create_index([(field_name, ASCENDING)]))
        except PyMongoError as exc:
            raise StoreUnavailable(f"MongoDB index creation failed: {exc}") from exc
        logger.info(f"Ensured {len(created)} indexes on {self.database}.{self.collection_name}")
        return created

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
