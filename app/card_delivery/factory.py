"""
Factory for creating card delivery module.
"""
import logging
from pathlib import Path
from typing import Optional

from card_service import (
    CardEngine,
    CardSelector,
    ContentCache,
    ContentStore,
    JsonContentStore,
    MongoContentStore,
    SessionCodec,
    build_default_scorer,
)
from .routes import create_card_routes
from .services import VisitorSessionService

logger = logging.getLogger(__name__)


def create_content_store(store_config, base_dir: Optional[Path] = None) -> ContentStore:
    """Build the backing content store named by the configuration.

    Args:
        store_config: StoreConfig selecting the backend
        base_dir: Directory relative content file paths are resolved against
    """
    backend = (store_config.backend or "json").lower()
    if backend == "mongo":
        store = MongoContentStore(
            uri=store_config.mongo_uri,
            database=store_config.mongo_database,
            collection=store_config.mongo_collection,
        )
        logger.info(f"Using MongoDB content store {store_config.mongo_database}.{store_config.mongo_collection}")
        return store
    if backend == "json":
        content_file = Path(store_config.content_file)
        if base_dir is not None and not content_file.is_absolute():
            content_file = base_dir / content_file
        logger.info(f"Using JSON content store {content_file}")
        return JsonContentStore(content_file)
    raise ValueError(f"Unknown content store backend: {store_config.backend!r}")


def create_card_delivery_module(
    session_config,
    cache_config,
    content_store: ContentStore,
    event_tracker=None,
    scorer=None,
) -> dict:
    """Create card delivery module with services and routes.

    Args:
        session_config: SessionConfig with secret, cookie and rotation settings
        cache_config: CacheConfig with TTL and image filter
        content_store: Backing content store
        event_tracker: Optional event tracker
        scorer: Optional relevance scorer (defaults to the five-signal scorer)

    Returns:
        Dictionary containing the engine, cache, session service and blueprint
    """
    cache = ContentCache(
        content_store,
        ttl_seconds=cache_config.ttl_seconds,
        only_with_images=cache_config.only_with_images,
    )
    engine = CardEngine(
        cache=cache,
        store=content_store,
        selector=CardSelector(scorer or build_default_scorer()),
        rotation_ceiling=session_config.rotation_ceiling,
        rotation_keep_recent=session_config.rotation_keep_recent,
    )
    session_service = VisitorSessionService(SessionCodec(session_config.secret), session_config)

    blueprint = create_card_routes(engine, session_service, event_tracker)

    return {
        "engine": engine,
        "cache": cache,
        "session_service": session_service,
        "blueprint": blueprint,
    }
