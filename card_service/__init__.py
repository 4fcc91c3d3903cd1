# Card service package: selection and personalization core

from .errors import (
    CardServiceError,
    DecodeFailure,
    InvalidFeedbackAction,
    ItemNotFound,
    StoreUnavailable,
)
from .models import ContentItem, PreferenceCounters, VisitorState
from .session_codec import SessionCodec, derive_key
from .content_store import ContentStore, JsonContentStore, MongoContentStore
from .content_cache import ContentCache
from .recommendations import (
    CardSelector,
    RelevanceScorer,
    SelectionResult,
    build_default_scorer,
)
from .profile_updater import (
    FeedbackAction,
    apply_delivery,
    apply_feedback,
    apply_show_later,
    rotate_delivered,
)
from .engine import CardEngine, CardStats, DeliveryResult
from .logging_config import ThreadSafeLoggingConfig, setup_logging, stop_logging

__all__ = [
    "CardServiceError",
    "DecodeFailure",
    "InvalidFeedbackAction",
    "ItemNotFound",
    "StoreUnavailable",
    "ContentItem",
    "PreferenceCounters",
    "VisitorState",
    "SessionCodec",
    "derive_key",
    "ContentStore",
    "JsonContentStore",
    "MongoContentStore",
    "ContentCache",
    "CardSelector",
    "RelevanceScorer",
    "SelectionResult",
    "build_default_scorer",
    "FeedbackAction",
    "apply_delivery",
    "apply_feedback",
    "apply_show_later",
    "rotate_delivered",
    "CardEngine",
    "CardStats",
    "DeliveryResult",
    "setup_logging",
    "stop_logging",
    "ThreadSafeLoggingConfig",
]
