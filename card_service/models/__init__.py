"""
Pydantic models shared by the card service core.
"""

from .content_models import ContentItem
from .visitor_models import DEFAULT_LANGUAGE, PreferenceCounters, VisitorState

__all__ = [
    "ContentItem",
    "DEFAULT_LANGUAGE",
    "PreferenceCounters",
    "VisitorState",
]
