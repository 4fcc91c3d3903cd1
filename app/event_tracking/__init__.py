"""
Event Tracking Subsystem

Append-only log of card views, feedback and shares.
"""

from .event_tracker import EventTracker
from .event_types import EventType
from .models import Event

__all__ = ['EventTracker', 'EventType', 'Event']
