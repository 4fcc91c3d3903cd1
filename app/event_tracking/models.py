"""
Data Models for Event Tracking

Defines the data structures used by the event tracking system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Event:
    """Internal event structure for storage."""

    ts: str
    type: str
    card_id: Optional[str] = None
    session_id: str = "anonymous"
    action: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ts": self.ts,
            "type": self.type,
            "card_id": self.card_id,
            "session_id": self.session_id,
            "action": self.action,
            "meta": self.meta
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        """Create Event from dictionary."""
        return cls(
            ts=data.get("ts", ""),
            type=data.get("type", ""),
            card_id=data.get("card_id"),
            session_id=data.get("session_id", "anonymous"),
            action=data.get("action"),
            meta=data.get("meta") or {}
        )
