"""
Event Tracker

Records card views, feedback and shares to an append-only JSON lines file.
Tracking is best effort: a failed write is logged and never fails the request
that triggered it.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any

from .event_types import EventType
from .models import Event

logger = logging.getLogger(__name__)

EVENTS_FILE_NAME = "card_events.jsonl"


class EventTracker:
    """Main event tracking system."""

    def __init__(self, user_data_dir: Path):
        """Initialize the event tracker.

        Args:
            user_data_dir: Directory where the event log is stored
        """
        self.user_data_dir = Path(user_data_dir)
        self.user_data_dir.mkdir(parents=True, exist_ok=True)
        self.events_file = self.user_data_dir / EVENTS_FILE_NAME
        self._lock = threading.Lock()

    def track_event(
        self,
        event_type: str,
        card_id: Optional[str] = None,
        session_id: str = "anonymous",
        action: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        ts: Optional[str] = None
    ) -> bool:
        """Track a single event.

        Args:
            event_type: Type of event (must be in allowed types)
            card_id: Card the event refers to
            session_id: Session identifier; visitors are anonymous
            action: Feedback action for feedback events
            meta: Optional metadata dictionary
            ts: Optional timestamp (if not provided, uses current time)

        Returns:
            True if event was tracked successfully, False otherwise
        """
        if not EventType.is_valid(event_type):
            logger.warning(f"Ignoring event with unknown type: {event_type!r}")
            return False

        event = Event(
            ts=ts or datetime.now().astimezone().isoformat(timespec="seconds"),
            type=event_type,
            card_id=card_id,
            session_id=session_id or "anonymous",
            action=action,
            meta=meta or {}
        )

        try:
            line = json.dumps(event.to_dict(), ensure_ascii=False)
            with self._lock:
                with open(self.events_file, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
        except (OSError, TypeError, ValueError):
            logger.exception(f"Error tracking {event_type} event for card {card_id}")
            return False

        return True

    def track_card_view(self, card_id: str, session_id: str = "anonymous") -> bool:
        return self.track_event(EventType.CARD_VIEW.value, card_id=card_id, session_id=session_id)

    def track_feedback(self, card_id: str, action: str, session_id: str = "anonymous") -> bool:
        return self.track_event(EventType.FEEDBACK.value, card_id=card_id, session_id=session_id, action=action)

    def track_share(self, card_id: str, session_id: str = "anonymous") -> bool:
        return self.track_event(EventType.SHARE.value, card_id=card_id, session_id=session_id)

    def get_events(self, limit: Optional[int] = None) -> List[Event]:
        """Get recorded events, oldest first.

        Args:
            limit: Optional limit on number of events to return

        Returns:
            List of Event objects
        """
        events: List[Event] = []
        with self._lock:
            try:
                with open(self.events_file, "r", encoding="utf-8") as f:
                    lines = f.readlines()
            except FileNotFoundError:
                return []

        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                events.append(Event.from_dict(json.loads(line)))
            except json.JSONDecodeError:
                logger.warning("Skipping corrupt line in event log")

        # Apply limit if specified
        if limit is not None:
            events = events[-limit:]  # Get most recent events

        return events

    def get_event_counts(self) -> Dict[str, int]:
        """Get event counts by type.

        Returns:
            Dictionary with event type counts
        """
        stats: Dict[str, int] = {}
        for event in self.get_events():
            stats[event.type] = stats.get(event.type, 0) + 1
        return stats
