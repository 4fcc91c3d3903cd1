"""
Factory for creating event tracking module.
"""
from pathlib import Path
from .event_tracker import EventTracker


def create_event_tracking_module(user_data_dir: Path) -> dict:
    """Create event tracking module.

    Args:
        user_data_dir: Directory to store the event log

    Returns:
        Dictionary containing the service
    """
    event_tracker = EventTracker(user_data_dir)

    return {
        "service": event_tracker
    }
