"""
Exception hierarchy for the card service core.

Only ``StoreUnavailable`` is expected to reach the HTTP shell as a failure;
``DecodeFailure`` is recovered locally by the session codec.
"""


class CardServiceError(Exception):
    """Base class for all card service errors."""


class DecodeFailure(CardServiceError):
    """A session token was malformed, truncated, forged or sealed with another key."""


class StoreUnavailable(CardServiceError):
    """The backing content store could not be reached."""


class ItemNotFound(CardServiceError):
    """The requested content item does not exist in the backing store."""

    def __init__(self, item_id: str):
        super().__init__(f"Content item not found: {item_id}")
        self.item_id = item_id


class InvalidFeedbackAction(CardServiceError):
    """Feedback action outside of like/dislike/skip."""

    def __init__(self, action: str):
        super().__init__(f"Invalid feedback action: {action!r}")
        self.action = action
