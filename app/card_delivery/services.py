"""
Card delivery services: visitor session transport over cookies.
"""
import logging
from typing import Optional

from flask import Response, request

from card_service import SessionCodec, VisitorState

logger = logging.getLogger(__name__)


class VisitorSessionService:
    """Loads and stores the visitor state in the encrypted session cookie."""

    def __init__(self, codec: SessionCodec, session_config):
        self.codec = codec
        self.config = session_config

    def new_state(self) -> VisitorState:
        return VisitorState.new(self.config.default_language)

    def get_raw_token(self) -> Optional[str]:
        """Get the session token from the current request cookies."""
        return request.cookies.get(self.config.cookie_name)

    def load_state(self) -> VisitorState:
        """Decode the visitor state, starting over when the token is unusable."""
        state, recovered = self.codec.decode_or_new(self.get_raw_token(), self.new_state)
        if recovered:
            logger.info("Replaced undecodable session cookie with a fresh visitor state")
        return state

    def save_state(self, response: Response, state: VisitorState) -> Response:
        """Seal the visitor state into the session cookie on ``response``."""
        response.set_cookie(
            self.config.cookie_name,
            self.codec.encode(state),
            max_age=self.config.cookie_max_age_seconds,
            httponly=True,
            secure=self.config.secure_cookies,
            samesite="Strict",
        )
        return response

    def clear_state(self, response: Response) -> Response:
        """Expire the session cookie."""
        response.delete_cookie(
            self.config.cookie_name,
            httponly=True,
            secure=self.config.secure_cookies,
            samesite="Strict",
        )
        return response
