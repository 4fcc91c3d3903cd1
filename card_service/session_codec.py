"""
Session codec: seals a VisitorState into an opaque cookie token and back.

Token layout is ``<hex-nonce>:<hex-ciphertext>``. The ciphertext is the
AES-256-GCM encryption of the state's JSON form, authentication tag included,
so any modification of either field is detected on decode. The key is the
SHA-256 digest of the configured secret and never appears in the token.
"""

import hashlib
import logging
import os
from typing import Callable, Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import DecodeFailure
from .models import VisitorState

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TOKEN_SEPARATOR = ":"


def derive_key(secret: str) -> bytes:
    """Derive the 256-bit symmetric key from the configured secret."""
    if not secret:
        raise ValueError("A non-empty session secret is required")
    return hashlib.sha256(secret.encode("utf-8")).digest()


class SessionCodec:
    """Encrypts and decrypts visitor state tokens."""

    def __init__(self, secret: str):
        self._aead = AESGCM(derive_key(secret))

    def encode(self, state: VisitorState) -> str:
        """Seal a state into a token; every call uses a fresh random nonce."""
        nonce = os.urandom(NONCE_SIZE)
        plaintext = state.model_dump_json().encode("utf-8")
        ciphertext = self._aead.encrypt(nonce, plaintext, None)
        return nonce.hex() + TOKEN_SEPARATOR + ciphertext.hex()

    def decode(self, token: str) -> VisitorState:
        """Open a token.

        Raises:
            DecodeFailure: if the token is malformed, truncated, tampered with
                or was sealed under a different key.
        """
        if not isinstance(token, str) or not token:
            raise DecodeFailure("Empty session token")

        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 2:
            raise DecodeFailure("Invalid token format")

        try:
            nonce = bytes.fromhex(parts[0])
            ciphertext = bytes.fromhex(parts[1])
        except ValueError as exc:
            raise DecodeFailure("Token fields are not valid hex") from exc

        if len(nonce) != NONCE_SIZE:
            raise DecodeFailure("Invalid nonce length")

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise DecodeFailure("Token authentication failed") from exc

        try:
            return VisitorState.model_validate_json(plaintext)
        except ValueError as exc:
            raise DecodeFailure("Token payload is not a valid visitor state") from exc

    def decode_or_new(
        self,
        token: Optional[str],
        factory: Callable[[], VisitorState] = VisitorState.new,
    ) -> Tuple[VisitorState, bool]:
        """Decode a token, falling back to a fresh state.

        Returns:
            Tuple of (state, recovered) where ``recovered`` is True when a
            presented token could not be decoded and was replaced.
        """
        if not token:
            return factory(), False
        try:
            return self.decode(token), False
        except DecodeFailure as exc:
            logger.debug(f"Discarding undecodable session token: {exc}")
            return factory(), True
