"""
Tests for the encrypted visitor session token.
"""

import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from card_service import DecodeFailure, SessionCodec, VisitorState, derive_key
from card_service.models import PreferenceCounters
from card_service.session_codec import NONCE_SIZE


@pytest.fixture
def codec():
    return SessionCodec("test-secret")


@pytest.fixture
def state():
    return VisitorState(
        delivered_items=["a1", "a2"],
        liked_items=["a1"],
        preferences=PreferenceCounters(content_types={"article": 2}, reading_lengths={"short": 1, "long": 1}),
        languages=["en", "fr"],
        interaction_count=2,
    )


class TestDeriveKey:
    def test_key_is_256_bits(self):
        assert len(derive_key("anything")) == 32

    def test_same_secret_same_key(self):
        assert derive_key("s") == derive_key("s")
        assert derive_key("s") != derive_key("t")

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            derive_key("")


class TestEncodeDecode:
    def test_round_trip_preserves_state(self, codec, state):
        decoded = codec.decode(codec.encode(state))
        assert decoded.model_dump() == state.model_dump()

    def test_token_layout(self, codec, state):
        token = codec.encode(state)
        nonce_hex, ciphertext_hex = token.split(":")
        assert len(bytes.fromhex(nonce_hex)) == NONCE_SIZE
        assert len(ciphertext_hex) > 0

    def test_nonce_is_fresh_per_encode(self, codec, state):
        first = codec.encode(state)
        second = codec.encode(state)
        assert first != second
        assert codec.decode(first) == codec.decode(second)

    def test_plaintext_not_visible(self, codec, state):
        token = codec.encode(state)
        assert "article" not in token

    def test_unknown_fields_ignored_and_missing_fields_defaulted(self, codec):
        nonce = os.urandom(NONCE_SIZE)
        payload = b'{"future": 1, "liked_items": ["x"]}'
        ciphertext = AESGCM(derive_key("test-secret")).encrypt(nonce, payload, None)

        decoded = codec.decode(nonce.hex() + ":" + ciphertext.hex())

        assert decoded.liked_items == ["x"]
        assert decoded.delivered_items == []
        assert decoded.languages == ["en"]
        assert decoded.interaction_count == 0
        assert not hasattr(decoded, "future")


class TestDecodeFailures:
    @pytest.mark.parametrize("token", [
        "",
        "no-separator",
        "a:b:c",
        "zz:00",
        "00:zz",
        "0011:00",
    ])
    def test_malformed_tokens(self, codec, token):
        with pytest.raises(DecodeFailure):
            codec.decode(token)

    def test_non_string_token(self, codec):
        with pytest.raises(DecodeFailure):
            codec.decode(None)

    def test_tampered_ciphertext(self, codec, state):
        nonce_hex, ciphertext_hex = codec.encode(state).split(":")
        flipped = format(int(ciphertext_hex[0], 16) ^ 1, "x") + ciphertext_hex[1:]
        with pytest.raises(DecodeFailure):
            codec.decode(f"{nonce_hex}:{flipped}")

    def test_truncated_ciphertext(self, codec, state):
        token = codec.encode(state)
        with pytest.raises(DecodeFailure):
            codec.decode(token[:-2])

    def test_wrong_key(self, codec, state):
        token = codec.encode(state)
        with pytest.raises(DecodeFailure):
            SessionCodec("other-secret").decode(token)

    def test_valid_encryption_of_invalid_payload(self, codec):
        # Authenticated but not a visitor state
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = AESGCM(derive_key("test-secret")).encrypt(nonce, b'{"interaction_count": -3}', None)
        with pytest.raises(DecodeFailure):
            codec.decode(nonce.hex() + ":" + ciphertext.hex())


class TestDecodeOrNew:
    def test_missing_token_is_not_a_recovery(self, codec):
        state, recovered = codec.decode_or_new(None)
        assert recovered is False
        assert state.delivered_items == []
        assert state.languages == ["en"]

    def test_bad_token_recovers_fresh_state(self, codec):
        state, recovered = codec.decode_or_new("garbage", lambda: VisitorState.new("fr"))
        assert recovered is True
        assert state.languages == ["fr"]
        assert state.interaction_count == 0

    def test_good_token(self, codec, state):
        decoded, recovered = codec.decode_or_new(codec.encode(state))
        assert recovered is False
        assert decoded.delivered_items == ["a1", "a2"]
