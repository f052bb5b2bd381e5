"""Unpadded URL-safe base64 helpers and ceremony challenges."""

from __future__ import annotations

import base64
import re
import secrets

CHALLENGE_LENGTH = 32

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def b64url_encode(data: bytes) -> str:
    """Encode bytes as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(bytes(data)).rstrip(b"=").decode("ascii")


def b64url_decode(text: str | bytes) -> bytes:
    """Decode URL-safe base64 without padding; raise ValueError if malformed."""
    if isinstance(text, (bytes, bytearray, memoryview)):
        text = bytes(text).decode("ascii")
    text = text.replace("\r", "").replace("\n", "")
    if not _ALPHABET.fullmatch(text):
        raise ValueError("illegal character in base64url data")
    if len(text) % 4 == 1:
        raise ValueError("invalid base64url data length")
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def decode_json_bytes(value: object) -> bytes | None:
    """Turn a JSON value holding base64url text into bytes; null stays None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a base64url string, got {type(value).__name__}")
    return b64url_decode(value)


def encode_json_bytes(data: bytes | None) -> str | None:
    """Turn bytes into the JSON value used for them; None becomes null."""
    if data is None:
        return None
    return b64url_encode(data)


class Challenge(bytes):
    """A challenge to be signed and returned by the authenticator."""

    def __str__(self) -> str:
        return b64url_encode(self)


def create_challenge() -> Challenge:
    """Create a new random challenge of CHALLENGE_LENGTH bytes."""
    return Challenge(secrets.token_bytes(CHALLENGE_LENGTH))