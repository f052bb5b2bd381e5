"""Credentials, session data and the user interface a relying party supplies."""

from __future__ import annotations

import abc
import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .authenticator import UserVerificationRequirement
from .device import Authenticator


def _text(value: Any) -> str:
    return str(getattr(value, "value", value))


def _encode_bytes(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(bytes(data)).decode("ascii")


def _decode_bytes(value: Any) -> bytes | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a base64 string, got {type(value).__name__}")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 data: {exc}") from exc


@dataclass
class Credential:
    """Everything needed to store a WebAuthn credential."""

    id: bytes
    public_key: bytes
    attestation_type: str = ""
    authenticator: Authenticator = field(default_factory=Authenticator)


@dataclass
class SessionData:
    """Data the relying party keeps for the duration of a ceremony."""

    challenge: str
    user_id: bytes | None = None
    allowed_credential_ids: list[bytes | None] = field(default_factory=list)
    user_verification: UserVerificationRequirement | str = ""
    extensions: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise for storage; byte strings become standard base64."""
        result: dict[str, Any] = {
            "challenge": self.challenge,
            "user_id": _encode_bytes(self.user_id),
        }
        if self.allowed_credential_ids:
            result["allowed_credentials"] = [
                _encode_bytes(item) for item in self.allowed_credential_ids
            ]
        result["userVerification"] = _text(self.user_verification)
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionData:
        """Rebuild session data stored by to_dict."""
        challenge = data.get("challenge") or ""
        if not isinstance(challenge, str):
            raise TypeError("challenge must be a string")
        allowed = data.get("allowed_credentials") or []
        verification = _text(data.get("userVerification") or "")
        try:
            user_verification: UserVerificationRequirement | str = (
                UserVerificationRequirement(verification)
            )
        except ValueError:
            user_verification = verification
        extensions = data.get("extensions")
        return cls(
            challenge=challenge,
            user_id=_decode_bytes(data.get("user_id")),
            allowed_credential_ids=[_decode_bytes(item) for item in allowed],
            user_verification=user_verification,
            extensions=dict(extensions) if extensions else None,
        )


class User(abc.ABC):
    """A relying party's user account as WebAuthn needs to see it."""

    @abc.abstractmethod
    def webauthn_id(self) -> bytes:
        """The user handle according to the relying party."""

    def webauthn_name(self) -> str:
        """The account name."""
        return "newUser"

    def webauthn_display_name(self) -> str:
        """The name shown to the user."""
        return "New User"

    def webauthn_icon(self) -> str:
        """A URL of the user's icon, or empty."""
        return ""

    @abc.abstractmethod
    def webauthn_credentials(self) -> list[Credential]:
        """The credentials the user owns."""