"""Stored authenticator state and authenticator selection helpers."""

from __future__ import annotations

from dataclasses import dataclass

from .authenticator import AuthenticatorAttachment, UserVerificationRequirement
from .options import AuthenticatorSelection


@dataclass
class Authenticator:
    """What the relying party keeps about the authenticator behind a credential."""

    aaguid: bytes = b""
    sign_count: int = 0
    clone_warning: bool = False

    def update_counter(self, auth_data_count: int) -> None:
        """Take a new signature counter, flagging a possible clone if it did not grow."""
        if auth_data_count <= self.sign_count and (
            auth_data_count != 0 or self.sign_count != 0
        ):
            self.clone_warning = True
            return
        self.sign_count = auth_data_count


def _as_enum(enum_type, value: str):
    try:
        return enum_type(value)
    except ValueError:
        return value


def select_authenticator(
    att: str, rrk: bool | None, uv: str
) -> AuthenticatorSelection:
    """Build authenticator selection criteria from plain values."""
    return AuthenticatorSelection(
        authenticator_attachment=_as_enum(AuthenticatorAttachment, att),
        require_resident_key=rrk,
        user_verification=_as_enum(UserVerificationRequirement, uv),
    )