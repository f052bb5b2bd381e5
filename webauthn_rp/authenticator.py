"""Authenticator data: flags, attested credential data and its checks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from . import cbor
from .errors import ERR_BAD_REQUEST, ERR_VERIFICATION

MIN_AUTH_DATA_LENGTH = 37
_AAGUID_END = 53
_CREDENTIAL_ID_START = 55


class AuthenticatorAttachment(str, enum.Enum):
    """How an authenticator is attached to the client."""

    PLATFORM = "platform"
    CROSS_PLATFORM = "cross-platform"


class AuthenticatorTransport(str, enum.Enum):
    """Hints for how a client may reach an authenticator."""

    USB = "usb"
    NFC = "nfc"
    BLE = "ble"
    INTERNAL = "internal"


class UserVerificationRequirement(str, enum.Enum):
    """A relying party's need for user verification."""

    REQUIRED = "required"
    PREFERRED = "preferred"
    DISCOURAGED = "discouraged"


class AuthenticatorFlags(enum.IntFlag):
    """The flags byte of authenticator data; other bits are reserved."""

    USER_PRESENT = 0x01
    USER_VERIFIED = 0x04
    ATTESTED_CREDENTIAL_DATA = 0x40
    HAS_EXTENSIONS = 0x80

    def user_present(self) -> bool:
        return bool(self & AuthenticatorFlags.USER_PRESENT)

    def user_verified(self) -> bool:
        return bool(self & AuthenticatorFlags.USER_VERIFIED)

    def has_attested_credential_data(self) -> bool:
        return bool(self & AuthenticatorFlags.ATTESTED_CREDENTIAL_DATA)

    def has_extensions(self) -> bool:
        return bool(self & AuthenticatorFlags.HAS_EXTENSIONS)


@dataclass
class AttestedCredentialData:
    """The credential an authenticator attests to during registration."""

    aaguid: bytes = b""
    credential_id: bytes = b""
    credential_public_key: bytes = b""

    @property
    def encoded_length(self) -> int:
        return (
            len(self.aaguid) + 2 + len(self.credential_id) + len(self.credential_public_key)
        )


def _canonical_public_key(key_bytes: bytes) -> bytes:
    try:
        return cbor.dumps(cbor.loads(key_bytes))
    except cbor.CBORDecodeError as exc:
        raise ERR_BAD_REQUEST.with_details(
            "Unable to decode credential public key"
        ).with_info(str(exc)) from exc


def _parse_attested_data(raw: bytes) -> AttestedCredentialData:
    if len(raw) < _CREDENTIAL_ID_START:
        raise ERR_BAD_REQUEST.with_details("Attested credential data too short")
    id_length = int.from_bytes(raw[_AAGUID_END:_CREDENTIAL_ID_START], "big")
    key_start = _CREDENTIAL_ID_START + id_length
    if key_start > len(raw):
        raise ERR_BAD_REQUEST.with_details("Credential ID length exceeds data")
    return AttestedCredentialData(
        aaguid=raw[MIN_AUTH_DATA_LENGTH:_AAGUID_END],
        credential_id=raw[_CREDENTIAL_ID_START:key_start],
        credential_public_key=_canonical_public_key(raw[key_start:]),
    )


@dataclass
class AuthenticatorData:
    """Contextual bindings made by the authenticator."""

    rp_id_hash: bytes
    flags: AuthenticatorFlags
    counter: int
    att_data: AttestedCredentialData = field(default_factory=AttestedCredentialData)
    ext_data: bytes = b""

    @classmethod
    def from_bytes(cls, raw_auth_data: bytes) -> AuthenticatorData:
        """Parse raw authenticator data, raising WebAuthnError if malformed."""
        raw = bytes(raw_auth_data)
        if len(raw) < MIN_AUTH_DATA_LENGTH:
            raise ERR_BAD_REQUEST.with_details(
                "Authenticator data length too short"
            ).with_info(
                f"Expected data greater than {MIN_AUTH_DATA_LENGTH} bytes. "
                f"Got {len(raw)} bytes\n"
            )

        flags = AuthenticatorFlags(raw[32])
        remaining = len(raw) - MIN_AUTH_DATA_LENGTH
        att_data = AttestedCredentialData()

        if flags.has_attested_credential_data():
            if remaining == 0:
                raise ERR_BAD_REQUEST.with_details(
                    "Attested credential flag set but data is missing"
                )
            att_data = _parse_attested_data(raw)
            remaining -= att_data.encoded_length
        elif not flags.has_extensions() and remaining != 0:
            raise ERR_BAD_REQUEST.with_details("Attested credential flag not set")

        ext_data = b""
        if flags.has_extensions():
            if remaining == 0:
                raise ERR_BAD_REQUEST.with_details(
                    "Extensions flag set but extensions data is missing"
                )
            if remaining > 0:
                ext_data = raw[len(raw) - remaining:]
                remaining -= len(ext_data)

        if remaining != 0:
            raise ERR_BAD_REQUEST.with_details("Leftover bytes decoding AuthenticatorData")

        return cls(
            rp_id_hash=raw[:32],
            flags=flags,
            counter=int.from_bytes(raw[33:37], "big"),
            att_data=att_data,
            ext_data=ext_data,
        )

    def verify(
        self,
        rp_id_hash: bytes,
        app_id_hash: bytes | None,
        user_verification_required: bool,
    ) -> None:
        """Check the RP ID hash and the presence and verification flags."""
        expected = bytes(rp_id_hash or b"")
        alternative = bytes(app_id_hash or b"")
        if self.rp_id_hash != expected and self.rp_id_hash != alternative:
            raise ERR_VERIFICATION.with_info(
                f"RP Hash mismatch. Expected {self.rp_id_hash.hex()} "
                f"and Received {expected.hex()}\n"
            )
        if not self.flags.user_present():
            raise ERR_VERIFICATION.with_info("User presence flag not set by authenticator\n")
        if user_verification_required and not self.flags.user_verified():
            raise ERR_VERIFICATION.with_info(
                "User verification required but flag not set by authenticator\n"
            )


def resident_key_required() -> bool:
    """Require the private key to be resident on the client device."""
    return True


def resident_key_unrequired() -> bool:
    """Do not require the private key to be resident on the client device."""
    return False