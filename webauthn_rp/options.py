"""Options sent to the client for credential creation and assertion."""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from typing import Any

from .authenticator import (
    AuthenticatorAttachment,
    AuthenticatorTransport,
    UserVerificationRequirement,
)
from .cose import COSEAlgorithmIdentifier


def _text(value: Any) -> str:
    """Plain text of a string or string-valued enum member."""
    return str(getattr(value, "value", value))


def _bytes_json(data: bytes | None) -> str | None:
    """Byte strings go on the wire as standard base64; missing ones as null."""
    if data is None:
        return None
    return base64.b64encode(bytes(data)).decode("ascii")


class CredentialType(str, enum.Enum):
    """The valid credential types."""

    PUBLIC_KEY = "public-key"


class ConveyancePreference(str, enum.Enum):
    """A relying party's preference about attestation conveyance."""

    NONE = "none"
    INDIRECT = "indirect"
    DIRECT = "direct"


class ServerResponseStatus(str, enum.Enum):
    """Outcome reported back to the client."""

    OK = "ok"
    FAILED = "failed"


@dataclass
class CredentialEntity:
    """A user account or relying party a credential is associated with."""

    name: str = ""
    icon: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name}
        if self.icon:
            result["icon"] = self.icon
        return result


@dataclass
class RelyingPartyEntity(CredentialEntity):
    """Relying party attributes supplied when creating a credential."""

    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["id"] = self.id
        return result


@dataclass
class UserEntity(CredentialEntity):
    """User account attributes supplied when creating a credential."""

    display_name: str = ""
    id: bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.display_name:
            result["displayName"] = self.display_name
        result["id"] = _bytes_json(self.id)
        return result


@dataclass
class CredentialDescriptor:
    """Refers to a public key credential as input to create() or get()."""

    type: CredentialType | str = CredentialType.PUBLIC_KEY
    credential_id: bytes | None = None
    transport: list[AuthenticatorTransport | str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": _text(self.type),
            "id": _bytes_json(self.credential_id),
        }
        if self.transport:
            result["transports"] = [_text(item) for item in self.transport]
        return result


@dataclass
class CredentialParameter:
    """A credential type and algorithm the relying party wants created."""

    type: CredentialType | str
    algorithm: COSEAlgorithmIdentifier | int

    def to_dict(self) -> dict[str, Any]:
        return {"type": _text(self.type), "alg": int(self.algorithm)}


@dataclass
class AuthenticatorSelection:
    """Relying party requirements on authenticator attributes."""

    authenticator_attachment: AuthenticatorAttachment | str = ""
    require_resident_key: bool | None = None
    user_verification: UserVerificationRequirement | str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if _text(self.authenticator_attachment):
            result["authenticatorAttachment"] = _text(self.authenticator_attachment)
        if self.require_resident_key is not None:
            result["requireResidentKey"] = self.require_resident_key
        if _text(self.user_verification):
            result["userVerification"] = _text(self.user_verification)
        return result


@dataclass
class PublicKeyCredentialCreationOptions:
    """Parameters for creating a credential via create()."""

    challenge: bytes
    relying_party: RelyingPartyEntity = field(default_factory=RelyingPartyEntity)
    user: UserEntity = field(default_factory=UserEntity)
    parameters: list[CredentialParameter] = field(default_factory=list)
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    timeout: int = 0
    credential_exclude_list: list[CredentialDescriptor] = field(default_factory=list)
    extensions: dict[str, Any] | None = None
    attestation: ConveyancePreference | str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "challenge": _bytes_json(self.challenge),
            "rp": self.relying_party.to_dict(),
            "user": self.user.to_dict(),
        }
        if self.parameters:
            result["pubKeyCredParams"] = [p.to_dict() for p in self.parameters]
        result["authenticatorSelection"] = self.authenticator_selection.to_dict()
        if self.timeout:
            result["timeout"] = self.timeout
        if self.credential_exclude_list:
            result["excludeCredentials"] = [
                d.to_dict() for d in self.credential_exclude_list
            ]
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        if _text(self.attestation):
            result["attestation"] = _text(self.attestation)
        return result


@dataclass
class PublicKeyCredentialRequestOptions:
    """Parameters get() needs to generate an assertion."""

    challenge: bytes
    timeout: int = 0
    relying_party_id: str = ""
    allowed_credentials: list[CredentialDescriptor] = field(default_factory=list)
    user_verification: UserVerificationRequirement | str = ""
    extensions: dict[str, Any] | None = None

    def allowed_credential_ids(self) -> list[bytes | None]:
        """Return the IDs of the allowed credentials, in order."""
        return [credential.credential_id for credential in self.allowed_credentials]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"challenge": _bytes_json(self.challenge)}
        if self.timeout:
            result["timeout"] = self.timeout
        if self.relying_party_id:
            result["rpId"] = self.relying_party_id
        if self.allowed_credentials:
            result["allowCredentials"] = [
                d.to_dict() for d in self.allowed_credentials
            ]
        if _text(self.user_verification):
            result["userVerification"] = _text(self.user_verification)
        if self.extensions:
            result["extensions"] = dict(self.extensions)
        return result


@dataclass
class CredentialCreation:
    """The payload handed to the client to begin registration."""

    response: PublicKeyCredentialCreationOptions

    def to_dict(self) -> dict[str, Any]:
        return {"publicKey": self.response.to_dict()}


@dataclass
class CredentialAssertion:
    """The payload handed to the client to begin login."""

    response: PublicKeyCredentialRequestOptions

    def to_dict(self) -> dict[str, Any]:
        return {"publicKey": self.response.to_dict()}


@dataclass
class ServerResponse:
    """A status message returned to the client."""

    status: ServerResponseStatus | str
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"status": _text(self.status), "errorMessage": self.message}