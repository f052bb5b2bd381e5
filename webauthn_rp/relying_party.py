"""The relying party: configuration and the start of registration and login."""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from .authenticator import UserVerificationRequirement
from .client import fully_qualified_origin
from .cose import COSEAlgorithmIdentifier
from .encoding import create_challenge
from .errors import ERR_BAD_REQUEST
from .options import (
    AuthenticatorSelection,
    ConveyancePreference,
    CredentialAssertion,
    CredentialCreation,
    CredentialDescriptor,
    CredentialEntity,
    CredentialParameter,
    CredentialType,
    PublicKeyCredentialCreationOptions,
    PublicKeyCredentialRequestOptions,
    RelyingPartyEntity,
    UserEntity,
)
from .records import SessionData, User

DEFAULT_TIMEOUT = 60000

RegistrationOption = Callable[[PublicKeyCredentialCreationOptions], None]
LoginOption = Callable[[PublicKeyCredentialRequestOptions], None]

_DEFAULT_ALGORITHMS = (
    COSEAlgorithmIdentifier.ES256,
    COSEAlgorithmIdentifier.ES384,
    COSEAlgorithmIdentifier.ES512,
    COSEAlgorithmIdentifier.RS256,
    COSEAlgorithmIdentifier.RS384,
    COSEAlgorithmIdentifier.RS512,
    COSEAlgorithmIdentifier.PS256,
    COSEAlgorithmIdentifier.PS384,
    COSEAlgorithmIdentifier.PS512,
    COSEAlgorithmIdentifier.EDDSA,
)


@dataclass
class Config:
    """Relying party settings and defaults used when generating options."""

    rp_display_name: str = ""
    rp_id: str = ""
    rp_origin: str = ""
    rp_icon: str = ""
    attestation_preference: ConveyancePreference | str = ""
    authenticator_selection: AuthenticatorSelection = field(
        default_factory=AuthenticatorSelection
    )
    timeout: int = 0
    debug: bool = False

    def validate(self) -> None:
        """Check required settings and fill in defaults; raise ValueError if invalid."""
        if not self.rp_display_name:
            raise ValueError("Missing RPDisplayName")
        if not self.rp_id:
            raise ValueError("Missing RPID")
        try:
            urlsplit(self.rp_id)
        except ValueError as exc:
            raise ValueError(f"RPID not valid URI: {exc}") from exc

        if self.timeout == 0:
            self.timeout = DEFAULT_TIMEOUT

        if not self.rp_origin:
            self.rp_origin = self.rp_id
        else:
            try:
                parsed = urlsplit(self.rp_origin)
            except ValueError as exc:
                raise ValueError(f"RPOrigin not valid URL: {exc}") from exc
            self.rp_origin = fully_qualified_origin(parsed)


def default_registration_credential_parameters() -> list[CredentialParameter]:
    """The public key algorithms offered by default, in order of preference."""
    return [
        CredentialParameter(type=CredentialType.PUBLIC_KEY, algorithm=alg)
        for alg in _DEFAULT_ALGORITHMS
    ]


def with_authenticator_selection(
    authenticator_selection: AuthenticatorSelection,
) -> RegistrationOption:
    """Use non-default authenticator selection criteria."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.authenticator_selection = authenticator_selection

    return apply


def with_exclusions(exclude_list: list[CredentialDescriptor]) -> RegistrationOption:
    """Exclude the given credentials from registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.credential_exclude_list = exclude_list

    return apply


def with_conveyance_preference(
    preference: ConveyancePreference | str,
) -> RegistrationOption:
    """Ask for a particular attestation conveyance."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.attestation = preference

    return apply


def with_extensions(extension: dict[str, Any]) -> RegistrationOption:
    """Request extensions during registration."""

    def apply(options: PublicKeyCredentialCreationOptions) -> None:
        options.extensions = extension

    return apply


def with_allowed_credentials(allow_list: list[CredentialDescriptor]) -> LoginOption:
    """Replace the list of credentials allowed for login."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.allowed_credentials = allow_list

    return apply


def with_user_verification(
    user_verification: UserVerificationRequirement | str,
) -> LoginOption:
    """Request a user verification preference for login."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.user_verification = user_verification

    return apply


def with_assertion_extensions(extensions: dict[str, Any]) -> LoginOption:
    """Request extensions during login."""

    def apply(options: PublicKeyCredentialRequestOptions) -> None:
        options.extensions = extensions

    return apply


class WebAuthn:
    """Generates ceremony options and session data for a relying party."""

    def __init__(self, config: Config) -> None:
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"Configuration error: {exc}") from exc
        self.config = config

    def begin_registration(
        self, user: User, *args: RegistrationOption
    ) -> tuple[CredentialCreation, SessionData]:
        """Create registration options for the client and the session data to keep."""
        challenge = create_challenge()
        user_entity = UserEntity(
            name=user.webauthn_name(),
            icon=user.webauthn_icon(),
            display_name=user.webauthn_display_name(),
            id=user.webauthn_id(),
        )
        relying_party = RelyingPartyEntity(
            name=self.config.rp_display_name,
            icon=self.config.rp_icon,
            id=self.config.rp_id,
        )
        options = PublicKeyCredentialCreationOptions(
            challenge=challenge,
            relying_party=relying_party,
            user=user_entity,
            parameters=default_registration_credential_parameters(),
            authenticator_selection=copy.copy(self.config.authenticator_selection),
            timeout=self.config.timeout,
            attestation=self.config.attestation_preference,
        )
        for setter in args:
            setter(options)

        session = SessionData(
            challenge=str(challenge),
            user_id=user.webauthn_id(),
            user_verification=options.authenticator_selection.user_verification,
        )
        return CredentialCreation(response=options), session

    def begin_login(
        self, user: User, *args: LoginOption
    ) -> tuple[CredentialAssertion, SessionData]:
        """Create assertion options for the client and the session data to keep.

        Raises WebAuthnError if the user has no credentials.
        """
        challenge = create_challenge()
        credentials = user.webauthn_credentials()
        if not credentials:
            raise ERR_BAD_REQUEST.with_details("Found no credentials for user")

        allowed = [
            CredentialDescriptor(
                type=CredentialType.PUBLIC_KEY, credential_id=credential.id
            )
            for credential in credentials
        ]
        options = PublicKeyCredentialRequestOptions(
            challenge=challenge,
            timeout=self.config.timeout,
            relying_party_id=self.config.rp_id,
            allowed_credentials=allowed,
            user_verification=self.config.authenticator_selection.user_verification,
        )
        for setter in args:
            setter(options)

        session = SessionData(
            challenge=str(challenge),
            user_id=user.webauthn_id(),
            allowed_credential_ids=options.allowed_credential_ids(),
            user_verification=options.user_verification,
            extensions=options.extensions,
        )
        return CredentialAssertion(response=options), session