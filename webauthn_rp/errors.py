"""Error values raised while parsing and verifying WebAuthn ceremonies."""

from __future__ import annotations


class WebAuthnError(Exception):
    """A protocol failure carrying a short type, human details and debug info."""

    def __init__(self, error_type: str, details: str, dev_info: str = "") -> None:
        super().__init__(details)
        self.type = error_type
        self.details = details
        self.dev_info = dev_info

    def __str__(self) -> str:
        return self.details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(type={self.type!r}, "
            f"details={self.details!r}, dev_info={self.dev_info!r})"
        )

    def with_details(self, details: str) -> WebAuthnError:
        """Return a copy of this error with different details."""
        return type(self)(self.type, details, self.dev_info)

    def with_info(self, info: str) -> WebAuthnError:
        """Return a copy of this error with debugging information attached."""
        return type(self)(self.type, self.details, info)

    def to_dict(self) -> dict[str, str]:
        """Serialise the error the way it is sent to a client."""
        return {"type": self.type, "error": self.details, "debug": self.dev_info}


ERR_BAD_REQUEST = WebAuthnError("invalid_request", "Error reading the requst data")
ERR_CHALLENGE_MISMATCH = WebAuthnError(
    "challenge_mismatch", "Stored challenge and received challenge do not match"
)
ERR_PARSING_DATA = WebAuthnError("parse_error", "Error parsing the authenticator response")
ERR_AUTH_DATA = WebAuthnError("auth_data", "Error verifying the authenticator data")
ERR_VERIFICATION = WebAuthnError(
    "verification_error", "Error validating the authenticator response"
)
ERR_ATTESTATION = WebAuthnError(
    "attesation_error", "Error validating the attestation data provided"
)
ERR_INVALID_ATTESTATION = WebAuthnError("invalid_attestation", "Invalid attestation data")
ERR_ATTESTATION_FORMAT = WebAuthnError("invalid_attestation", "Invalid attestation format")
ERR_ATTESTATION_CERTIFICATE = WebAuthnError(
    "invalid_certificate", "Invalid attestation certificate"
)
ERR_ASSERTION_SIGNATURE = WebAuthnError(
    "invalid_signature",
    "Assertion Signature against auth data and client hash is not valid",
)
ERR_UNSUPPORTED_KEY = WebAuthnError("invalid_key_type", "Unsupported Public Key Type")
ERR_UNSUPPORTED_ALGORITHM = WebAuthnError(
    "unsupported_key_algorithm", "Unsupported public key algorithm"
)
ERR_SIG_NOT_PROVIDED_OR_INVALID = WebAuthnError(
    "signature_not_provided_or_invalid", "Signature invalid or not provided"
)
ERR_NOT_SPEC_IMPLEMENTED = WebAuthnError(
    "spec_unimplemented", "This field is not yet supported by the WebAuthn spec"
)
ERR_NOT_IMPLEMENTED = WebAuthnError(
    "not_implemented", "This field is not yet supported by this library"
)