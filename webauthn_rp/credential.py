"""Parsed public key credentials returned by the client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ERR_BAD_REQUEST

FIDO_U2F_ATTESTATION = "fido-u2f"


@dataclass
class ParsedPublicKeyCredential:
    """A public key credential after decoding its identifiers."""

    id: str
    type: str
    raw_id: bytes = b""
    client_extension_results: Mapping[str, Any] | None = None

    def get_app_id(
        self,
        auth_ext: Mapping[str, Any] | None,
        credential_attestation_type: str,
    ) -> str:
        """Return the appid to check against, or "" when it does not apply.

        Raises WebAuthnError when the client output or session data hold an
        appid of the wrong type, or the session lacks one the client used.
        """
        if auth_ext is None or self.client_extension_results is None:
            return ""
        if credential_attestation_type != FIDO_U2F_ATTESTATION:
            return ""
        if "appid" not in self.client_extension_results:
            return ""
        enable_app_id = self.client_extension_results["appid"]
        if not isinstance(enable_app_id, bool):
            raise ERR_BAD_REQUEST.with_details(
                "Client Output appid did not have the expected type"
            )
        if not enable_app_id:
            return ""
        if "appid" not in auth_ext:
            raise ERR_BAD_REQUEST.with_details(
                "Session Data does not have an appid but Client Output indicates it should be set"
            )
        app_id = auth_ext["appid"]
        if not isinstance(app_id, str):
            raise ERR_BAD_REQUEST.with_details(
                "Session Data appid did not have the expected type"
            )
        return app_id