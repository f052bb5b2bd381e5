"""Client data collected by the browser and its verification."""

from __future__ import annotations

import enum
import hmac
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import SplitResult, urlsplit

from .errors import ERR_PARSING_DATA, ERR_VERIFICATION


class CeremonyType(str, enum.Enum):
    """The kind of ceremony the client data was produced for."""

    CREATE = "webauthn.create"
    ASSERT = "webauthn.get"


class TokenBindingStatus(str, enum.Enum):
    """The state of Token Binding on the connection to the relying party."""

    PRESENT = "present"
    SUPPORTED = "supported"
    NOT_SUPPORTED = "not-supported"


_VALID_STATUSES = frozenset(status.value for status in TokenBindingStatus)


def _text(value: Any) -> str:
    """Plain text of a string or string-valued enum member."""
    return str(getattr(value, "value", value))


@dataclass
class TokenBinding:
    """Token Binding information reported by the client."""

    status: str = ""
    id: str = ""


def fully_qualified_origin(url: str | SplitResult) -> str:
    """Return the origin of a URL as scheme://host[:port]."""
    parts = urlsplit(url) if isinstance(url, str) else url
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}"


def _string_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ERR_PARSING_DATA.with_details("Error decoding clientData").with_info(
            f"{key} is not a string\n"
        )
    return value


@dataclass
class CollectedClientData:
    """The contextual bindings of the relying party and the client."""

    type: str
    challenge: str
    origin: str
    token_binding: TokenBinding | None = None
    hint: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CollectedClientData:
        """Build client data from the decoded clientDataJSON object."""
        if not isinstance(data, Mapping):
            raise ERR_PARSING_DATA.with_details("Error decoding clientData").with_info(
                "clientData is not a JSON object\n"
            )
        binding = None
        raw_binding = data.get("tokenBinding")
        if raw_binding is not None:
            if not isinstance(raw_binding, Mapping):
                raise ERR_PARSING_DATA.with_details(
                    "Error decoding clientData"
                ).with_info("tokenBinding is not a JSON object\n")
            binding = TokenBinding(
                status=_string_field(raw_binding, "status"),
                id=_string_field(raw_binding, "id"),
            )
        return cls(
            type=_string_field(data, "type"),
            challenge=_string_field(data, "challenge"),
            origin=_string_field(data, "origin"),
            token_binding=binding,
            hint=_string_field(data, "new_keys_may_be_added_here"),
        )

    def verify(
        self,
        stored_challenge: str,
        ceremony: CeremonyType | str,
        relying_party_origin: str,
    ) -> None:
        """Check ceremony type, challenge, origin and token binding; raise on failure."""
        if _text(self.type) != _text(ceremony):
            raise ERR_VERIFICATION.with_details("Error validating ceremony type")

        if not hmac.compare_digest(
            stored_challenge.encode("utf-8"), self.challenge.encode("utf-8")
        ):
            raise ERR_VERIFICATION.with_details("Error validating challenge").with_info(
                f'Expected b Value: "{stored_challenge}"\n'
                f'Received b: "{self.challenge}"\n'
            )

        try:
            parsed = urlsplit(self.origin)
            hostname = parsed.hostname or ""
        except ValueError as exc:
            raise ERR_PARSING_DATA.with_details(
                "Error decoding clientData origin as URL"
            ) from exc

        if hostname.casefold() != relying_party_origin.casefold():
            received = fully_qualified_origin(parsed)
            raise ERR_VERIFICATION.with_details(
                "Error validating origin with ---non qualified origin : "
                f"Hostname -- __{hostname}___ Host __{parsed.netloc.rpartition('@')[2]}___"
                f" --- expected value : {relying_party_origin} and received value : {received}"
            ).with_info(
                f"Expected Value: {relying_party_origin}\n Received: {received}\n"
            )

        if self.token_binding is not None:
            status = _text(self.token_binding.status)
            if status == "":
                raise ERR_PARSING_DATA.with_details(
                    "Error decoding clientData, token binding present without status"
                )
            if status not in _VALID_STATUSES:
                raise ERR_PARSING_DATA.with_details(
                    "Error decoding clientData, token binding present with invalid status"
                ).with_info(f"Got: {status}\n")