# webauthn-rp

Building blocks for the server side (Relying Party) of Web Authentication.
The package builds the options a browser passes to
`navigator.credentials.create()` and `navigator.credentials.get()`, produces
the session data to keep until the browser answers, and decodes and checks
the pieces an authenticator sends back: authenticator data, client data and
COSE public keys.

## Installation

```
pip install webauthn-rp
```

To run the test suite as well:

```
pip install "webauthn-rp[test]"
pytest
```

## Modules

| Module | Purpose |
| --- | --- |
| `webauthn_rp.relying_party` | `Config` and `WebAuthn`: start registration and login ceremonies |
| `webauthn_rp.records` | `Credential`, `SessionData` and the abstract `User` your account model implements |
| `webauthn_rp.device` | `Authenticator` with signature-counter clone detection, `select_authenticator` |
| `webauthn_rp.options` | creation and request options, entities, credential descriptors, `ServerResponse` |
| `webauthn_rp.authenticator` | `AuthenticatorData.from_bytes` and `verify`, `AuthenticatorFlags` |
| `webauthn_rp.client` | `CollectedClientData` checks of ceremony type, challenge, origin and token binding |
| `webauthn_rp.credential` | `ParsedPublicKeyCredential.get_app_id` for FIDO U2F `appid` handling |
| `webauthn_rp.cose` | COSE public keys (EC2, RSA, OKP), signature verification, PEM display |
| `webauthn_rp.encoding` | unpadded base64url helpers, `Challenge` and `create_challenge` |
| `webauthn_rp.cbor` | CTAP2 canonical CBOR `loads` / `dumps` |
| `webauthn_rp.tpm_codec`, `webauthn_rp.tpm_attest`, `webauthn_rp.tpm_public` | decoders for TPM 2.0 `TPMS_ATTEST` and `TPMT_PUBLIC` structures |
| `webauthn_rp.errors` | `WebAuthnError` and the predefined error values |

## Starting a ceremony

Your account model subclasses `User`. `webauthn_id()` and
`webauthn_credentials()` must be provided; `webauthn_name()`,
`webauthn_display_name()` and `webauthn_icon()` have defaults.

```python
from webauthn_rp.records import Credential, User


class Account(User):
    def __init__(self, handle: bytes, credentials: list[Credential]) -> None:
        self.handle = handle
        self.credentials = credentials

    def webauthn_id(self) -> bytes:
        return self.handle

    def webauthn_name(self) -> str:
        return "alice@example.com"

    def webauthn_credentials(self) -> list[Credential]:
        return self.credentials
```

`WebAuthn` validates its `Config` when it is built and raises `ValueError`
if the display name or RP ID is missing. A zero timeout becomes 60000 ms;
an empty `rp_origin` becomes the RP ID, otherwise it is reduced to
`scheme://host[:port]`.

```python
from webauthn_rp.authenticator import UserVerificationRequirement
from webauthn_rp.options import ConveyancePreference
from webauthn_rp.relying_party import (
    Config,
    WebAuthn,
    with_conveyance_preference,
    with_user_verification,
)

rp = WebAuthn(Config(
    rp_display_name="Example",
    rp_id="example.com",
    rp_origin="https://login.example.com",
))

creation, session = rp.begin_registration(
    account, with_conveyance_preference(ConveyancePreference.DIRECT)
)
payload = creation.to_dict()      # {"publicKey": {...}} for the browser
stored = session.to_dict()        # keep until the browser answers

assertion, session = rp.begin_login(
    account, with_user_verification(UserVerificationRequirement.REQUIRED)
)
```

`begin_login` raises `WebAuthnError` when the user has no credentials; by
default every credential of the user is listed as allowed.

Registration offers the algorithms of
`default_registration_credential_parameters()`: ES256, ES384, ES512, RS256,
RS384, RS512, PS256, PS384, PS512 and EdDSA. Other option functions are
`with_authenticator_selection`, `with_exclusions` and `with_extensions` for
registration, and `with_allowed_credentials` and `with_assertion_extensions`
for login. `SessionData.from_dict` restores what `to_dict` stored.

## Checking what comes back

```python
import hashlib

from webauthn_rp.authenticator import AuthenticatorData
from webauthn_rp.client import CeremonyType, CollectedClientData
from webauthn_rp.cose import display_public_key, parse_public_key, verify_signature

client_data = CollectedClientData.from_dict(json.loads(client_data_json))
client_data.verify(session.challenge, CeremonyType.CREATE, "example.com")

auth_data = AuthenticatorData.from_bytes(raw_auth_data)
auth_data.verify(hashlib.sha256(b"example.com").digest(), None, False)

key_bytes = auth_data.att_data.credential_public_key
print(display_public_key(key_bytes))
key = parse_public_key(key_bytes)
ok = verify_signature(key, signed_data, signature)
```

`CollectedClientData.verify` compares the host name of the client's origin,
ignoring case, with the value it is given. Failed checks raise
`WebAuthnError`, whose `type`, `details` and `dev_info` describe the
failure; `to_dict()` gives the form sent to a client.

## Signature counters

```python
from webauthn_rp.device import Authenticator

authenticator.update_counter(auth_data.counter)
if authenticator.clone_warning:
    flag_for_review()
```

A counter that does not grow (unless both it and the stored count are zero)
sets `clone_warning` and leaves the stored count unchanged.

## What the package does not do

- It does not read HTTP requests or parse the browser's full
  registration or login response JSON; the caller decodes the response and
  hands the pieces to the classes above.
- It does not decode attestation objects or verify attestation statements
  (packed, TPM, FIDO U2F and so on) or certificate chains. The TPM modules
  only decode the TPM structures.
- It does not complete registration or login in one call: there is no
  step that creates a `Credential` from a verified response or checks an
  assertion signature against a stored credential for you.
- It stores nothing: credentials and session data are kept by the caller.