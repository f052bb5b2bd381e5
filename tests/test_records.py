import pytest

from webauthn_rp.authenticator import UserVerificationRequirement
from webauthn_rp.records import Credential, SessionData, User


class _Account(User):
    def __init__(self, user_id, credentials=()):
        self._id = user_id
        self._credentials = list(credentials)

    def webauthn_id(self):
        return self._id

    def webauthn_credentials(self):
        return list(self._credentials)


def test_session_round_trip():
    session = SessionData(
        challenge="challenge-text",
        user_id=b"123",
        allowed_credential_ids=[b"cred-1", b"cred-2"],
        user_verification=UserVerificationRequirement.REQUIRED,
        extensions={"appid": "https://example.com"},
    )
    assert SessionData.from_dict(session.to_dict()) == session


def test_session_user_id_is_standard_base64():
    encoded = SessionData(challenge="c", user_id=b"123").to_dict()
    assert encoded["user_id"] == "MTIz"


def test_session_omits_empty_optional_fields():
    encoded = SessionData(challenge="c", user_id=b"ABC").to_dict()
    assert "allowed_credentials" not in encoded
    assert "extensions" not in encoded
    assert encoded["userVerification"] == ""
    assert encoded["challenge"] == "c"


def test_session_null_user_id():
    encoded = SessionData(challenge="c").to_dict()
    assert encoded["user_id"] is None
    assert SessionData.from_dict(encoded).user_id is None


def test_session_from_dict_rejects_bad_base64():
    with pytest.raises(ValueError):
        SessionData.from_dict({"challenge": "c", "user_id": "not base64!"})


def test_session_from_dict_rejects_non_string_challenge():
    with pytest.raises(TypeError):
        SessionData.from_dict({"challenge": 5})


def test_session_user_verification_parsed_to_enum():
    restored = SessionData.from_dict({"challenge": "c", "userVerification": "preferred"})
    assert restored.user_verification is UserVerificationRequirement.PREFERRED


def test_credentials_get_separate_authenticators():
    first = Credential(id=b"a", public_key=b"k")
    second = Credential(id=b"b", public_key=b"k")
    first.authenticator.update_counter(5)
    assert first.authenticator.sign_count == 5
    assert second.authenticator.sign_count == 0


def test_user_defaults_and_required_methods():
    credential = Credential(id=b"id", public_key=b"key", attestation_type="none")
    user = _Account(b"123", [credential])
    assert user.webauthn_id() == b"123"
    assert user.webauthn_name() == "newUser"
    assert user.webauthn_display_name() == "New User"
    assert user.webauthn_icon() == ""
    assert user.webauthn_credentials() == [credential]


def test_user_is_abstract():
    with pytest.raises(TypeError):
        User()