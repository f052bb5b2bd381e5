import hashlib

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from webauthn_rp import cbor
from webauthn_rp.cose import (
    COSEAlgorithmIdentifier,
    COSEKeyType,
    EC2PublicKeyData,
    OKPPublicKeyData,
    PublicKeyData,
    RSAPublicKeyData,
    SignatureAlgorithm,
    display_public_key,
    hasher_from_cose_alg,
    parse_fido_public_key,
    parse_public_key,
    sig_alg_from_cose_alg,
    verify_signature,
)
from webauthn_rp.errors import WebAuthnError

DATA = b"Sample data to sign"


def _bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


@pytest.fixture(scope="module")
def rsa_private():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _rsa_key(private, alg):
    numbers = private.public_key().public_numbers()
    return RSAPublicKeyData(
        key_type=COSEKeyType.RSA,
        algorithm=alg,
        modulus=_bytes(numbers.n),
        exponent=numbers.e.to_bytes(3, "big"),
    )


def _ec_key(private, alg):
    numbers = private.public_key().public_numbers()
    return EC2PublicKeyData(
        key_type=COSEKeyType.EC2,
        algorithm=alg,
        curve=1,
        x_coord=_bytes(numbers.x),
        y_coord=_bytes(numbers.y),
    )


def test_okp_signature_verification():
    private = ed25519.Ed25519PrivateKey.generate()
    public = private.public_key().public_bytes(
        serialization.Encoding.Raw, serialization.PublicFormat.Raw
    )
    key = OKPPublicKeyData(x_coord=public)
    assert key.verify(DATA, private.sign(DATA)) is True
    assert key.verify(DATA, b"invalid") is False


def test_okp_display_public_key():
    pub = bytes([
        0x7B, 0x88, 0x10, 0x24, 0xAD, 0xC9, 0x82, 0xD3, 0x80, 0xB8, 0x77, 0x1E,
        0x3B, 0x9B, 0xF8, 0xE4, 0xB3, 0x99, 0x8B, 0xC7, 0xD0, 0x58, 0x30, 0x66,
        0x02, 0xCE, 0x4D, 0x0F, 0x2F, 0xE4, 0xB7, 0x81,
    ])
    expected = (
        "-----BEGIN PUBLIC KEY-----\n"
        "MCowBQYDK2VwAyEAe4gQJK3JgtOAuHceO5v45LOZi8fQWDBmAs5NDy/kt4E=\n"
        "-----END PUBLIC KEY-----\n"
    )
    key = OKPPublicKeyData(key_type=COSEKeyType.OKP, x_coord=pub)
    assert display_public_key(key.to_cbor()) == expected


def test_okp_display_wrong_length():
    key = OKPPublicKeyData(key_type=COSEKeyType.OKP, x_coord=b"\x01" * 31)
    assert display_public_key(key.to_cbor()) == "Cannot display key"


def test_ec2_round_trip_and_verify():
    private = ec.generate_private_key(ec.SECP256R1())
    key = _ec_key(private, COSEAlgorithmIdentifier.ES256)
    parsed = parse_public_key(key.to_cbor())
    assert parsed == key
    sig = private.sign(DATA, ec.ECDSA(hashes.SHA256()))
    assert verify_signature(parsed, DATA, sig) is True
    assert verify_signature(parsed, DATA + b"!", sig) is False


def test_ec2_p384_verify():
    private = ec.generate_private_key(ec.SECP384R1())
    key = _ec_key(private, COSEAlgorithmIdentifier.ES384)
    sig = private.sign(DATA, ec.ECDSA(hashes.SHA384()))
    assert key.verify(DATA, sig) is True


def test_ec2_bad_signature_encoding():
    private = ec.generate_private_key(ec.SECP256R1())
    key = _ec_key(private, COSEAlgorithmIdentifier.ES256)
    with pytest.raises(WebAuthnError) as info:
        key.verify(DATA, b"not der")
    assert info.value.type == "signature_not_provided_or_invalid"


def test_ec2_unsupported_algorithm():
    key = EC2PublicKeyData(key_type=COSEKeyType.EC2, algorithm=COSEAlgorithmIdentifier.RS256)
    with pytest.raises(WebAuthnError) as info:
        key.verify(DATA, b"")
    assert info.value.type == "unsupported_key_algorithm"


def test_ec2_display_matches_key():
    private = ec.generate_private_key(ec.SECP256R1())
    key = _ec_key(private, COSEAlgorithmIdentifier.ES256)
    pem = display_public_key(key.to_cbor())
    assert pem.startswith("-----BEGIN PUBLIC KEY-----\n")
    loaded = serialization.load_pem_public_key(pem.encode())
    assert loaded.public_numbers() == private.public_key().public_numbers()


def test_rsa_pkcs1_verify(rsa_private):
    key = _rsa_key(rsa_private, COSEAlgorithmIdentifier.RS256)
    parsed = parse_public_key(key.to_cbor())
    assert parsed == key
    sig = rsa_private.sign(DATA, padding.PKCS1v15(), hashes.SHA256())
    assert verify_signature(parsed, DATA, sig) is True
    assert verify_signature(parsed, b"other", sig) is False


def test_rsa_pss_verify(rsa_private):
    key = _rsa_key(rsa_private, COSEAlgorithmIdentifier.PS256)
    sig = rsa_private.sign(
        DATA,
        padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH),
        hashes.SHA256(),
    )
    assert key.verify(DATA, sig) is True
    assert key.verify(b"other", sig) is False


def test_rsa_unsupported_algorithm(rsa_private):
    key = _rsa_key(rsa_private, COSEAlgorithmIdentifier.ES256)
    with pytest.raises(WebAuthnError) as info:
        key.verify(DATA, b"\x00")
    assert info.value.type == "unsupported_key_algorithm"


def test_rsa_display(rsa_private):
    key = _rsa_key(rsa_private, COSEAlgorithmIdentifier.RS256)
    pem = display_public_key(key.to_cbor())
    assert pem.startswith("-----BEGIN RSA PUBLIC KEY-----\n")
    assert pem.endswith("-----END RSA PUBLIC KEY-----\n")
    der = pem.replace("RSA PUBLIC KEY", "PUBLIC KEY").encode()
    loaded = serialization.load_pem_public_key(der)
    assert loaded.public_numbers() == rsa_private.public_key().public_numbers()


def test_parse_unsupported_key_type():
    with pytest.raises(WebAuthnError) as info:
        parse_public_key(cbor.dumps({1: 9, 3: -7}))
    assert info.value.type == "invalid_key_type"


def test_parse_garbage():
    with pytest.raises(WebAuthnError) as info:
        parse_public_key(b"\xff\x00")
    assert info.value.type == "invalid_key_type"
    assert display_public_key(b"\xff\x00") == "Cannot display key"


def test_verify_signature_base_key_unsupported():
    with pytest.raises(WebAuthnError) as info:
        verify_signature(PublicKeyData(key_type=2, algorithm=-7), DATA, b"")
    assert info.value.type == "invalid_key_type"


def test_to_cbor_canonical_order():
    key = EC2PublicKeyData(key_type=2, algorithm=-7, curve=1, x_coord=b"\x01", y_coord=b"\x02")
    assert key.to_cbor() == bytes.fromhex("a5010203262001214101224102")


@pytest.mark.parametrize(
    ("alg", "expected"),
    [
        (COSEAlgorithmIdentifier.ES256, SignatureAlgorithm.ECDSA_WITH_SHA256),
        (COSEAlgorithmIdentifier.RS1, SignatureAlgorithm.SHA1_WITH_RSA),
        (COSEAlgorithmIdentifier.PS512, SignatureAlgorithm.SHA512_WITH_RSAPSS),
        (COSEAlgorithmIdentifier.EDDSA, SignatureAlgorithm.UNKNOWN),
        (12345, SignatureAlgorithm.UNKNOWN),
    ],
)
def test_sig_alg_from_cose_alg(alg, expected):
    assert sig_alg_from_cose_alg(alg) == expected


@pytest.mark.parametrize(
    ("alg", "expected"),
    [
        (COSEAlgorithmIdentifier.ES384, hashlib.sha384),
        (COSEAlgorithmIdentifier.EDDSA, hashlib.sha512),
        (COSEAlgorithmIdentifier.RS1, hashlib.sha1),
        (12345, hashlib.sha256),
    ],
)
def test_hasher_from_cose_alg(alg, expected):
    assert hasher_from_cose_alg(alg) is expected


def test_parse_fido_public_key():
    private = ec.generate_private_key(ec.SECP256R1())
    point = private.public_key().public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )
    key = parse_fido_public_key(point)
    numbers = private.public_key().public_numbers()
    assert key.algorithm == COSEAlgorithmIdentifier.ES256
    assert int.from_bytes(key.x_coord, "big") == numbers.x
    assert int.from_bytes(key.y_coord, "big") == numbers.y
    sig = private.sign(DATA, ec.ECDSA(hashes.SHA256()))
    assert key.verify(DATA, sig) is True


def test_parse_fido_public_key_invalid():
    with pytest.raises(WebAuthnError) as info:
        parse_fido_public_key(b"\x04" + b"\x00" * 64)
    assert info.value.type == "invalid_key_type"