"""COSE credential public keys: parsing, signature checks and PEM display."""

from __future__ import annotations

import base64
import enum
import hashlib
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from . import cbor
from .errors import (
    ERR_SIG_NOT_PROVIDED_OR_INVALID,
    ERR_UNSUPPORTED_ALGORITHM,
    ERR_UNSUPPORTED_KEY,
)

ED25519_PUBLIC_KEY_SIZE = 32
_CANNOT_DISPLAY = "Cannot display key"

Hasher = Callable[..., Any]


class COSEAlgorithmIdentifier(enum.IntEnum):
    """IANA COSE algorithm identifiers."""

    ES256 = -7
    ES384 = -35
    ES512 = -36
    RS1 = -65535
    RS256 = -257
    RS384 = -258
    RS512 = -259
    PS256 = -37
    PS384 = -38
    PS512 = -39
    EDDSA = -8


class COSEKeyType(enum.IntEnum):
    """IANA COSE key types."""

    OKP = 1
    EC2 = 2
    RSA = 3


class SignatureAlgorithm(enum.IntEnum):
    """Signature algorithms a COSE algorithm maps onto."""

    UNKNOWN = 0
    MD2_WITH_RSA = 1
    MD5_WITH_RSA = 2
    SHA1_WITH_RSA = 3
    SHA256_WITH_RSA = 4
    SHA384_WITH_RSA = 5
    SHA512_WITH_RSA = 6
    DSA_WITH_SHA1 = 7
    DSA_WITH_SHA256 = 8
    ECDSA_WITH_SHA1 = 9
    ECDSA_WITH_SHA256 = 10
    ECDSA_WITH_SHA384 = 11
    ECDSA_WITH_SHA512 = 12
    SHA256_WITH_RSAPSS = 13
    SHA384_WITH_RSAPSS = 14
    SHA512_WITH_RSAPSS = 15


@dataclass(frozen=True)
class _AlgorithmDetails:
    algo: SignatureAlgorithm
    cose_alg: COSEAlgorithmIdentifier
    name: str
    hasher: Hasher


_A = COSEAlgorithmIdentifier
_S = SignatureAlgorithm

SIGNATURE_ALGORITHM_DETAILS = (
    _AlgorithmDetails(_S.SHA1_WITH_RSA, _A.RS1, "SHA1-RSA", hashlib.sha1),
    _AlgorithmDetails(_S.SHA256_WITH_RSA, _A.RS256, "SHA256-RSA", hashlib.sha256),
    _AlgorithmDetails(_S.SHA384_WITH_RSA, _A.RS384, "SHA384-RSA", hashlib.sha384),
    _AlgorithmDetails(_S.SHA512_WITH_RSA, _A.RS512, "SHA512-RSA", hashlib.sha512),
    _AlgorithmDetails(_S.SHA256_WITH_RSAPSS, _A.PS256, "SHA256-RSAPSS", hashlib.sha256),
    _AlgorithmDetails(_S.SHA384_WITH_RSAPSS, _A.PS384, "SHA384-RSAPSS", hashlib.sha384),
    _AlgorithmDetails(_S.SHA512_WITH_RSAPSS, _A.PS512, "SHA512-RSAPSS", hashlib.sha512),
    _AlgorithmDetails(_S.ECDSA_WITH_SHA256, _A.ES256, "ECDSA-SHA256", hashlib.sha256),
    _AlgorithmDetails(_S.ECDSA_WITH_SHA384, _A.ES384, "ECDSA-SHA384", hashlib.sha384),
    _AlgorithmDetails(_S.ECDSA_WITH_SHA512, _A.ES512, "ECDSA-SHA512", hashlib.sha512),
    _AlgorithmDetails(_S.UNKNOWN, _A.EDDSA, "EdDSA", hashlib.sha512),
)

_CRYPTO_HASHES = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

_EC_CURVES = {
    _A.ES256: ec.SECP256R1,
    _A.ES384: ec.SECP384R1,
    _A.ES512: ec.SECP521R1,
}

_RSA_HASHES = {
    _A.RS1: hashes.SHA1,
    _A.RS256: hashes.SHA256,
    _A.PS256: hashes.SHA256,
    _A.RS384: hashes.SHA384,
    _A.PS384: hashes.SHA384,
    _A.RS512: hashes.SHA512,
    _A.PS512: hashes.SHA512,
}

_PSS_ALGORITHMS = frozenset({_A.PS256, _A.PS384, _A.PS512})


def sig_alg_from_cose_alg(cose_alg: int) -> SignatureAlgorithm:
    """Return the signature algorithm for a COSE algorithm identifier."""
    for details in SIGNATURE_ALGORITHM_DETAILS:
        if details.cose_alg == cose_alg:
            return details.algo
    return SignatureAlgorithm.UNKNOWN


def hasher_from_cose_alg(cose_alg: int) -> Hasher:
    """Return the hashlib constructor for a COSE algorithm; SHA-256 if unknown."""
    for details in SIGNATURE_ALGORITHM_DETAILS:
        if details.cose_alg == cose_alg:
            return details.hasher
    return hashlib.sha256


def _crypto_hash(cose_alg: int) -> hashes.HashAlgorithm:
    return _CRYPTO_HASHES[hasher_from_cose_alg(cose_alg)().name]()


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def _rsa_exponent(exponent: bytes) -> int:
    if len(exponent) < 3:
        raise ERR_UNSUPPORTED_KEY.with_details("RSA exponent is too short")
    return int.from_bytes(exponent[:3], "big")


def _pem(label: str, der: bytes) -> str:
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), 64))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n"


def _spki(key: Any) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


@dataclass
class PublicKeyData:
    """The fields common to every COSE credential public key."""

    key_type: int = 0
    algorithm: int = 0

    def _cbor_map(self) -> dict[int, Any]:
        return {1: int(self.key_type), 3: int(self.algorithm)}

    def to_cbor(self) -> bytes:
        """Encode the key as a CTAP2 canonical COSE map."""
        return cbor.dumps(self._cbor_map())


@dataclass
class EC2PublicKeyData(PublicKeyData):
    """An elliptic curve public key."""

    curve: int = 0
    x_coord: bytes = b""
    y_coord: bytes = b""

    def _cbor_map(self) -> dict[int, Any]:
        result = super()._cbor_map()
        if self.curve:
            result[-1] = int(self.curve)
        if self.x_coord:
            result[-2] = bytes(self.x_coord)
        if self.y_coord:
            result[-3] = bytes(self.y_coord)
        return result

    def _public_key(self) -> ec.EllipticCurvePublicKey:
        curve = _EC_CURVES.get(self.algorithm)
        if curve is None:
            raise ERR_UNSUPPORTED_ALGORITHM
        numbers = ec.EllipticCurvePublicNumbers(
            int.from_bytes(self.x_coord, "big"),
            int.from_bytes(self.y_coord, "big"),
            curve(),
        )
        return numbers.public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check an ASN.1 DER ECDSA signature over data."""
        if self.algorithm not in _EC_CURVES:
            raise ERR_UNSUPPORTED_ALGORITHM
        try:
            r, s = decode_dss_signature(bytes(sig))
        except ValueError as exc:
            raise ERR_SIG_NOT_PROVIDED_OR_INVALID from exc
        try:
            key = self._public_key()
            key.verify(
                encode_dss_signature(r, s),
                bytes(data),
                ec.ECDSA(_crypto_hash(self.algorithm)),
            )
        except (InvalidSignature, ValueError):
            return False
        return True


@dataclass
class RSAPublicKeyData(PublicKeyData):
    """An RSA public key."""

    modulus: bytes = b""
    exponent: bytes = b""

    def _cbor_map(self) -> dict[int, Any]:
        result = super()._cbor_map()
        if self.modulus:
            result[-1] = bytes(self.modulus)
        if self.exponent:
            result[-2] = bytes(self.exponent)
        return result

    def _public_key(self) -> rsa.RSAPublicKey:
        numbers = rsa.RSAPublicNumbers(
            _rsa_exponent(self.exponent), int.from_bytes(self.modulus, "big")
        )
        return numbers.public_key()

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check a PKCS#1 v1.5 or PSS signature over data."""
        hash_type = _RSA_HASHES.get(self.algorithm)
        if hash_type is None:
            raise ERR_UNSUPPORTED_ALGORITHM
        try:
            key = self._public_key()
        except ValueError as exc:
            raise ERR_UNSUPPORTED_KEY.with_details("Invalid RSA public key") from exc
        if self.algorithm in _PSS_ALGORITHMS:
            scheme: padding.AsymmetricPadding = padding.PSS(
                mgf=padding.MGF1(hash_type()), salt_length=padding.PSS.AUTO
            )
        else:
            scheme = padding.PKCS1v15()
        try:
            key.verify(bytes(sig), bytes(data), scheme, hash_type())
        except InvalidSignature:
            return False
        return True


@dataclass
class OKPPublicKeyData(PublicKeyData):
    """An octet key pair public key (Ed25519)."""

    curve: int = 0
    x_coord: bytes = b""

    def _cbor_map(self) -> dict[int, Any]:
        result = super()._cbor_map()
        if self.curve:
            result[-1] = int(self.curve)
        if self.x_coord:
            result[-2] = bytes(self.x_coord)
        return result

    def verify(self, data: bytes, sig: bytes) -> bool:
        """Check an Ed25519 signature over data."""
        raw = bytes(self.x_coord[:ED25519_PUBLIC_KEY_SIZE]).ljust(
            ED25519_PUBLIC_KEY_SIZE, b"\0"
        )
        if len(sig) != 64:
            return False
        try:
            key = ed25519.Ed25519PublicKey.from_public_bytes(raw)
            key.verify(bytes(sig), bytes(data))
        except (InvalidSignature, ValueError):
            return False
        return True


AnyPublicKey = Union[OKPPublicKeyData, EC2PublicKeyData, RSAPublicKeyData]


def _int_field(fields: dict, key: int) -> int:
    value = fields.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _bytes_field(fields: dict, key: int) -> bytes:
    value = fields.get(key)
    return bytes(value) if isinstance(value, (bytes, bytearray)) else b""


def parse_public_key(key_bytes: bytes) -> AnyPublicKey:
    """Decode COSE key bytes into the matching key class."""
    try:
        fields = cbor.loads(key_bytes)
    except (cbor.CBORDecodeError, ValueError) as exc:
        raise ERR_UNSUPPORTED_KEY from exc
    if not isinstance(fields, dict):
        raise ERR_UNSUPPORTED_KEY
    key_type = _int_field(fields, 1)
    algorithm = _int_field(fields, 3)
    if key_type == COSEKeyType.OKP:
        return OKPPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(fields, -1),
            x_coord=_bytes_field(fields, -2),
        )
    if key_type == COSEKeyType.EC2:
        return EC2PublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            curve=_int_field(fields, -1),
            x_coord=_bytes_field(fields, -2),
            y_coord=_bytes_field(fields, -3),
        )
    if key_type == COSEKeyType.RSA:
        return RSAPublicKeyData(
            key_type=key_type,
            algorithm=algorithm,
            modulus=_bytes_field(fields, -1),
            exponent=_bytes_field(fields, -2),
        )
    raise ERR_UNSUPPORTED_KEY


def parse_fido_public_key(key_bytes: bytes) -> EC2PublicKeyData:
    """Parse an uncompressed P-256 point as used by FIDO U2F (appid) credentials."""
    raw = bytes(key_bytes)
    if len(raw) != 65 or raw[0] != 0x04:
        raise ERR_UNSUPPORTED_KEY.with_details("Invalid FIDO public key")
    try:
        point = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), raw)
    except ValueError as exc:
        raise ERR_UNSUPPORTED_KEY.with_details("Invalid FIDO public key") from exc
    numbers = point.public_numbers()
    return EC2PublicKeyData(
        algorithm=int(COSEAlgorithmIdentifier.ES256),
        x_coord=_int_to_bytes(numbers.x),
        y_coord=_int_to_bytes(numbers.y),
    )


def verify_signature(key: PublicKeyData, data: bytes, sig: bytes) -> bool:
    """Verify sig over data with a parsed COSE key."""
    if isinstance(key, (OKPPublicKeyData, EC2PublicKeyData, RSAPublicKeyData)):
        return key.verify(data, sig)
    raise ERR_UNSUPPORTED_KEY


def display_public_key(cpk: bytes) -> str:
    """Render COSE key bytes as PEM, or a short message if that is not possible."""
    try:
        key = parse_public_key(cpk)
    except Exception:
        return _CANNOT_DISPLAY
    try:
        if isinstance(key, RSAPublicKeyData):
            return _pem("RSA PUBLIC KEY", _spki(key._public_key()))
        if isinstance(key, EC2PublicKeyData):
            if key.algorithm not in _EC_CURVES:
                return _CANNOT_DISPLAY
            return _pem("PUBLIC KEY", _spki(key._public_key()))
        if isinstance(key, OKPPublicKeyData):
            if len(key.x_coord) != ED25519_PUBLIC_KEY_SIZE:
                return _CANNOT_DISPLAY
            public = ed25519.Ed25519PublicKey.from_public_bytes(key.x_coord)
            return _pem("PUBLIC KEY", _spki(public))
    except Exception:
        return _CANNOT_DISPLAY
    return "Cannot display key of this type"