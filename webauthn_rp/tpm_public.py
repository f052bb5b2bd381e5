"""Decoding of TPMT_PUBLIC structures describing a TPM key's public area."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .tpm_codec import Algorithm, TpmDecodeError, TpmReader

DEFAULT_RSA_EXPONENT = (1 << 16) + 1


class KeyProp(enum.IntFlag):
    """Bits of the object attributes in a key template."""

    FIXED_TPM = 0x00000002
    FIXED_PARENT = 0x00000010
    SENSITIVE_DATA_ORIGIN = 0x00000020
    USER_WITH_AUTH = 0x00000040
    ADMIN_WITH_POLICY = 0x00000080
    NO_DA = 0x00000400
    RESTRICTED = 0x00010000
    DECRYPT = 0x00020000
    SIGN = 0x00040000

    SEAL_DEFAULT = 0x00000002 | 0x00000010
    SIGNER_DEFAULT = (
        0x00040000 | 0x00010000 | 0x00000002 | 0x00000010 | 0x00000020 | 0x00000040
    )
    STORAGE_DEFAULT = (
        0x00020000 | 0x00010000 | 0x00000002 | 0x00000010 | 0x00000020 | 0x00000040
    )


class EllipticCurve(enum.IntEnum):
    """ECC curves defined by the TPM 2.0 specification; others kept as-is."""

    NIST_P192 = 1
    NIST_P224 = 2
    NIST_P256 = 3
    NIST_P384 = 4
    NIST_P521 = 5
    BN_P256 = 15
    BN_P638 = 16
    SM2_P256 = 0x0020

    @classmethod
    def _missing_(cls, value: object) -> EllipticCurve | None:
        if isinstance(value, int) and 0 <= value <= 0xFFFF:
            member = int.__new__(cls, value)
            member._name_ = f"CURVE_0x{value:04x}"
            member._value_ = value
            return member
        return None


@dataclass
class SymScheme:
    """A symmetric encryption scheme."""

    alg: Algorithm
    key_bits: int
    mode: Algorithm


@dataclass
class SigScheme:
    """A signing scheme."""

    alg: Algorithm
    hash: Algorithm
    count: int = 0


@dataclass
class KDFScheme:
    """A key derivation function scheme."""

    alg: Algorithm
    hash: Algorithm


@dataclass
class ECPoint:
    """Coordinates of an ECC point."""

    x: int
    y: int


@dataclass
class RSAParams:
    """Parameters of an RSA key.

    An exponent sent as zero means the default 65537; that is recorded in
    encode_default_exponent_as_zero so the original encoding is known.
    """

    symmetric: SymScheme | None
    sign: SigScheme | None
    key_bits: int
    exponent: int
    modulus: int
    modulus_raw: bytes = b""
    encode_default_exponent_as_zero: bool = False


@dataclass
class ECCParams:
    """Parameters of an ECC key."""

    symmetric: SymScheme | None
    sign: SigScheme | None
    curve_id: EllipticCurve
    kdf: KDFScheme | None
    point: ECPoint


@dataclass
class Public:
    """The public area of a TPM object."""

    type: Algorithm
    name_alg: Algorithm
    attributes: KeyProp
    auth_policy: bytes
    rsa_parameters: RSAParams | None = None
    ecc_parameters: ECCParams | None = None


@contextmanager
def _context(label: str) -> Iterator[None]:
    try:
        yield
    except TpmDecodeError as exc:
        raise TpmDecodeError(f"{label}: {exc}") from exc


def _read_alg(reader: TpmReader) -> Algorithm:
    return Algorithm(reader.read_u16())


def _decode_sym_scheme(reader: TpmReader) -> SymScheme | None:
    with _context("decoding Alg"):
        alg = _read_alg(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding KeyBits, Mode"):
        key_bits = reader.read_u16()
        mode = _read_alg(reader)
    return SymScheme(alg=alg, key_bits=key_bits, mode=mode)


def _decode_sig_scheme(reader: TpmReader) -> SigScheme | None:
    with _context("decoding Alg"):
        alg = _read_alg(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding Hash"):
        hash_alg = _read_alg(reader)
    count = 0
    if alg.uses_count():
        with _context("decoding Count"):
            count = reader.read_u32()
    return SigScheme(alg=alg, hash=hash_alg, count=count)


def _decode_kdf_scheme(reader: TpmReader) -> KDFScheme | None:
    with _context("decoding Alg"):
        alg = _read_alg(reader)
    if alg == Algorithm.NULL:
        return None
    with _context("decoding Hash"):
        hash_alg = _read_alg(reader)
    return KDFScheme(alg=alg, hash=hash_alg)


def _decode_rsa_params(reader: TpmReader) -> RSAParams:
    with _context("decoding Symmetric"):
        symmetric = _decode_sym_scheme(reader)
    with _context("decoding Sign"):
        sign = _decode_sig_scheme(reader)
    with _context("decoding KeyBits, Exponent, Modulus"):
        key_bits = reader.read_u16()
        exponent = reader.read_u32()
        modulus = reader.read_sized_bytes()
    default_as_zero = exponent == 0
    return RSAParams(
        symmetric=symmetric,
        sign=sign,
        key_bits=key_bits,
        exponent=DEFAULT_RSA_EXPONENT if default_as_zero else exponent,
        modulus=int.from_bytes(modulus, "big"),
        encode_default_exponent_as_zero=default_as_zero,
    )


def _decode_ecc_params(reader: TpmReader) -> ECCParams:
    with _context("decoding Symmetric"):
        symmetric = _decode_sym_scheme(reader)
    with _context("decoding Sign"):
        sign = _decode_sig_scheme(reader)
    with _context("decoding CurveID"):
        curve_id = EllipticCurve(reader.read_u16())
    with _context("decoding KDF"):
        kdf = _decode_kdf_scheme(reader)
    with _context("decoding Point"):
        x = reader.read_sized_bytes()
        y = reader.read_sized_bytes()
    return ECCParams(
        symmetric=symmetric,
        sign=sign,
        curve_id=curve_id,
        kdf=kdf,
        point=ECPoint(x=int.from_bytes(x, "big"), y=int.from_bytes(y, "big")),
    )


def decode_public(data: bytes) -> Public:
    """Decode a TPMT_PUBLIC message; trailing data is ignored.

    Only RSA and ECC keys are supported; other types or malformed input
    raise TpmDecodeError.
    """
    reader = TpmReader(data)
    with _context("decoding TPMT_PUBLIC"):
        key_type = _read_alg(reader)
        name_alg = _read_alg(reader)
        attributes = KeyProp(reader.read_u32())
        auth_policy = reader.read_sized_bytes()

    public = Public(
        type=key_type,
        name_alg=name_alg,
        attributes=attributes,
        auth_policy=auth_policy,
    )
    if key_type == Algorithm.RSA:
        public.rsa_parameters = _decode_rsa_params(reader)
    elif key_type == Algorithm.ECC:
        public.ecc_parameters = _decode_ecc_params(reader)
    else:
        raise TpmDecodeError(f"unsupported type in TPMT_PUBLIC: {int(key_type)}")
    return public