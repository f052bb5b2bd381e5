"""Decoding of TPMS_ATTEST structures produced by TPM attestation commands."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from .tpm_codec import Algorithm, TpmDecodeError, TpmReader

_HANDLE_SIZE = 4


class Tag(enum.IntEnum):
    """TPM structure tags."""

    NULL = 0x8000
    NO_SESSIONS = 0x8001
    SESSIONS = 0x8002
    ATTEST_CERTIFY = 0x8017
    ATTEST_QUOTE = 0x8018
    ATTEST_CREATION = 0x801A
    HASH_CHECK = 0x8024


@dataclass
class HashValue:
    """A digest together with the hash algorithm that produced it."""

    alg: Algorithm
    value: bytes


@dataclass
class Name:
    """A TPM name: empty, a handle, or a digest."""

    handle: int | None = None
    digest: HashValue | None = None


@dataclass
class ClockInfo:
    """TPM clock state included in attestation data."""

    clock: int
    reset_count: int
    restart_count: int
    safe: int


@dataclass
class CertifyInfo:
    """Certify-specific attestation data."""

    name: Name
    qualified_name: Name


@dataclass
class PCRSelection:
    """PCR indexes and the hash algorithm used for them."""

    hash: Algorithm
    pcrs: list[int] = field(default_factory=list)


@dataclass
class QuoteInfo:
    """Quote-specific attestation data."""

    pcr_selection: PCRSelection
    pcr_digest: bytes


@dataclass
class CreationInfo:
    """Creation-specific attestation data."""

    name: Name
    opaque_digest: bytes


@dataclass
class AttestationData:
    """Data attested by a TPM command."""

    magic: int
    type: Tag
    qualified_signer: Name
    extra_data: bytes
    clock_info: ClockInfo
    firmware_version: int
    attested_certify_info: CertifyInfo | None = None
    attested_quote_info: QuoteInfo | None = None
    attested_creation_info: CreationInfo | None = None


@contextmanager
def _context(label: str) -> Iterator[None]:
    try:
        yield
    except TpmDecodeError as exc:
        raise TpmDecodeError(f"{label}: {exc}") from exc


def _decode_hash_value(reader: TpmReader) -> HashValue:
    with _context("decoding Alg"):
        alg = Algorithm(reader.read_u16())
    try:
        constructor = alg.hash_constructor()
    except ValueError as exc:
        raise TpmDecodeError(
            f"unsupported hash algorithm type 0x{int(alg):x}"
        ) from exc
    with _context("decoding Value"):
        value = reader.read_raw(constructor().digest_size)
    return HashValue(alg=alg, value=value)


def _decode_name(reader: TpmReader) -> Name:
    name_buf = reader.read_sized_bytes()
    if not name_buf:
        return Name()
    if len(name_buf) == _HANDLE_SIZE:
        with _context("decoding Handle"):
            return Name(handle=TpmReader(name_buf).read_u32())
    with _context("decoding Digest"):
        return Name(digest=_decode_hash_value(TpmReader(name_buf)))


def _decode_certify_info(reader: TpmReader) -> CertifyInfo:
    with _context("decoding Name"):
        name = _decode_name(reader)
    with _context("decoding QualifiedName"):
        qualified_name = _decode_name(reader)
    return CertifyInfo(name=name, qualified_name=qualified_name)


def _decode_creation_info(reader: TpmReader) -> CreationInfo:
    with _context("decoding Name"):
        name = _decode_name(reader)
    with _context("decoding Digest"):
        digest = reader.read_sized_bytes()
    return CreationInfo(name=name, opaque_digest=digest)


def _decode_pcr_selection(reader: TpmReader) -> PCRSelection:
    count = reader.read_u32()
    if count == 0:
        return PCRSelection(hash=Algorithm.UNKNOWN)
    if count != 1:
        raise TpmDecodeError(
            "decoding TPML_PCR_SELECTION list longer than 1 is not supported "
            f"(got length {count})"
        )
    hash_alg = Algorithm(reader.read_u16())
    bitmap = reader.read_raw(reader.read_u8())
    pcrs = [
        8 * index + bit
        for index, octet in enumerate(bitmap)
        for bit in range(8)
        if octet & (1 << bit)
    ]
    return PCRSelection(hash=hash_alg, pcrs=pcrs)


def _decode_quote_info(reader: TpmReader) -> QuoteInfo:
    with _context("decoding PCRSelection"):
        selection = _decode_pcr_selection(reader)
    with _context("decoding PCRDigest"):
        digest = reader.read_sized_bytes()
    return QuoteInfo(pcr_selection=selection, pcr_digest=digest)


def decode_attestation_data(data: bytes) -> AttestationData:
    """Decode a TPMS_ATTEST message; trailing data is ignored.

    Only Certify, Creation and Quote attestation is supported; anything else,
    or malformed input, raises TpmDecodeError.
    """
    reader = TpmReader(data)
    with _context("decoding Magic/Type"):
        magic = reader.read_u32()
        raw_type = reader.read_u16()
    with _context("decoding QualifiedSigner"):
        qualified_signer = _decode_name(reader)
    with _context("decoding ExtraData/ClockInfo/FirmwareVersion"):
        extra_data = reader.read_sized_bytes()
        clock_info = ClockInfo(
            clock=reader.read_u64(),
            reset_count=reader.read_u32(),
            restart_count=reader.read_u32(),
            safe=reader.read_u8(),
        )
        firmware_version = reader.read_u64()

    if raw_type not in (Tag.ATTEST_CERTIFY, Tag.ATTEST_CREATION, Tag.ATTEST_QUOTE):
        raise TpmDecodeError(
            "only Certify & Creation attestation structures are supported, "
            f"got type 0x{raw_type:x}"
        )

    result = AttestationData(
        magic=magic,
        type=Tag(raw_type),
        qualified_signer=qualified_signer,
        extra_data=extra_data,
        clock_info=clock_info,
        firmware_version=firmware_version,
    )
    if result.type == Tag.ATTEST_CERTIFY:
        with _context("decoding AttestedCertifyInfo"):
            result.attested_certify_info = _decode_certify_info(reader)
    elif result.type == Tag.ATTEST_CREATION:
        with _context("decoding AttestedCreationInfo"):
            result.attested_creation_info = _decode_creation_info(reader)
    else:
        with _context("decoding AttestedQuoteInfo"):
            result.attested_quote_info = _decode_quote_info(reader)
    return result