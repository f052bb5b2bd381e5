"""Big-endian TPM 2.0 wire decoding primitives and algorithm identifiers."""

from __future__ import annotations

import enum
import hashlib
from typing import Any, Callable

HashConstructor = Callable[..., Any]

LENGTH_PREFIX_SIZE = 2


class TpmDecodeError(ValueError):
    """Raised when TPM structures cannot be decoded."""


class Algorithm(enum.IntEnum):
    """TPM_ALG_ID values; unknown identifiers are kept as pseudo-members."""

    UNKNOWN = 0x0000
    RSA = 0x0001
    SHA1 = 0x0004
    AES = 0x0006
    KEYED_HASH = 0x0008
    SHA256 = 0x000B
    SHA384 = 0x000C
    SHA512 = 0x000D
    NULL = 0x0010
    RSASSA = 0x0014
    RSAES = 0x0015
    RSAPSS = 0x0016
    OAEP = 0x0017
    ECDSA = 0x0018
    ECDH = 0x0019
    ECDAA = 0x001A
    KDF2 = 0x0021
    ECC = 0x0023
    CTR = 0x0040
    OFB = 0x0041
    CBC = 0x0042
    CFB = 0x0043
    ECB = 0x0044

    @classmethod
    def _missing_(cls, value: object) -> Algorithm | None:
        if isinstance(value, int) and 0 <= value <= 0xFFFF:
            member = int.__new__(cls, value)
            member._name_ = f"ALG_0x{value:04x}"
            member._value_ = value
            return member
        return None

    def hash_constructor(self) -> HashConstructor:
        """Return the hashlib constructor for this algorithm.

        Raises ValueError if the algorithm is not a supported hash.
        """
        constructor = _HASH_CONSTRUCTORS.get(int(self))
        if constructor is None:
            raise ValueError(f"algorithm not supported: 0x{int(self):x}")
        return constructor

    def uses_count(self) -> bool:
        """Return True if a signature scheme with this algorithm carries a count."""
        return self == Algorithm.ECDAA


_HASH_CONSTRUCTORS: dict[int, HashConstructor] = {
    Algorithm.SHA1: hashlib.sha1,
    Algorithm.SHA256: hashlib.sha256,
    Algorithm.SHA384: hashlib.sha384,
    Algorithm.SHA512: hashlib.sha512,
}


class TpmReader:
    """Reads big-endian integers and length-prefixed byte strings from a buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._data) - self._pos

    def read_raw(self, size: int) -> bytes:
        """Read exactly size bytes with no length prefix."""
        if size < 0:
            raise TpmDecodeError(f"invalid read size {size}")
        if size > self.remaining:
            raise TpmDecodeError(
                f"unexpected end of data: need {size} bytes, have {self.remaining}"
            )
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def _read_int(self, size: int) -> int:
        return int.from_bytes(self.read_raw(size), "big")

    def read_u8(self) -> int:
        return self._read_int(1)

    def read_u16(self) -> int:
        return self._read_int(2)

    def read_u32(self) -> int:
        return self._read_int(4)

    def read_u64(self) -> int:
        return self._read_int(8)

    def read_sized_bytes(self) -> bytes:
        """Read a byte string preceded by its TPM 2.0 two-byte length."""
        return self.read_raw(self._read_int(LENGTH_PREFIX_SIZE))