"""CBOR in the CTAP2 canonical form used by authenticators."""

from __future__ import annotations

import struct
from collections.abc import Mapping
from typing import Any

import cbor2
from cbor2 import CBORDecodeError

MAX_NESTED_LEVELS = 4

__all__ = ["CBORDecodeError", "MAX_NESTED_LEVELS", "dumps", "loads"]


class _Decoder:
    """Decodes one item, rejecting tags, indefinite lengths and duplicate keys."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise CBORDecodeError("unexpected end of CBOR data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _argument(self, info: int) -> int:
        if info < 24:
            return info
        if info <= 27:
            return int.from_bytes(self._take(1 << (info - 24)), "big")
        if info == 31:
            raise CBORDecodeError("indefinite-length items are not allowed")
        raise CBORDecodeError(f"invalid additional information {info}")

    def _count(self, info: int) -> int:
        count = self._argument(info)
        if count > len(self._data) - self._pos:
            raise CBORDecodeError("unexpected end of CBOR data")
        return count

    @staticmethod
    def _enter(depth: int) -> int:
        depth += 1
        if depth > MAX_NESTED_LEVELS:
            raise CBORDecodeError(
                f"exceeded max nested level {MAX_NESTED_LEVELS}"
            )
        return depth

    def decode(self, depth: int = 0) -> Any:
        initial = self._take(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if major == 0:
            return self._argument(info)
        if major == 1:
            return -1 - self._argument(info)
        if major == 2:
            return self._take(self._count(info))
        if major == 3:
            raw = self._take(self._count(info))
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CBORDecodeError("invalid UTF-8 text string") from exc
        if major == 4:
            inner = self._enter(depth)
            return [self.decode(inner) for _ in range(self._count(info))]
        if major == 5:
            return self._decode_map(info, self._enter(depth))
        if major == 6:
            raise CBORDecodeError("CBOR tags are not allowed")
        return self._simple(info)

    def _decode_map(self, info: int, depth: int) -> dict:
        result: dict = {}
        seen: set = set()
        for _ in range(self._count(info)):
            key = self.decode(depth)
            if isinstance(key, (list, dict)):
                raise CBORDecodeError("map key is not hashable")
            marker = (type(key), key)
            if marker in seen:
                raise CBORDecodeError(f"duplicate map key {key!r}")
            seen.add(marker)
            result[key] = self.decode(depth)
        return result

    def _simple(self, info: int) -> Any:
        if info == 20:
            return False
        if info == 21:
            return True
        if info in (22, 23):
            return None
        if info == 25:
            return struct.unpack(">e", self._take(2))[0]
        if info == 26:
            return struct.unpack(">f", self._take(4))[0]
        if info == 27:
            return struct.unpack(">d", self._take(8))[0]
        if info == 31:
            raise CBORDecodeError("unexpected break code")
        raise CBORDecodeError(f"unsupported simple value {info}")


def loads(data: bytes) -> Any:
    """Decode the first CBOR item in data; trailing bytes are ignored."""
    return _Decoder(bytes(data)).decode()


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        entries = [(dumps(key), key, _canonical(item)) for key, item in value.items()]
        entries.sort(key=lambda entry: (len(entry[0]), entry[0]))
        return {key: item for _, key, item in entries}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def dumps(value: Any) -> bytes:
    """Encode value with map keys in CTAP2 canonical order."""
    return cbor2.dumps(_canonical(value))