"""
Ledger Encoding Helpers

This module provides the small byte-level helpers shared by the transaction
compiler and the account query builders: compact length prefixes,
little-endian integers, and base-58/base-64 text encodings.
"""

from __future__ import annotations
import base64
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

import base58

T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")

SHORTVEC_MAX = 0xFFFF


def encode_shortvec(value: int) -> bytes:
    """
    Encode a compact array length (7 bits per byte, at most 3 bytes).

    Args:
        value: Length to encode

    Returns:
        Encoded bytes
    """
    if value < 0 or value > SHORTVEC_MAX:
        raise ValueError(f"shortvec length out of range: {value}")

    result = bytearray()
    while value >= 0x80:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value & 0x7F)
    return bytes(result)


def decode_shortvec(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a compact array length.

    Args:
        data: Bytes to read from
        offset: Starting offset

    Returns:
        Tuple of (value, new_offset)
    """
    value = 0
    shift = 0
    pos = offset

    while pos < len(data):
        byte = data[pos]
        pos += 1

        value |= (byte & 0x7F) << shift
        if (byte & 0x80) == 0:
            return value, pos

        shift += 7
        if shift > 14:
            raise ValueError("shortvec too large")

    raise ValueError("unexpected end of shortvec")


def int_to_le_bytes(value: int, byte_length: Optional[int] = None) -> bytes:
    """
    Encode a non-negative integer as little-endian bytes.

    Without ``byte_length`` the shortest encoding is used (zero encodes to a
    single zero byte).
    """
    if value < 0:
        raise ValueError("cannot encode a negative integer as unsigned bytes")
    if byte_length is None:
        byte_length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(byte_length, "little")


def int_from_le_bytes(data: bytes) -> int:
    return int.from_bytes(data, "little")


def b58encode(data: bytes) -> str:
    return base58.b58encode(bytes(data)).decode("ascii")


def b58decode(text: str) -> bytes:
    return base58.b58decode(text)


def b64encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def b64decode(text: str) -> bytes:
    return base64.b64decode(text)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split a sequence into consecutive lists of at most ``size`` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def zip_map(left: Iterable[T], right: Iterable[U], fn: Callable[[T, Optional[U]], V]) -> List[V]:
    """Map two iterables pairwise; missing right-hand values are passed as None."""
    right_list = list(right)
    return [fn(item, right_list[i] if i < len(right_list) else None)
            for i, item in enumerate(left)]


def unique_by(items: Iterable[T], key: Callable[[T], Any]) -> List[T]:
    """Keep the first item for each key, preserving order."""
    seen = set()
    result = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result


__all__ = [
    "encode_shortvec",
    "decode_shortvec",
    "int_to_le_bytes",
    "int_from_le_bytes",
    "b58encode",
    "b58decode",
    "b64encode",
    "b64decode",
    "chunk",
    "zip_map",
    "unique_by",
]
