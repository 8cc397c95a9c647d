"""Byte helpers shared by the primitives.

compare_digest() is the only comparator used for secret material. It walks
every byte regardless of where the first difference is.
"""

from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def xor_bytes(a: BytesLike, b: BytesLike) -> bytes:
    """XOR two byte strings of equal length."""
    if len(a) != len(b):
        raise ValueError("xor_bytes length mismatch")
    return bytes(x ^ y for x, y in zip(a, b))


def compare_digest(a: BytesLike, b: BytesLike) -> bool:
    """Compare two buffers in time independent of their contents.

    Only the lengths leak: buffers of different length compare unequal
    immediately, since a length is never secret in this library.
    """
    if len(a) != len(b):
        return False
    acc = 0
    for x, y in zip(a, b):
        acc |= x ^ y
    return acc == 0


def erase(buffer: Union[bytearray, memoryview, list]) -> None:
    """Zero a mutable buffer in place.

    Accepts bytearrays, writable memoryviews and lists of words (key
    schedules, hash state).
    """
    if isinstance(buffer, list):
        for i in range(len(buffer)):
            buffer[i] = 0
        return
    view = memoryview(buffer).cast("B")
    if view.readonly:
        raise TypeError("cannot erase a read-only buffer")
    view[:] = bytes(len(view))
