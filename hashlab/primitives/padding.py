"""Block padding for AES and the ciphertext sizing helpers.

ANSI X9.23 as implemented here fills with random bytes and ends with the
pad length. Stripping it cannot recover the original length from the
padding alone, so strip() returns the data unchanged unless the caller
passes the length it tracked itself.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Union

from ..config import load_settings
from ..errors import PreconditionError
from .aes import BLOCK_SIZE, IV_SIZE, MAC_SIZE
from .util import BytesLike

if TYPE_CHECKING:
    from .sprng import EntropyPool


class PaddingScheme(IntEnum):
    DEFAULT = 0     # same as PKCS7
    PKCS7 = 1       # pad with the padding size
    ISO_M2 = 2      # pad with 0x80, 0x00 ... 0x00
    ANSI_X923 = 3   # pad with randomness, last byte is the padding size

    @classmethod
    def from_name(cls, name: str) -> PaddingScheme:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise PreconditionError(f"unknown padding scheme: {name!r}") from None


def _resolve(scheme: Union[PaddingScheme, int, str, None]) -> PaddingScheme:
    if scheme is None:
        scheme = load_settings().default_padding
    if isinstance(scheme, str):
        scheme = PaddingScheme.from_name(scheme)
    try:
        scheme = PaddingScheme(scheme)
    except ValueError:
        raise PreconditionError(f"unknown padding scheme: {scheme!r}") from None
    return PaddingScheme.PKCS7 if scheme == PaddingScheme.DEFAULT else scheme


def padded_size(length: int) -> int:
    """Padded size of `length` bytes of data. Aligned input gains a full block."""
    return ((length // BLOCK_SIZE) + 1) * BLOCK_SIZE


def ciphertext_size(length: int) -> int:
    """Padded size plus the IV."""
    return padded_size(length) + IV_SIZE


def auth_ciphertext_size(length: int) -> int:
    """Padded size plus IV plus MAC."""
    return ciphertext_size(length) + MAC_SIZE


def rsa_padded_size(modulus_len: int) -> int:
    """OAEP output is exactly the modulus length."""
    return modulus_len


def pad(
    data: BytesLike,
    scheme: Union[PaddingScheme, int, str, None] = None,
    *,
    rng: Optional[EntropyPool] = None,
) -> bytes:
    """Pad data to a whole number of AES blocks.

    Args:
        data: Message to pad.
        scheme: Padding scheme (PaddingScheme, its value, or its name).
            Defaults to Settings.default_padding.
        rng: SPRNG handle; required for ANSI_X923.

    Returns:
        Padded bytes of length padded_size(len(data)).

    Raises:
        PreconditionError: unknown scheme, or ANSI_X923 without an rng.
        pydantic.ValidationError: scheme is omitted and HASHLAB_DEFAULT_PADDING
            does not name a known scheme.
    """
    scheme = _resolve(scheme)
    data = bytes(data)
    k = BLOCK_SIZE - (len(data) % BLOCK_SIZE)

    if scheme == PaddingScheme.PKCS7:
        return data + bytes([k]) * k
    if scheme == PaddingScheme.ISO_M2:
        return data + b"\x80" + bytes(k - 1)
    # ANSI_X923
    if rng is None:
        raise PreconditionError("ANSI X9.23 padding requires an EntropyPool (rng=)")
    filler = rng.random_bytes(k - 1) if k > 1 else b""
    return data + filler + bytes([k])


def strip(
    data: BytesLike,
    scheme: Union[PaddingScheme, int, str, None] = None,
    *,
    length: Optional[int] = None,
) -> bytes:
    """Remove padding added by pad().

    Args:
        data: Padded, block-aligned data.
        scheme: Padding scheme used by pad().
        length: Caller-tracked original length. Only used (and then
            required for a real strip) with ANSI_X923.

    Raises:
        PreconditionError: malformed padding or misaligned input.
    """
    scheme = _resolve(scheme)
    data = bytes(data)
    n = len(data)
    if n == 0 or n % BLOCK_SIZE != 0:
        raise PreconditionError(f"padded data length must be a non-zero multiple of {BLOCK_SIZE}")

    if scheme == PaddingScheme.PKCS7:
        k = data[-1]
        if not 1 <= k <= BLOCK_SIZE:
            raise PreconditionError("invalid PKCS#7 padding")
        bad = 0
        for b in data[n - k:]:
            bad |= b ^ k
        if bad:
            raise PreconditionError("invalid PKCS#7 padding")
        return data[:n - k]

    if scheme == PaddingScheme.ISO_M2:
        i = n - 1
        while i >= n - BLOCK_SIZE and data[i] == 0:
            i -= 1
        if i < n - BLOCK_SIZE or data[i] != 0x80:
            raise PreconditionError("invalid ISO/IEC 9797-1 method 2 padding")
        return data[:i]

    # ANSI_X923
    if length is None:
        return data
    if not n - BLOCK_SIZE <= length < n or n - length != data[-1]:
        raise PreconditionError("tracked length does not match ANSI X9.23 padding")
    return data[:length]
