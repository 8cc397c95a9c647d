"""AES chained modes: CBC, CBC-MAC and encrypt-then-MAC authenticated encryption.

Authenticated ciphertext layout (fixed)::

    IV[16] || CBC-Encrypt(padded plaintext)[N*16] || MAC[16]

where MAC = CBC-MAC(IV || ciphertext) under a *separate* MAC key schedule
with a zero IV.

Buffer aliasing: every function that takes ``into`` may write in place over
its input, provided the output view starts at or before the input view in
the same underlying buffer. Blocks are processed in increasing order and
each input block is copied out before its output slot is written.
For auth_encrypt() the IV is written first, so the plaintext must start at
least one block after ``into`` (e.g. pad straight into ``into[16:]``).

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from ..config import load_settings
from ..errors import AlignmentError, IntegrityError, PreconditionError
from .aes import BLOCK_SIZE, AesKeySchedule, decrypt_block, encrypt_block
from .util import BytesLike, compare_digest

logger = logging.getLogger(__name__)

Output = Union[bytearray, memoryview]

_ZERO_IV = bytes(BLOCK_SIZE)


def _check_aligned(length: int, what: str) -> None:
    if length % BLOCK_SIZE != 0:
        raise AlignmentError(f"{what} length must be a multiple of {BLOCK_SIZE}, got {length}")


def _check_iv(iv: BytesLike) -> None:
    if len(iv) != BLOCK_SIZE:
        raise PreconditionError(f"iv must be {BLOCK_SIZE} bytes")


def _output(into: Optional[Output], size: int) -> memoryview:
    if into is None:
        return memoryview(bytearray(size))
    view = memoryview(into).cast("B")
    if view.readonly:
        raise PreconditionError("into must be writable")
    if len(view) < size:
        raise PreconditionError(f"into length must be at least {size}")
    return view[:size]


def _result(into: Optional[Output], view: memoryview) -> Output:
    return view.obj if into is None else view  # type: ignore[return-value]


def _check_distinct(enc_schedule: AesKeySchedule, mac_schedule: AesKeySchedule) -> None:
    if not load_settings().enforce_distinct_mac_key:
        return
    if enc_schedule.same_key_as(mac_schedule):
        raise PreconditionError("encryption and MAC key schedules must use different keys")


def _cbc_encrypt_into(src: memoryview, out: memoryview, schedule: AesKeySchedule, iv: BytesLike) -> bytes:
    prev = bytes(iv)
    for pos in range(0, len(src), BLOCK_SIZE):
        block = bytes(src[pos:pos + BLOCK_SIZE])
        prev = encrypt_block(bytes(x ^ y for x, y in zip(block, prev)), schedule)
        out[pos:pos + BLOCK_SIZE] = prev
    return prev


def _cbc_mac(data: memoryview, schedule: AesKeySchedule) -> bytes:
    prev = _ZERO_IV
    for pos in range(0, len(data), BLOCK_SIZE):
        block = data[pos:pos + BLOCK_SIZE]
        prev = encrypt_block(bytes(x ^ y for x, y in zip(block, prev)), schedule)
    return prev


def cbc_encrypt(
    plaintext: BytesLike,
    schedule: AesKeySchedule,
    iv: BytesLike,
    *,
    into: Optional[Output] = None,
) -> Output:
    """AES-CBC encrypt a pre-padded plaintext.

    Args:
        plaintext: Data to encrypt; length must be a multiple of 16.
        schedule: Key schedule from load_key().
        iv: 16-byte initialization vector (unpredictable, never reused).
        into: Buffer to write ciphertext into (default: bytearray created).

    Returns:
        Ciphertext as bytearray if into not provided, memoryview of into otherwise.

    Raises:
        AlignmentError: plaintext length is not block aligned.
    """
    src = memoryview(plaintext).cast("B")
    _check_aligned(len(src), "plaintext")
    _check_iv(iv)
    out = _output(into, len(src))
    _cbc_encrypt_into(src, out, schedule, iv)
    return _result(into, out)


def cbc_decrypt(
    ciphertext: BytesLike,
    schedule: AesKeySchedule,
    iv: BytesLike,
    *,
    into: Optional[Output] = None,
) -> Output:
    """AES-CBC decrypt. Inverse of cbc_encrypt(); padding is left in place."""
    src = memoryview(ciphertext).cast("B")
    _check_aligned(len(src), "ciphertext")
    _check_iv(iv)
    out = _output(into, len(src))
    prev = bytes(iv)
    for pos in range(0, len(src), BLOCK_SIZE):
        block = bytes(src[pos:pos + BLOCK_SIZE])
        plain = decrypt_block(block, schedule)
        out[pos:pos + BLOCK_SIZE] = bytes(x ^ y for x, y in zip(plain, prev))
        prev = block
    return _result(into, out)


def output_mac(data: BytesLike, schedule: AesKeySchedule) -> bytes:
    """CBC-MAC (zero IV, last block) of block-aligned data.

    Never use the schedule you encrypt with: load a second, independent key.
    """
    src = memoryview(data).cast("B")
    _check_aligned(len(src), "data")
    return _cbc_mac(src, schedule)


def verify_mac(ciphertext: BytesLike, schedule: AesKeySchedule) -> bool:
    """Check the trailing MAC block of ``IV || ciphertext || MAC``.

    Returns False on any length problem or mismatch. The comparison runs
    in constant time.
    """
    src = memoryview(ciphertext).cast("B")
    n = len(src)
    if n < 2 * BLOCK_SIZE or n % BLOCK_SIZE != 0:
        return False
    expected = _cbc_mac(src[:n - BLOCK_SIZE], schedule)
    return compare_digest(expected, src[n - BLOCK_SIZE:])


def auth_encrypt(
    padded_plaintext: BytesLike,
    enc_schedule: AesKeySchedule,
    mac_schedule: AesKeySchedule,
    iv: BytesLike,
    *,
    into: Optional[Output] = None,
) -> Output:
    """Encrypt-then-MAC: returns ``iv || CBC(padded_plaintext) || MAC``.

    Args:
        padded_plaintext: Pre-padded data (see padding.pad()); block aligned.
        enc_schedule: Key schedule used for CBC encryption.
        mac_schedule: Key schedule used for CBC-MAC. MUST come from a
            different key than enc_schedule.
        iv: 16-byte initialization vector.
        into: Buffer of at least len(padded_plaintext) + 32 bytes.

    Raises:
        AlignmentError: plaintext length is not block aligned.
        PreconditionError: bad IV, undersized ``into``, or identical schedules.
        ContextStateError: either schedule has been erased.
    """
    src = memoryview(padded_plaintext).cast("B")
    n = len(src)
    _check_aligned(n, "padded plaintext")
    _check_iv(iv)
    _check_distinct(enc_schedule, mac_schedule)
    out = _output(into, n + 2 * BLOCK_SIZE)

    out[0:BLOCK_SIZE] = bytes(iv)
    _cbc_encrypt_into(src, out[BLOCK_SIZE:BLOCK_SIZE + n], enc_schedule, iv)
    out[BLOCK_SIZE + n:] = _cbc_mac(out[:BLOCK_SIZE + n], mac_schedule)
    return _result(into, out)


def auth_decrypt(
    ciphertext: BytesLike,
    dec_schedule: AesKeySchedule,
    mac_schedule: AesKeySchedule,
    *,
    into: Optional[Output] = None,
) -> Output:
    """Verify the MAC, then CBC-decrypt the payload of an auth_encrypt() output.

    Nothing is written to ``into`` unless the MAC matches. The MAC covers
    ``IV || C`` only, so a wrong decryption schedule is not detected here:
    it yields garbage that strip() then rejects with high probability.

    Returns:
        The padded plaintext (len(ciphertext) - 32 bytes).

    Raises:
        AlignmentError: ciphertext not longer than two blocks, or not aligned.
        IntegrityError: MAC mismatch.
        ContextStateError: either schedule has been erased.
    """
    src = memoryview(ciphertext).cast("B")
    n = len(src)
    if n <= 2 * BLOCK_SIZE:
        raise AlignmentError(f"ciphertext must be longer than {2 * BLOCK_SIZE} bytes")
    _check_aligned(n, "ciphertext")
    _check_distinct(dec_schedule, mac_schedule)
    out = _output(into, n - 2 * BLOCK_SIZE)

    if not verify_mac(src, mac_schedule):
        logger.warning("MAC verification failed for %d-byte ciphertext", n)
        raise IntegrityError("authentication failed")

    iv = bytes(src[:BLOCK_SIZE])
    cbc_decrypt(src[BLOCK_SIZE:n - BLOCK_SIZE], dec_schedule, iv, into=out)
    return _result(into, out)
