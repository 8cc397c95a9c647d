"""AES-128/192/256 (FIPS-197): key schedule and single-block transform.

encrypt_block() and decrypt_block() are ECB building blocks. ECB on its own
leaks plaintext structure; use hashlab.primitives.modes unless you are
constructing another mode of operation.

Research / education only. Do NOT use in production.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, List, Optional

from ..errors import AlignmentError, ContextStateError, PreconditionError
from .util import BytesLike, compare_digest, erase

if TYPE_CHECKING:
    from .sprng import EntropyPool

BLOCK_SIZE = 16
IV_SIZE = BLOCK_SIZE
MAC_SIZE = BLOCK_SIZE


class AesKeySize(IntEnum):
    AES_128 = 128
    AES_192 = 192
    AES_256 = 256


_ROUNDS = {AesKeySize.AES_128: 10, AesKeySize.AES_192: 12, AesKeySize.AES_256: 14}


# ============================================================================
# TABLES
# ============================================================================

AES_SBOX: List[int] = [
    0x63,0x7c,0x77,0x7b,0xf2,0x6b,0x6f,0xc5,0x30,0x01,0x67,0x2b,0xfe,0xd7,0xab,0x76,
    0xca,0x82,0xc9,0x7d,0xfa,0x59,0x47,0xf0,0xad,0xd4,0xa2,0xaf,0x9c,0xa4,0x72,0xc0,
    0xb7,0xfd,0x93,0x26,0x36,0x3f,0xf7,0xcc,0x34,0xa5,0xe5,0xf1,0x71,0xd8,0x31,0x15,
    0x04,0xc7,0x23,0xc3,0x18,0x96,0x05,0x9a,0x07,0x12,0x80,0xe2,0xeb,0x27,0xb2,0x75,
    0x09,0x83,0x2c,0x1a,0x1b,0x6e,0x5a,0xa0,0x52,0x3b,0xd6,0xb3,0x29,0xe3,0x2f,0x84,
    0x53,0xd1,0x00,0xed,0x20,0xfc,0xb1,0x5b,0x6a,0xcb,0xbe,0x39,0x4a,0x4c,0x58,0xcf,
    0xd0,0xef,0xaa,0xfb,0x43,0x4d,0x33,0x85,0x45,0xf9,0x02,0x7f,0x50,0x3c,0x9f,0xa8,
    0x51,0xa3,0x40,0x8f,0x92,0x9d,0x38,0xf5,0xbc,0xb6,0xda,0x21,0x10,0xff,0xf3,0xd2,
    0xcd,0x0c,0x13,0xec,0x5f,0x97,0x44,0x17,0xc4,0xa7,0x7e,0x3d,0x64,0x5d,0x19,0x73,
    0x60,0x81,0x4f,0xdc,0x22,0x2a,0x90,0x88,0x46,0xee,0xb8,0x14,0xde,0x5e,0x0b,0xdb,
    0xe0,0x32,0x3a,0x0a,0x49,0x06,0x24,0x5c,0xc2,0xd3,0xac,0x62,0x91,0x95,0xe4,0x79,
    0xe7,0xc8,0x37,0x6d,0x8d,0xd5,0x4e,0xa9,0x6c,0x56,0xf4,0xea,0x65,0x7a,0xae,0x08,
    0xba,0x78,0x25,0x2e,0x1c,0xa6,0xb4,0xc6,0xe8,0xdd,0x74,0x1f,0x4b,0xbd,0x8b,0x8a,
    0x70,0x3e,0xb5,0x66,0x48,0x03,0xf6,0x0e,0x61,0x35,0x57,0xb9,0x86,0xc1,0x1d,0x9e,
    0xe1,0xf8,0x98,0x11,0x69,0xd9,0x8e,0x94,0x9b,0x1e,0x87,0xe9,0xce,0x55,0x28,0xdf,
    0x8c,0xa1,0x89,0x0d,0xbf,0xe6,0x42,0x68,0x41,0x99,0x2d,0x0f,0xb0,0x54,0xbb,0x16,
]
AES_INV_SBOX: List[int] = [0] * 256
for _i, _v in enumerate(AES_SBOX):
    AES_INV_SBOX[_v] = _i


def _mul(a: int, b: int) -> int:
    """GF(2^8) multiplication for AES."""
    a &= 0xFF
    b &= 0xFF
    res = 0
    for _ in range(8):
        if b & 1:
            res ^= a
        hi = a & 0x80
        a = (a << 1) & 0xFF
        if hi:
            a ^= 0x1B
        b >>= 1
    return res & 0xFF


_MUL2 = [_mul(x, 2) for x in range(256)]
_MUL3 = [_mul(x, 3) for x in range(256)]
_MUL9 = [_mul(x, 9) for x in range(256)]
_MUL11 = [_mul(x, 11) for x in range(256)]
_MUL13 = [_mul(x, 13) for x in range(256)]
_MUL14 = [_mul(x, 14) for x in range(256)]

_RCON = [0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40, 0x80, 0x1B, 0x36]

# ShiftRows on a column-major state: out[i] = state[map[i]]
_SHIFTROWS_MAP: List[int] = []
_INV_SHIFTROWS_MAP: List[int] = []
for col in range(4):
    for row in range(4):
        _SHIFTROWS_MAP.append(((col + row) % 4) * 4 + row)
for col in range(4):
    for row in range(4):
        _INV_SHIFTROWS_MAP.append(((col - row) % 4) * 4 + row)
del col, row


# ============================================================================
# KEY SCHEDULE
# ============================================================================

class AesKeySchedule:
    """Round keys derived from one raw AES key.

    Immutable once derived. Call erase() when done, or use the schedule as a
    ``with`` block, which erases it on every exit path::

        with load_key(key) as ks:
            ct = cbc_encrypt(padded, ks, iv)

    Two schedules used together for authenticated encryption (one for
    encryption, one for the MAC) must come from different keys.
    """

    __slots__ = ("keysize", "rounds", "words", "_round_keys", "_erased")

    def __init__(self, keysize: AesKeySize, words: List[int]):
        self.keysize = keysize
        self.rounds = _ROUNDS[keysize]
        self.words = words
        self._round_keys: List[bytearray] = []
        for r in range(self.rounds + 1):
            rk = bytearray()
            for w in words[4 * r:4 * r + 4]:
                rk += w.to_bytes(4, "big")
            self._round_keys.append(rk)
        self._erased = False

    def __enter__(self) -> AesKeySchedule:
        return self

    def __exit__(self, *args) -> None:
        self.erase()

    def __repr__(self) -> str:
        state = "erased" if self._erased else "loaded"
        return f"AesKeySchedule(keysize={int(self.keysize)}, {state})"

    @property
    def erased(self) -> bool:
        return self._erased

    def round_key(self, r: int) -> bytearray:
        if self._erased:
            raise ContextStateError("key schedule has been erased")
        return self._round_keys[r]

    def same_key_as(self, other: AesKeySchedule) -> bool:
        """Whether both schedules were derived from the same raw key.

        Raises:
            ContextStateError: either schedule has been erased.
        """
        mine = self.round_key(0) + self.round_key(1)
        theirs = other.round_key(0) + other.round_key(1)
        if self.keysize != other.keysize:
            return False
        return compare_digest(mine, theirs)

    def erase(self) -> None:
        erase(self.words)
        for rk in self._round_keys:
            erase(rk)
        self._erased = True


def _sub_word(w: int) -> int:
    return (
        (AES_SBOX[(w >> 24) & 0xFF] << 24)
        | (AES_SBOX[(w >> 16) & 0xFF] << 16)
        | (AES_SBOX[(w >> 8) & 0xFF] << 8)
        | AES_SBOX[w & 0xFF]
    )


def _rot_word(w: int) -> int:
    return ((w << 8) & 0xFFFFFFFF) | (w >> 24)


def load_key(key: BytesLike, bitlen: Optional[int] = None) -> AesKeySchedule:
    """Expand a 128, 192 or 256-bit key into an AesKeySchedule.

    Args:
        key: Raw key bytes.
        bitlen: Key length in bits. Defaults to len(key) * 8; when given it
            must agree with the key.

    Raises:
        PreconditionError: unsupported key size or bitlen/key mismatch.
    """
    key = bytes(key)
    if bitlen is None:
        bitlen = len(key) * 8
    try:
        keysize = AesKeySize(bitlen)
    except ValueError:
        raise PreconditionError(f"unsupported AES key size: {bitlen} bits") from None
    if len(key) * 8 != bitlen:
        raise PreconditionError(f"key must be {bitlen // 8} bytes, got {len(key)}")

    nk = bitlen // 32
    nr = _ROUNDS[keysize]
    total = 4 * (nr + 1)

    words = [int.from_bytes(key[4 * i:4 * i + 4], "big") for i in range(nk)]
    for i in range(nk, total):
        temp = words[i - 1]
        if i % nk == 0:
            temp = _sub_word(_rot_word(temp)) ^ (_RCON[i // nk - 1] << 24)
        elif nk > 6 and i % nk == 4:
            temp = _sub_word(temp)
        words.append(words[i - nk] ^ temp)

    return AesKeySchedule(keysize, words)


def aes_keygen(pool: EntropyPool, bits: int = AesKeySize.AES_256) -> bytes:
    """Fresh random AES key of the given size, drawn from the SPRNG."""
    try:
        keysize = AesKeySize(bits)
    except ValueError:
        raise PreconditionError(f"unsupported AES key size: {bits} bits") from None
    return pool.random_bytes(keysize // 8)


# ============================================================================
# BLOCK TRANSFORM
# ============================================================================

def _add_round_key(state: bytearray, rk: bytearray) -> None:
    for i in range(16):
        state[i] ^= rk[i]


def _sub_shift(state: bytearray) -> bytearray:
    s = AES_SBOX
    return bytearray(s[state[i]] for i in _SHIFTROWS_MAP)


def _inv_shift_sub(state: bytearray) -> bytearray:
    s = AES_INV_SBOX
    return bytearray(s[state[i]] for i in _INV_SHIFTROWS_MAP)


def _mix_columns(state: bytearray) -> None:
    m2, m3 = _MUL2, _MUL3
    for i in range(0, 16, 4):
        a0, a1, a2, a3 = state[i], state[i + 1], state[i + 2], state[i + 3]
        state[i] = m2[a0] ^ m3[a1] ^ a2 ^ a3
        state[i + 1] = a0 ^ m2[a1] ^ m3[a2] ^ a3
        state[i + 2] = a0 ^ a1 ^ m2[a2] ^ m3[a3]
        state[i + 3] = m3[a0] ^ a1 ^ a2 ^ m2[a3]


def _inv_mix_columns(state: bytearray) -> None:
    m9, m11, m13, m14 = _MUL9, _MUL11, _MUL13, _MUL14
    for i in range(0, 16, 4):
        a0, a1, a2, a3 = state[i], state[i + 1], state[i + 2], state[i + 3]
        state[i] = m14[a0] ^ m11[a1] ^ m13[a2] ^ m9[a3]
        state[i + 1] = m9[a0] ^ m14[a1] ^ m11[a2] ^ m13[a3]
        state[i + 2] = m13[a0] ^ m9[a1] ^ m14[a2] ^ m11[a3]
        state[i + 3] = m11[a0] ^ m13[a1] ^ m9[a2] ^ m14[a3]


def encrypt_block(block: BytesLike, schedule: AesKeySchedule) -> bytes:
    """Encrypt one 16-byte block (ECB). Insecure on its own."""
    if len(block) != BLOCK_SIZE:
        raise AlignmentError(f"AES block must be {BLOCK_SIZE} bytes")
    nr = schedule.rounds
    state = bytearray(block)
    _add_round_key(state, schedule.round_key(0))
    for r in range(1, nr):
        state = _sub_shift(state)
        _mix_columns(state)
        _add_round_key(state, schedule.round_key(r))
    state = _sub_shift(state)
    _add_round_key(state, schedule.round_key(nr))
    return bytes(state)


def decrypt_block(block: BytesLike, schedule: AesKeySchedule) -> bytes:
    """Decrypt one 16-byte block (ECB). Insecure on its own."""
    if len(block) != BLOCK_SIZE:
        raise AlignmentError(f"AES block must be {BLOCK_SIZE} bytes")
    nr = schedule.rounds
    state = bytearray(block)
    _add_round_key(state, schedule.round_key(nr))
    for r in range(nr - 1, 0, -1):
        state = _inv_shift_sub(state)
        _add_round_key(state, schedule.round_key(r))
        _inv_mix_columns(state)
    state = _inv_shift_sub(state)
    _add_round_key(state, schedule.round_key(0))
    return bytes(state)
