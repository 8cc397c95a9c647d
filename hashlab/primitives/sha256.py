"""SHA-256 (FIPS 180-4) streaming engine and the MGF1 arbitrary-length hash.

A Sha256 context models exactly one input stream. Contexts may share a
Sha256Scratch (the 64-word message schedule) to avoid reallocating it for
every block, as long as they are not driven concurrently.
"""

from __future__ import annotations

import struct
from typing import List, Optional

from ..errors import ContextStateError
from .util import BytesLike, erase

DIGEST_LEN = 32
HEXSTR_LEN = (DIGEST_LEN << 1) + 1
BLOCK_LEN = 64
SCRATCH_WORDS = 64  # 64 * 4 bytes

_K: List[int] = [
    0x428a2f98, 0x71374491, 0xb5c0fbcf, 0xe9b5dba5, 0x3956c25b, 0x59f111f1, 0x923f82a4, 0xab1c5ed5,
    0xd807aa98, 0x12835b01, 0x243185be, 0x550c7dc3, 0x72be5d74, 0x80deb1fe, 0x9bdc06a7, 0xc19bf174,
    0xe49b69c1, 0xefbe4786, 0x0fc19dc6, 0x240ca1cc, 0x2de92c6f, 0x4a7484aa, 0x5cb0a9dc, 0x76f988da,
    0x983e5152, 0xa831c66d, 0xb00327c8, 0xbf597fc7, 0xc6e00bf3, 0xd5a79147, 0x06ca6351, 0x14292967,
    0x27b70a85, 0x2e1b2138, 0x4d2c6dfc, 0x53380d13, 0x650a7354, 0x766a0abb, 0x81c2c92e, 0x92722c85,
    0xa2bfe8a1, 0xa81a664b, 0xc24b8b70, 0xc76c51a3, 0xd192e819, 0xd6990624, 0xf40e3585, 0x106aa070,
    0x19a4c116, 0x1e376c08, 0x2748774c, 0x34b0bcb5, 0x391c0cb3, 0x4ed8aa4a, 0x5b9cca4f, 0x682e6ff3,
    0x748f82ee, 0x78a5636f, 0x84c87814, 0x8cc70208, 0x90befffa, 0xa4506ceb, 0xbef9a3f7, 0xc67178f2,
]

_H0 = (
    0x6a09e667, 0xbb67ae85, 0x3c6ef372, 0xa54ff53a,
    0x510e527f, 0x9b05688c, 0x1f83d9ab, 0x5be0cd19,
)

_MASK = 0xFFFFFFFF


class Sha256Scratch:
    """Caller-owned message schedule region (64 words / 256 bytes).

    Pass the same instance to several Sha256 contexts to reuse one region.
    The contexts borrow it; they never erase or replace it.
    """

    __slots__ = ("w",)

    def __init__(self) -> None:
        self.w: List[int] = [0] * SCRATCH_WORDS

    def erase(self) -> None:
        erase(self.w)


def _compress(state: List[int], block: BytesLike, w: List[int]) -> None:
    w[0:16] = struct.unpack(">16I", block)
    for t in range(16, 64):
        x = w[t - 15]
        y = w[t - 2]
        s0 = ((x >> 7) | (x << 25)) ^ ((x >> 18) | (x << 14)) ^ (x >> 3)
        s1 = ((y >> 17) | (y << 15)) ^ ((y >> 19) | (y << 13)) ^ (y >> 10)
        w[t] = (w[t - 16] + s0 + w[t - 7] + s1) & _MASK

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        S1 = ((e >> 6) | (e << 26)) ^ ((e >> 11) | (e << 21)) ^ ((e >> 25) | (e << 7))
        ch = (e & f) ^ (~e & g)
        t1 = (h + (S1 & _MASK) + ch + _K[t] + w[t]) & _MASK
        S0 = ((a >> 2) | (a << 30)) ^ ((a >> 13) | (a << 19)) ^ ((a >> 22) | (a << 10))
        maj = (a & b) ^ (a & c) ^ (b & c)
        t2 = ((S0 & _MASK) + maj) & _MASK
        h = g
        g = f
        f = e
        e = (d + t1) & _MASK
        d = c
        c = b
        b = a
        a = (t1 + t2) & _MASK

    state[0] = (state[0] + a) & _MASK
    state[1] = (state[1] + b) & _MASK
    state[2] = (state[2] + c) & _MASK
    state[3] = (state[3] + d) & _MASK
    state[4] = (state[4] + e) & _MASK
    state[5] = (state[5] + f) & _MASK
    state[6] = (state[6] + g) & _MASK
    state[7] = (state[7] + h) & _MASK


class Sha256:
    """Streaming SHA-256 context.

    Feed it with update() any number of times, in chunks of any size, then
    call final() exactly once. The buffer never holds a full block between
    calls: a complete block is compressed as soon as it is available.

    Use the context as a ``with`` block (or call erase()) to wipe the
    internal state once the digest is taken.
    """

    def __init__(self, data: BytesLike = b"", *, scratch: Optional[Sha256Scratch] = None):
        self.data = bytearray(BLOCK_LEN)
        self.datalen = 0
        self.bitlen = 0
        self.state: List[int] = list(_H0)
        self._scratch = scratch if scratch is not None else Sha256Scratch()
        self._finalized = False
        if data:
            self.update(data)

    def __enter__(self) -> Sha256:
        return self

    def __exit__(self, *args) -> None:
        self.erase()

    def update(self, data: BytesLike) -> None:
        if self._finalized:
            raise ContextStateError("Cannot call update() after final()")
        view = memoryview(data).cast("B")
        n = len(view)
        if n == 0:
            return
        self.bitlen = (self.bitlen + (n << 3)) & 0xFFFFFFFFFFFFFFFF
        w = self._scratch.w
        pos = 0

        if self.datalen:
            take = min(BLOCK_LEN - self.datalen, n)
            self.data[self.datalen:self.datalen + take] = view[:take]
            self.datalen += take
            pos = take
            if self.datalen < BLOCK_LEN:
                return
            _compress(self.state, self.data, w)
            self.datalen = 0

        while n - pos >= BLOCK_LEN:
            _compress(self.state, view[pos:pos + BLOCK_LEN], w)
            pos += BLOCK_LEN

        rem = n - pos
        if rem:
            self.data[0:rem] = view[pos:]
            self.datalen = rem

    def final(self) -> bytes:
        if self._finalized:
            raise ContextStateError("Cannot call final() after final()")
        w = self._scratch.w
        i = self.datalen
        self.data[i] = 0x80
        i += 1
        if i > 56:
            self.data[i:] = bytes(BLOCK_LEN - i)
            _compress(self.state, self.data, w)
            i = 0
        self.data[i:56] = bytes(56 - i)
        self.data[56:64] = self.bitlen.to_bytes(8, "big")
        _compress(self.state, self.data, w)
        self._finalized = True
        return struct.pack(">8I", *self.state)

    def copy(self) -> Sha256:
        """Clone the running state; the clone shares this context's scratch."""
        if self._finalized:
            raise ContextStateError("Cannot copy() after final()")
        other = Sha256(scratch=self._scratch)
        other.data[:] = self.data
        other.datalen = self.datalen
        other.bitlen = self.bitlen
        other.state = list(self.state)
        return other

    def erase(self) -> None:
        erase(self.data)
        erase(self.state)
        self.datalen = 0
        self.bitlen = 0
        self._finalized = True


def sha256(data: BytesLike = b"") -> bytes:
    """One-shot SHA-256 digest."""
    with Sha256(data) as ctx:
        return ctx.final()


def hexdigest(digest: BytesLike) -> str:
    """Lowercase hex rendering of a digest."""
    return bytes(digest).hex()


def mgf1(data: BytesLike, out_len: int, *, scratch: Optional[Sha256Scratch] = None) -> bytes:
    """Arbitrary output length hash: SHA-256(data || counter) for counter = 0, 1, ...

    The counter is a 4-byte big-endian integer; digests are concatenated and
    the result truncated to out_len bytes.
    """
    if out_len < 0:
        raise ValueError("out_len must be non-negative")
    out = bytearray()
    counter = 0
    with Sha256(data, scratch=scratch) as base:
        while len(out) < out_len:
            ctx = base.copy()
            ctx.update(counter.to_bytes(4, "big"))
            out += ctx.final()
            ctx.erase()
            counter += 1
    return bytes(out[:out_len])
