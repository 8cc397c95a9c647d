"""HMAC-SHA256 (RFC 2104) and PBKDF2-HMAC-SHA256 (RFC 8018).

Both run on the local SHA-256 engine. PBKDF2 keys the HMAC once and clones
the keyed inner/outer states for every iteration.
"""

from __future__ import annotations

from typing import Optional, Tuple

from ..errors import PreconditionError
from .sha256 import BLOCK_LEN, DIGEST_LEN, Sha256, Sha256Scratch
from .util import BytesLike, erase

_IPAD = 0x36
_OPAD = 0x5C


def _keyed_states(key: BytesLike, scratch: Sha256Scratch) -> Tuple[Sha256, Sha256]:
    block_key = bytearray(key)
    if len(block_key) > BLOCK_LEN:
        with Sha256(block_key, scratch=scratch) as ctx:
            block_key = bytearray(ctx.final())
    block_key += bytes(BLOCK_LEN - len(block_key))

    inner = Sha256(bytes(b ^ _IPAD for b in block_key), scratch=scratch)
    outer = Sha256(bytes(b ^ _OPAD for b in block_key), scratch=scratch)
    erase(block_key)
    return inner, outer


def _mac(inner: Sha256, outer: Sha256, message: BytesLike) -> bytes:
    ictx = inner.copy()
    ictx.update(message)
    octx = outer.copy()
    octx.update(ictx.final())
    digest = octx.final()
    ictx.erase()
    octx.erase()
    return digest


def hmac_sha256(key: BytesLike, message: BytesLike, *, scratch: Optional[Sha256Scratch] = None) -> bytes:
    """HMAC-SHA256 of message under key."""
    scratch = scratch if scratch is not None else Sha256Scratch()
    inner, outer = _keyed_states(key, scratch)
    with inner, outer:
        return _mac(inner, outer, message)


def pbkdf2(
    password: BytesLike,
    salt: BytesLike,
    iterations: int,
    out_len: int,
    *,
    scratch: Optional[Sha256Scratch] = None,
) -> bytes:
    """Derive out_len bytes from a password with PBKDF2-HMAC-SHA256.

    Args:
        password: Secret to stretch (bytes; encode text first).
        salt: Per-password salt, 16 bytes or more recommended.
        iterations: PRF rounds per output block; must be at least 1.
        out_len: Number of bytes to derive; must be at least 1.

    Raises:
        PreconditionError: iterations or out_len below 1.
    """
    if iterations < 1:
        raise PreconditionError("iterations must be at least 1")
    if out_len < 1:
        raise PreconditionError("out_len must be at least 1")

    scratch = scratch if scratch is not None else Sha256Scratch()
    salt = bytes(salt)
    inner, outer = _keyed_states(password, scratch)
    out = bytearray()
    with inner, outer:
        block_index = 1
        while len(out) < out_len:
            u = _mac(inner, outer, salt + block_index.to_bytes(4, "big"))
            acc = int.from_bytes(u, "big")
            for _ in range(iterations - 1):
                u = _mac(inner, outer, u)
                acc ^= int.from_bytes(u, "big")
            out += acc.to_bytes(DIGEST_LEN, "big")
            block_index += 1
    result = bytes(out[:out_len])
    erase(out)
    return result
