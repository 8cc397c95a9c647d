"""RSA-OAEP style encoding over SHA-256 / MGF1.

Layout (modulus_len bytes in total)::

    | Message | 0x00 ... (padding) | Salt (16 bytes) |
                        |                   |
                       XOR <----MGF1---------
                        |                   |
                        |------MGF1-------> XOR
                        |                   |
    |  Masked message + padding     |  Masked salt  |

Only the padding lives here. The modular exponentiation that turns the
encoded block into an RSA ciphertext is provided by the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import PreconditionError
from .sha256 import mgf1
from .util import BytesLike, xor_bytes

if TYPE_CHECKING:
    from .sprng import EntropyPool

SALT_LEN = 16


def max_message_len(modulus_len: int) -> int:
    return modulus_len - SALT_LEN


def oaep_encode(message: BytesLike, modulus_len: int, *, rng: EntropyPool) -> bytes:
    """Encode a message into a modulus_len-byte OAEP block.

    Raises:
        PreconditionError: message longer than modulus_len - 16, or a
            modulus too small to hold the salt.
    """
    message = bytes(message)
    if modulus_len <= SALT_LEN:
        raise PreconditionError(f"modulus_len must exceed {SALT_LEN} bytes")
    db_len = max_message_len(modulus_len)
    if len(message) > db_len:
        raise PreconditionError(f"message too long: {len(message)} > {db_len} bytes")

    salt = rng.random_bytes(SALT_LEN)
    db = message + bytes(db_len - len(message))
    masked_db = xor_bytes(db, mgf1(salt, db_len))
    masked_salt = xor_bytes(salt, mgf1(masked_db, SALT_LEN))
    return masked_db + masked_salt


def oaep_decode(encoded: BytesLike) -> bytes:
    """Reverse oaep_encode().

    Trailing zero bytes are indistinguishable from padding and are removed,
    so messages ending in 0x00 do not round-trip.
    """
    encoded = bytes(encoded)
    if len(encoded) <= SALT_LEN:
        raise PreconditionError(f"encoded block must exceed {SALT_LEN} bytes")
    db_len = len(encoded) - SALT_LEN
    masked_db, masked_salt = encoded[:db_len], encoded[db_len:]
    salt = xor_bytes(masked_salt, mgf1(masked_db, SALT_LEN))
    db = xor_bytes(masked_db, mgf1(salt, db_len))
    return db.rstrip(b"\x00")
