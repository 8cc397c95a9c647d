"""hashlab - cryptographic primitives for constrained targets.

SHA-256, AES-128/192/256 with CBC / CBC-MAC / authenticated encryption,
PKCS#7, ISO/IEC 9797-1 M2 and ANSI X9.23 padding, RSA-OAEP encoding,
PBKDF2-HMAC-SHA256, a hardware-noise seeded SPRNG and base64.

Usage:
    from hashlab import EntropyPool, aes_keygen, load_key, pad, strip, auth_encrypt, auth_decrypt

    rng = EntropyPool()
    rng.init_with_retry()

    with load_key(aes_keygen(rng, 256)) as ks_enc, load_key(aes_keygen(rng, 256)) as ks_mac:
        ct = auth_encrypt(pad(b"secret"), ks_enc, ks_mac, rng.random_bytes(16))
        pt = strip(auth_decrypt(ct, ks_enc, ks_mac))

Research / education only. Do NOT use in production.
"""

from .errors import (
    AlignmentError,
    ContextStateError,
    EntropyError,
    HashlabError,
    IntegrityError,
    PreconditionError,
)
from .primitives import *  # noqa: F401,F403
from .primitives import __all__ as _primitives_all

__version__ = "0.1.0"

__all__ = [
    "HashlabError",
    "PreconditionError",
    "ContextStateError",
    "AlignmentError",
    "IntegrityError",
    "EntropyError",
    *_primitives_all,
]
