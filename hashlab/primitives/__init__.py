"""Cryptographic primitives: SHA-256, AES, chained modes, padding, PBKDF2, SPRNG.

Research / education only. Do NOT use in production.
"""

from .util import compare_digest, erase, xor_bytes
from .sha256 import Sha256, Sha256Scratch, sha256, hexdigest, mgf1, DIGEST_LEN
from .sprng import EntropyPool, NoiseSource, OsNoiseSource, PoolState
from .aes import (
    AesKeySchedule,
    AesKeySize,
    BLOCK_SIZE,
    aes_keygen,
    decrypt_block,
    encrypt_block,
    load_key,
)
from .modes import (
    auth_decrypt,
    auth_encrypt,
    cbc_decrypt,
    cbc_encrypt,
    output_mac,
    verify_mac,
)
from .padding import (
    PaddingScheme,
    auth_ciphertext_size,
    ciphertext_size,
    pad,
    padded_size,
    rsa_padded_size,
    strip,
)
from .oaep import SALT_LEN, oaep_decode, oaep_encode
from .pbkdf2 import hmac_sha256, pbkdf2
from .base64codec import b64decode, b64encode

__all__ = [
    # Utilities
    "compare_digest",
    "erase",
    "xor_bytes",
    # SHA-256
    "Sha256",
    "Sha256Scratch",
    "sha256",
    "hexdigest",
    "mgf1",
    "DIGEST_LEN",
    # SPRNG
    "EntropyPool",
    "NoiseSource",
    "OsNoiseSource",
    "PoolState",
    # AES
    "AesKeySchedule",
    "AesKeySize",
    "BLOCK_SIZE",
    "aes_keygen",
    "load_key",
    "encrypt_block",
    "decrypt_block",
    "cbc_encrypt",
    "cbc_decrypt",
    "output_mac",
    "verify_mac",
    "auth_encrypt",
    "auth_decrypt",
    # Padding
    "PaddingScheme",
    "pad",
    "strip",
    "padded_size",
    "ciphertext_size",
    "auth_ciphertext_size",
    "rsa_padded_size",
    "SALT_LEN",
    "oaep_encode",
    "oaep_decode",
    # KDF
    "hmac_sha256",
    "pbkdf2",
    # Base64
    "b64encode",
    "b64decode",
]
