"""Algebraic unit testing: round-trip verification of the AES modes.

For every supported key size, generates randomized vectors and checks

  * strip(cbc_decrypt(cbc_encrypt(pad(P), K, iv), K, iv)) == P
  * strip(auth_decrypt(auth_encrypt(pad(P), Ke, Km, iv), Ke, Km)) == P
  * auth_decrypt() rejects the same ciphertext with one flipped bit

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import random
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

from hashlab.errors import IntegrityError
from hashlab.primitives.aes import BLOCK_SIZE, AesKeySize, load_key
from hashlab.primitives.modes import auth_decrypt, auth_encrypt, cbc_decrypt, cbc_encrypt
from hashlab.primitives.padding import PaddingScheme, pad, strip


@dataclass
class RoundtripFailure:
    """Details of a single failed round-trip vector."""
    vector_index: int
    check: str               # "cbc", "auth" or "tamper"
    plaintext_hex: str
    key_hex: str
    iv_hex: str
    error: Optional[str]     # Exception message if a call threw


@dataclass
class RoundtripResult:
    """Aggregate round-trip result for one key size."""
    key_size_bits: int
    scheme: str
    total_vectors: int
    passed: int
    failed: int
    failures: List[RoundtripFailure] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    seed: int = 1337

    @property
    def success_rate(self) -> float:
        return self.passed / self.total_vectors if self.total_vectors > 0 else 0.0

    @property
    def is_perfect(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        status = "PASS" if self.is_perfect else "FAIL"
        return (
            f"[{status}] AES-{self.key_size_bits} ({self.scheme}): "
            f"{self.passed}/{self.total_vectors} vectors passed "
            f"({self.elapsed_seconds:.2f}s)"
        )


def _rand_bytes(rng: random.Random, n: int) -> bytes:
    return bytes(rng.getrandbits(8) for _ in range(n))


def _check_vector(pt: bytes, k_enc: bytes, k_mac: bytes, iv: bytes, scheme: PaddingScheme, flip: int) -> Optional[str]:
    """Return the name of the first failing check, or None."""
    with load_key(k_enc) as ks_enc, load_key(k_mac) as ks_mac:
        padded = pad(pt, scheme)

        ct = cbc_encrypt(padded, ks_enc, iv)
        if strip(cbc_decrypt(ct, ks_enc, iv), scheme) != pt:
            return "cbc"

        sealed = auth_encrypt(padded, ks_enc, ks_mac, iv)
        if strip(auth_decrypt(sealed, ks_enc, ks_mac), scheme) != pt:
            return "auth"

        tampered = bytearray(sealed)
        tampered[(flip // 8) % len(tampered)] ^= 1 << (flip % 8)
        try:
            auth_decrypt(tampered, ks_enc, ks_mac)
        except IntegrityError:
            return None
        return "tamper"


def run_roundtrip_tests(
    key_size: AesKeySize,
    *,
    num_vectors: int = 100,
    max_message_len: int = 64,
    scheme: PaddingScheme = PaddingScheme.PKCS7,
    seed: int = 1337,
    max_failures_recorded: int = 10,
) -> RoundtripResult:
    """Run round-trip verification across many random vectors.

    Args:
        key_size: AES key size under test.
        num_vectors: Number of random (plaintext, keys, iv) tuples.
        max_message_len: Upper bound of the random plaintext length.
        scheme: PKCS7 or ISO_M2 (schemes that strip without a tracked length).
        seed: Random seed for deterministic reproducibility.
        max_failures_recorded: Maximum number of failure details to keep.
    """
    rng = random.Random(seed)
    key_bytes = int(key_size) // 8
    passed = 0
    failed = 0
    failures: List[RoundtripFailure] = []

    start = time.perf_counter()

    for i in range(num_vectors):
        pt = _rand_bytes(rng, rng.randrange(0, max_message_len + 1))
        k_enc = _rand_bytes(rng, key_bytes)
        k_mac = _rand_bytes(rng, key_bytes)
        iv = _rand_bytes(rng, BLOCK_SIZE)
        flip = rng.randrange(0, 8 * (len(pt) // BLOCK_SIZE + 3) * BLOCK_SIZE)

        error: Optional[str] = None
        try:
            check = _check_vector(pt, k_enc, k_mac, iv, scheme, flip)
        except Exception as exc:
            check, error = "exception", str(exc)

        if check is None:
            passed += 1
            continue
        failed += 1
        if len(failures) < max_failures_recorded:
            failures.append(RoundtripFailure(
                vector_index=i,
                check=check,
                plaintext_hex=pt.hex(),
                key_hex=k_enc.hex(),
                iv_hex=iv.hex(),
                error=error,
            ))

    elapsed = time.perf_counter() - start

    return RoundtripResult(
        key_size_bits=int(key_size),
        scheme=scheme.name,
        total_vectors=num_vectors,
        passed=passed,
        failed=failed,
        failures=failures,
        elapsed_seconds=round(elapsed, 4),
        seed=seed,
    )


def run_all_key_sizes(
    *,
    num_vectors: int = 100,
    seed: int = 1337,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
) -> List[RoundtripResult]:
    """Run round-trip tests for AES-128, AES-192 and AES-256."""
    sizes = list(AesKeySize)
    results: List[RoundtripResult] = []
    for idx, size in enumerate(sizes):
        if progress_callback:
            progress_callback(f"AES-{int(size)}", idx, len(sizes))
        results.append(run_roundtrip_tests(size, num_vectors=num_vectors, seed=seed))
    return results
