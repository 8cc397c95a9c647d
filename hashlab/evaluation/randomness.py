"""Statistical randomness battery for SPRNG output.

Implements three tests from NIST SP 800-22 style batteries: monobit
frequency, runs, and a byte-level chi-square. Each reports a p-value; a
sample "passes" when p >= alpha.

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

import numpy as np

from hashlab.primitives.sprng import EntropyPool

DEFAULT_ALPHA = 0.01
MIN_SAMPLE_BYTES = 16384


@dataclass
class RandomnessTestResult:
    """Outcome of a single statistical test."""
    test_name: str
    statistic: float
    p_value: float
    alpha: float = DEFAULT_ALPHA

    @property
    def passed(self) -> bool:
        return self.p_value >= self.alpha

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["passed"] = self.passed
        return d

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"[{status}] {self.test_name}: statistic={self.statistic:.4f}, p={self.p_value:.4f}"


@dataclass
class RandomnessReport:
    """All randomness tests over one sample."""
    num_bytes: int
    results: List[RandomnessTestResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_bytes": self.num_bytes,
            "elapsed_seconds": self.elapsed_seconds,
            "all_passed": self.all_passed,
            "results": [r.to_dict() for r in self.results],
        }

    def summary(self) -> str:
        lines = [f"Randomness ({self.num_bytes} bytes, {self.elapsed_seconds:.2f}s)"]
        lines.extend(f"  {r.summary()}" for r in self.results)
        return "\n".join(lines)


def _bits(data: bytes) -> np.ndarray:
    return np.unpackbits(np.frombuffer(data, dtype=np.uint8)).astype(np.int64)


def monobit_test(data: bytes, alpha: float = DEFAULT_ALPHA) -> RandomnessTestResult:
    """Frequency (monobit) test: proportion of ones should be close to 1/2."""
    bits = _bits(data)
    n = bits.size
    s = int(np.sum(2 * bits - 1))
    s_obs = abs(s) / math.sqrt(n)
    p = math.erfc(s_obs / math.sqrt(2))
    return RandomnessTestResult("monobit", s_obs, p, alpha)


def runs_test(data: bytes, alpha: float = DEFAULT_ALPHA) -> RandomnessTestResult:
    """Runs test: number of uninterrupted runs of identical bits."""
    bits = _bits(data)
    n = bits.size
    pi = float(np.mean(bits))
    if abs(pi - 0.5) >= 2 / math.sqrt(n):
        # Frequency prerequisite failed; the runs test is not applicable.
        return RandomnessTestResult("runs", float("nan"), 0.0, alpha)
    v_obs = 1 + int(np.count_nonzero(bits[1:] != bits[:-1]))
    num = abs(v_obs - 2 * n * pi * (1 - pi))
    den = 2 * math.sqrt(2 * n) * pi * (1 - pi)
    p = math.erfc(num / den)
    return RandomnessTestResult("runs", float(v_obs), p, alpha)


def byte_chi_square_test(data: bytes, alpha: float = DEFAULT_ALPHA) -> RandomnessTestResult:
    """Chi-square goodness of fit of byte values against uniform.

    The p-value uses the Wilson-Hilferty normal approximation (255 degrees
    of freedom).
    """
    arr = np.frombuffer(data, dtype=np.uint8)
    counts = np.bincount(arr, minlength=256).astype(np.float64)
    expected = arr.size / 256.0
    chi2 = float(np.sum((counts - expected) ** 2 / expected))
    df = 255
    z = ((chi2 / df) ** (1.0 / 3.0) - (1 - 2.0 / (9 * df))) / math.sqrt(2.0 / (9 * df))
    p = 0.5 * math.erfc(z / math.sqrt(2))
    return RandomnessTestResult("byte_chi_square", chi2, p, alpha)


def run_randomness_tests(
    pool: EntropyPool,
    *,
    num_bytes: int = MIN_SAMPLE_BYTES,
    alpha: float = DEFAULT_ALPHA,
) -> RandomnessReport:
    """Draw num_bytes from the SPRNG and run every test on the sample.

    Args:
        pool: An initialized EntropyPool.
        num_bytes: Sample size; at least 16384 bytes is recommended.
        alpha: Significance level for pass/fail.
    """
    start = time.perf_counter()
    sample = pool.random_bytes(num_bytes)
    results = [
        monobit_test(sample, alpha),
        runs_test(sample, alpha),
        byte_chi_square_test(sample, alpha),
    ]
    elapsed = time.perf_counter() - start
    return RandomnessReport(num_bytes=num_bytes, results=results, elapsed_seconds=round(elapsed, 4))
