"""Timing check for buffer comparators.

Times a comparator on pairs that differ in the first byte and pairs that
differ in the last byte. A constant-time comparator shows no meaningful
gap between the two medians; an early-exit comparator shows a gap that
grows with the buffer length.
"""
from __future__ import annotations

import random
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict

import numpy as np

from hashlab.primitives.util import compare_digest

Comparator = Callable[[bytes, bytes], bool]


@dataclass
class TimingResult:
    comparator: str
    length: int
    trials: int
    median_first_ns: float
    median_last_ns: float
    relative_difference: float
    threshold: float = 0.25

    @property
    def constant_time(self) -> bool:
        return self.relative_difference <= self.threshold

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["constant_time"] = self.constant_time
        return d

    def summary(self) -> str:
        status = "PASS" if self.constant_time else "FAIL"
        return (
            f"[{status}] {self.comparator} ({self.length} bytes): "
            f"first={self.median_first_ns:.0f}ns, last={self.median_last_ns:.0f}ns, "
            f"diff={self.relative_difference:.3f}"
        )


def measure_compare_timing(
    compare: Comparator = compare_digest,
    *,
    length: int = 4096,
    trials: int = 200,
    seed: int = 1337,
    threshold: float = 0.25,
) -> TimingResult:
    """Median timing of compare() for first-byte vs last-byte mismatches.

    The two cases are interleaved so that drift in machine load affects
    both equally.
    """
    rng = random.Random(seed)
    base = bytes(rng.randrange(0, 256) for _ in range(length))
    first = bytearray(base)
    first[0] ^= 0x01
    last = bytearray(base)
    last[-1] ^= 0x01
    first_b, last_b = bytes(first), bytes(last)

    t_first = np.empty(trials, dtype=np.int64)
    t_last = np.empty(trials, dtype=np.int64)
    clock = time.perf_counter_ns
    for i in range(trials):
        t0 = clock()
        compare(base, first_b)
        t1 = clock()
        compare(base, last_b)
        t2 = clock()
        t_first[i] = t1 - t0
        t_last[i] = t2 - t1

    m_first = float(np.median(t_first))
    m_last = float(np.median(t_last))
    rel = abs(m_first - m_last) / max(m_first, m_last, 1.0)

    return TimingResult(
        comparator=getattr(compare, "__name__", repr(compare)),
        length=length,
        trials=trials,
        median_first_ns=m_first,
        median_last_ns=m_last,
        relative_difference=round(rel, 6),
        threshold=threshold,
    )
