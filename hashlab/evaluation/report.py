"""Structured self-test report builder.

Aggregates randomness, timing and roundtrip results into a single
serializable report for export.

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from hashlab.primitives.sprng import EntropyPool

from .randomness import RandomnessReport, run_randomness_tests
from .roundtrip import RoundtripResult, run_all_key_sizes
from .timing import TimingResult, measure_compare_timing

logger = logging.getLogger(__name__)


@dataclass
class EvaluationReport:
    """Complete self-test report aggregating all analysis results."""
    timestamp: str = ""
    seed: int = 1337
    randomness: Optional[RandomnessReport] = None
    timing: Optional[TimingResult] = None
    roundtrip_results: List[RoundtripResult] = field(default_factory=list)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

    @property
    def all_passed(self) -> bool:
        return not self.failing_checks()

    def failing_checks(self) -> List[str]:
        """Names of every check that did not pass."""
        failing: List[str] = []
        if self.randomness is not None:
            failing.extend(f"randomness:{r.test_name}" for r in self.randomness.results if not r.passed)
        if self.timing is not None and not self.timing.constant_time:
            failing.append(f"timing:{self.timing.comparator}")
        failing.extend(
            f"roundtrip:AES-{r.key_size_bits}" for r in self.roundtrip_results if not r.is_perfect
        )
        return failing

    def to_dict(self) -> Dict[str, Any]:
        """Serialize full report for JSON export."""
        return {
            "timestamp": self.timestamp,
            "seed": self.seed,
            "randomness": self.randomness.to_dict() if self.randomness else None,
            "timing": self.timing.to_dict() if self.timing else None,
            "roundtrip": [r.to_dict() for r in self.roundtrip_results],
            "summary": {
                "all_passed": self.all_passed,
                "failing_checks": self.failing_checks(),
            },
        }

    def to_summary(self) -> str:
        """Human-readable summary for the CLI."""
        lines = [f"Self-test Report ({self.timestamp}, seed={self.seed})", "=" * 50]

        if self.randomness is not None:
            lines.append("")
            lines.append(self.randomness.summary())

        if self.timing is not None:
            lines.append("\nTiming:")
            lines.append(f"  {self.timing.summary()}")

        if self.roundtrip_results:
            rt_pass = sum(1 for r in self.roundtrip_results if r.is_perfect)
            lines.append(f"\nRoundtrip Tests: {rt_pass}/{len(self.roundtrip_results)} key sizes pass")
            for r in self.roundtrip_results:
                lines.append(f"  {r.summary()}")

        return "\n".join(lines)


def run_selftest(
    pool: EntropyPool,
    *,
    seed: int = 1337,
    randomness_bytes: int = 16384,
    timing_trials: int = 200,
    timing_length: int = 4096,
    roundtrip_vectors: int = 100,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
) -> EvaluationReport:
    """Run the whole battery against an initialized pool.

    Args:
        pool: Initialized EntropyPool used for the randomness tests.
        seed: Seed for every deterministic vector generator.
        randomness_bytes: SPRNG sample size.
        timing_trials: Interleaved timing samples per case.
        timing_length: Buffer length for the comparator timing.
        roundtrip_vectors: Random vectors per key size.
        progress_callback: Optional callback(stage, current, total).
    """
    stages = 3
    report = EvaluationReport(seed=seed)

    def _progress(stage: str, i: int) -> None:
        if progress_callback:
            progress_callback(stage, i, stages)

    _progress("randomness", 0)
    report.randomness = run_randomness_tests(pool, num_bytes=randomness_bytes)
    logger.info("Randomness: all_passed=%s", report.randomness.all_passed)

    _progress("timing", 1)
    report.timing = measure_compare_timing(length=timing_length, trials=timing_trials, seed=seed)
    logger.info("Timing: relative_difference=%.4f", report.timing.relative_difference)

    _progress("roundtrip", 2)
    report.roundtrip_results = run_all_key_sizes(num_vectors=roundtrip_vectors, seed=seed)
    for r in report.roundtrip_results:
        if not r.is_perfect:
            logger.warning("Roundtrip failures for AES-%d: %d/%d", r.key_size_bits, r.failed, r.total_vectors)

    logger.info("Self-test finished: %d failing checks", len(report.failing_checks()))
    return report
