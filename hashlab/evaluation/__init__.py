"""Deterministic self-test battery for the primitives.

Provides statistical analysis of the SPRNG, a comparator timing check,
and algebraic round-trip verification of the AES modes.

Research / education only. Do NOT use in production.
"""

from .randomness import (
    RandomnessTestResult,
    RandomnessReport,
    monobit_test,
    runs_test,
    byte_chi_square_test,
    run_randomness_tests,
)
from .timing import TimingResult, measure_compare_timing
from .roundtrip import RoundtripResult, RoundtripFailure, run_roundtrip_tests, run_all_key_sizes
from .report import EvaluationReport, run_selftest

__all__ = [
    "RandomnessTestResult",
    "RandomnessReport",
    "monobit_test",
    "runs_test",
    "byte_chi_square_test",
    "run_randomness_tests",
    "TimingResult",
    "measure_compare_timing",
    "RoundtripResult",
    "RoundtripFailure",
    "run_roundtrip_tests",
    "run_all_key_sizes",
    "EvaluationReport",
    "run_selftest",
]
