import json

import pytest

from hashlab.evaluation import (
    EvaluationReport,
    RoundtripResult,
    byte_chi_square_test,
    measure_compare_timing,
    monobit_test,
    run_all_key_sizes,
    run_randomness_tests,
    run_roundtrip_tests,
    run_selftest,
    runs_test,
)
from hashlab.primitives.aes import AesKeySize
from hashlab.primitives.padding import PaddingScheme


# ---------------------------------------------------------------------------
# Randomness battery
# ---------------------------------------------------------------------------

def test_sprng_output_passes_randomness(pool):
    report = run_randomness_tests(pool, num_bytes=8192)
    assert len(report.results) == 3
    for r in report.results:
        assert r.p_value > 1e-4, r.summary()


def test_degenerate_data_fails_randomness():
    zeros = bytes(4096)
    assert not monobit_test(zeros).passed
    assert not runs_test(zeros).passed
    assert not byte_chi_square_test(zeros).passed

    alternating = b"\x55" * 4096
    assert monobit_test(alternating).passed
    assert not runs_test(alternating).passed


def test_randomness_report_serializes(pool):
    report = run_randomness_tests(pool, num_bytes=1024)
    d = report.to_dict()
    assert d["num_bytes"] == 1024
    assert {r["test_name"] for r in d["results"]} == {"monobit", "runs", "byte_chi_square"}
    assert "Randomness" in report.summary()


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

def _early_exit_compare(a: bytes, b: bytes) -> bool:
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x != y:
            return False
    return True


def test_compare_digest_is_constant_time():
    result = measure_compare_timing(length=2048, trials=101)
    assert result.comparator == "compare_digest"
    assert result.constant_time, result.summary()


def test_early_exit_compare_is_detected():
    result = measure_compare_timing(_early_exit_compare, length=2048, trials=101)
    assert not result.constant_time, result.summary()
    assert result.median_last_ns > result.median_first_ns


# ---------------------------------------------------------------------------
# Roundtrip
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("size", list(AesKeySize))
def test_roundtrip_all_key_sizes(size):
    result = run_roundtrip_tests(size, num_vectors=15, seed=42)
    assert result.is_perfect, [f.__dict__ for f in result.failures]
    assert result.success_rate == 1.0
    assert result.key_size_bits == int(size)


def test_roundtrip_iso_m2():
    result = run_roundtrip_tests(AesKeySize.AES_128, num_vectors=15, scheme=PaddingScheme.ISO_M2)
    assert result.is_perfect
    assert result.scheme == "ISO_M2"


def test_run_all_key_sizes_progress():
    seen = []
    results = run_all_key_sizes(num_vectors=3, progress_callback=lambda name, i, n: seen.append(name))
    assert [r.key_size_bits for r in results] == [128, 192, 256]
    assert seen == ["AES-128", "AES-192", "AES-256"]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def test_run_selftest_report(pool):
    stages = []
    report = run_selftest(
        pool,
        randomness_bytes=2048,
        timing_trials=21,
        timing_length=256,
        roundtrip_vectors=4,
        progress_callback=lambda stage, i, n: stages.append(stage),
    )
    assert stages == ["randomness", "timing", "roundtrip"]
    assert len(report.roundtrip_results) == 3

    d = report.to_dict()
    json.dumps(d)
    assert set(d) == {"timestamp", "seed", "randomness", "timing", "roundtrip", "summary"}
    assert d["summary"]["failing_checks"] == report.failing_checks()
    assert "Roundtrip Tests: 3/3" in report.to_summary()


def test_failing_checks_lists_broken_results():
    broken = RoundtripResult(key_size_bits=192, scheme="PKCS7", total_vectors=4, passed=3, failed=1)
    report = EvaluationReport(roundtrip_results=[broken])
    assert report.failing_checks() == ["roundtrip:AES-192"]
    assert not report.all_passed
    assert EvaluationReport().all_passed
