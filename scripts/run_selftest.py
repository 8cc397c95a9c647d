"""CLI entry point for the primitive self-test battery.

Usage:
    python scripts/run_selftest.py                      # full battery
    python scripts/run_selftest.py --roundtrip-vectors 10 --timing-trials 50   # quick run
    python scripts/run_selftest.py --roundtrip-vectors 1000 --randomness-bytes 65536

Research / education only. Do NOT use in production.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from hashlab.config import load_settings
from hashlab.errors import EntropyError
from hashlab.evaluation.report import run_selftest
from hashlab.primitives.sprng import EntropyPool
from hashlab.utils.repro import make_run_dir, set_global_seed, write_json


def _cli_progress(stage: str, current: int, total: int) -> None:
    """Print progress to stderr."""
    print(f"  [{current + 1}/{total}] {stage}", file=sys.stderr)


def main() -> int:
    settings = load_settings()

    parser = argparse.ArgumentParser(description="hashlab self-test battery")
    parser.add_argument(
        "--seed", type=int, default=settings.selftest_seed,
        help=f"Seed for deterministic vectors (default: {settings.selftest_seed})",
    )
    parser.add_argument(
        "--randomness-bytes", type=int, default=16384,
        help="SPRNG sample size for the randomness tests (default: 16384)",
    )
    parser.add_argument(
        "--timing-trials", type=int, default=200,
        help="Timing samples per mismatch position (default: 200)",
    )
    parser.add_argument(
        "--roundtrip-vectors", type=int, default=100,
        help="Roundtrip vectors per key size (default: 100)",
    )
    parser.add_argument(
        "--output-dir", type=str, default=settings.runs_dir,
        help=f"Runs directory (default: {settings.runs_dir})",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    set_global_seed(args.seed)

    pool = EntropyPool()
    try:
        channel = pool.init_with_retry(settings.sprng_init_attempts)
    except EntropyError as exc:
        print(f"ERROR: SPRNG initialization failed: {exc}", file=sys.stderr)
        return 2
    print(f"SPRNG ready on channel {channel}")

    report = run_selftest(
        pool,
        seed=args.seed,
        randomness_bytes=args.randomness_bytes,
        timing_trials=args.timing_trials,
        roundtrip_vectors=args.roundtrip_vectors,
        progress_callback=_cli_progress,
    )

    paths = make_run_dir(args.output_dir, f"selftest_seed{args.seed}")
    write_json(paths.report_json, report.to_dict())
    write_json(paths.settings_json, settings.model_dump())

    print()
    print(report.to_summary())
    print(f"\nReport saved to: {paths.report_json}")
    return 0 if report.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
