"""
CLI Entrypoint Module

Runs the anchor-test suite, or the full two-tier validation of a model file:
- Without --model: runs all anchor tests (or the ones named with --test-id)
- With --model: loads a YAML/JSON model config and runs full validation

Usage:
    python -m ubisim.main
    python -m ubisim.main --test-id AT-1 --test-id AT-6
    python -m ubisim.main --model my_model.yaml --json
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import DEFAULT_LOG_FORMAT, get_log_level
from .models import ModelConfig, ProgressStatus, TestRunProgress
from .runner import format_test_result, get_test_summary, run_tests_with_progress
from .validation import run_full_validation

logger = logging.getLogger(__name__)


def load_model_config(path: Path) -> ModelConfig:
    """Load a model config from a .json, .yaml or .yml file."""
    with open(path) as f:
        if path.suffix.lower() == ".json":
            data: Any = json.load(f)
        else:
            data = yaml.safe_load(f)
    return ModelConfig.model_validate(data)


def _print_progress(progress: TestRunProgress) -> None:
    if progress.status == ProgressStatus.RUNNING:
        print(f"[{progress.current_test}/{progress.total_tests}] {progress.current_test_name}...")


def main(argv: list[str] | None = None) -> int:
    """Run the validation CLI.

    Returns:
        0 if every selected test passed (or the model is eligible), 1 otherwise.
    """
    logging.basicConfig(level=get_log_level(), format=DEFAULT_LOG_FORMAT)

    parser = argparse.ArgumentParser(
        description="Run anchor tests against the UBI transition simulation."
    )
    parser.add_argument(
        "--test-id",
        action="append",
        dest="test_ids",
        help="Run only this anchor test (may be repeated).",
    )
    parser.add_argument(
        "--model",
        type=Path,
        help="YAML or JSON model config; runs full Tier 1 + Tier 2 validation.",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON.")
    parser.add_argument(
        "--no-yield",
        action="store_true",
        help="Do not yield to the event loop between tests.",
    )
    args = parser.parse_args(argv)
    on_progress = None if args.json else _print_progress
    yield_between_tests = False if args.no_yield else None

    if args.model is not None:
        try:
            config = load_model_config(args.model)
        except (OSError, yaml.YAMLError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("could not load model config %s", args.model)
            print(f"ERROR: could not load model config {args.model}: {exc}")
            return 1

        result = asyncio.run(
            run_full_validation(config, on_progress=on_progress, yield_between_tests=yield_between_tests)
        )
        if args.json:
            print(result.model_dump_json(indent=2))
        else:
            for failure in result.tier1.failures:
                print(f"❌ {failure.test_id}: {failure.reason}")
            for test_result in result.tier2.results:
                print(format_test_result(test_result))
            print(f"\nComplexity: {result.complexity:g} ({result.complexity_tier.value})")
            print(result.summary)
        return 0 if result.eligible else 1

    suite = asyncio.run(
        run_tests_with_progress(
            on_progress=on_progress,
            test_ids=args.test_ids,
            yield_between_tests=yield_between_tests,
        )
    )
    if args.json:
        print(suite.model_dump_json(indent=2))
    else:
        print("\n=== ANCHOR TESTS ===\n")
        for test_result in suite.results:
            print(format_test_result(test_result))
        print()
        for category, tally in get_test_summary(suite.results).items():
            if tally.total:
                print(f"{category.value}: {tally.passed}/{tally.total}")
        print(f"\nPassed {suite.passed}/{suite.total}")

    return 0 if suite.total > 0 and suite.passed == suite.total else 1


if __name__ == "__main__":
    raise SystemExit(main())
