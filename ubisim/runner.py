"""
Test Orchestrator Module

Sequences anchor tests and aggregates their results. Two modes share the
same single-test boundary and the same suite aggregation:
- Batch: run_all_anchor_tests / run_anchor_tests_by_id / run_single_test
- Incremental: run_tests_with_progress (async), reporting progress to a
  callback and yielding control to the event loop between tests

Tests always run one at a time in registry order.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Optional

from .anchors import ANCHOR_TESTS, get_anchor_test
from .assertions import run_anchor_test
from .config import MIN_ANCHORS_TO_PASS, get_yield_between_tests
from .models import (
    AnchorCategory,
    AnchorTest,
    AnchorTestDescription,
    AnchorTestResult,
    AnchorTestSuiteResult,
    CategoryTally,
    ProgressStatus,
    TestRunProgress,
)
from .sim import Stepper

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[TestRunProgress], None]


def build_suite_result(results: list[AnchorTestResult], total: int) -> AnchorTestSuiteResult:
    """Aggregate per-test results into a suite verdict."""
    passed = sum(1 for r in results if r.passed)
    return AnchorTestSuiteResult(
        passed=passed,
        total=total,
        results=list(results),
        tier2_passed=passed >= MIN_ANCHORS_TO_PASS,
    )


def _select_tests(test_ids: Optional[Iterable[str]]) -> list[AnchorTest]:
    """Registry order; unknown ids are skipped with a warning."""
    if test_ids is None:
        return list(ANCHOR_TESTS)

    wanted = set(test_ids)
    unknown = wanted - {t.id for t in ANCHOR_TESTS}
    if unknown:
        logger.warning("Skipping unknown anchor test ids: %s", sorted(unknown))
    return [t for t in ANCHOR_TESTS if t.id in wanted]


def _run_batch(tests: Sequence[AnchorTest], stepper: Optional[Stepper]) -> AnchorTestSuiteResult:
    logger.info("Running %d anchor test(s)", len(tests))
    results = [run_anchor_test(test, stepper) for test in tests]
    suite = build_suite_result(results, len(tests))
    logger.info("Anchor suite finished: %d/%d passed", suite.passed, suite.total)
    return suite


def run_all_anchor_tests(stepper: Optional[Stepper] = None) -> AnchorTestSuiteResult:
    """Run the full registry synchronously."""
    return _run_batch(ANCHOR_TESTS, stepper)


def run_anchor_tests_by_id(
    test_ids: Iterable[str], stepper: Optional[Stepper] = None
) -> AnchorTestSuiteResult:
    """Run a subset of the registry. Unknown ids are skipped, not errors."""
    return _run_batch(_select_tests(test_ids), stepper)


def run_single_test(test_id: str, stepper: Optional[Stepper] = None) -> Optional[AnchorTestResult]:
    """Run one test by id; None if the id is unknown."""
    test = get_anchor_test(test_id)
    if test is None:
        return None
    return run_anchor_test(test, stepper)


def run_quick_test(stepper: Optional[Stepper] = None) -> AnchorTestSuiteResult:
    """Tier 2 only, for models that already passed structural validation."""
    return run_all_anchor_tests(stepper)


async def run_tests_with_progress(
    on_progress: Optional[ProgressCallback] = None,
    test_ids: Optional[Iterable[str]] = None,
    stepper: Optional[Stepper] = None,
    yield_between_tests: Optional[bool] = None,
) -> AnchorTestSuiteResult:
    """
    Run anchor tests incrementally, reporting progress.

    The callback receives a RUNNING update before each test, an ERROR update
    after a test whose execution faulted, and one COMPLETED update at the
    end. Each update carries a snapshot of the results so far.

    Args:
        on_progress: Optional progress callback
        test_ids: Optional subset of test ids (registry order is kept)
        stepper: Month stepper (defaults to the built-in stepper)
        yield_between_tests: Yield to the event loop before each test
            (defaults to UBISIM_YIELD_BETWEEN_TESTS)

    Returns:
        AnchorTestSuiteResult identical to the batch run for the same tests
    """
    tests = _select_tests(test_ids)
    total = len(tests)
    should_yield = get_yield_between_tests() if yield_between_tests is None else yield_between_tests
    results: list[AnchorTestResult] = []

    def report(current: int, name: str, status: ProgressStatus) -> None:
        if on_progress is None:
            return
        on_progress(
            TestRunProgress(
                current_test=current,
                total_tests=total,
                current_test_name=name,
                status=status,
                results=list(results),
            )
        )

    logger.info("Running %d anchor test(s) with progress", total)
    for index, test in enumerate(tests, start=1):
        report(index, test.name, ProgressStatus.RUNNING)

        if should_yield:
            await asyncio.sleep(0)

        result = run_anchor_test(test, stepper)
        results.append(result)

        if result.error is not None:
            report(index, test.name, ProgressStatus.ERROR)

    report(total, "Complete", ProgressStatus.COMPLETED)

    suite = build_suite_result(results, total)
    logger.info("Anchor suite finished: %d/%d passed", suite.passed, suite.total)
    return suite


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def get_test_descriptions() -> list[AnchorTestDescription]:
    return [
        AnchorTestDescription(
            id=t.id,
            name=t.name,
            category=t.category,
            description=t.description,
            months=t.simulation_months,
        )
        for t in ANCHOR_TESTS
    ]


def format_test_result(result: AnchorTestResult) -> str:
    """One-line display form: icon, test name, reason."""
    icon = "✅" if result.passed else "❌"
    return f"{icon} {result.test_name}: {result.reason}"


def get_test_summary(results: Iterable[AnchorTestResult]) -> dict[AnchorCategory, CategoryTally]:
    """Pass/total tallies per test category."""
    summary = {category: CategoryTally() for category in AnchorCategory}
    for result in results:
        tally = summary[result.category]
        tally.total += 1
        if result.passed:
            tally.passed += 1
    return summary
