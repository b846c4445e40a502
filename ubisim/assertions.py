"""
Assertion Evaluator Module

Turns a finished simulation run into a pass/fail AnchorTestResult:
- compare(actual, operator, expected) -> bool
- evaluate_anchor_test(test, run) -> AnchorTestResult
- run_comparison_test(test, stepper) -> AnchorTestResult
- run_anchor_test(test, stepper) -> AnchorTestResult

run_anchor_test is the single-test error boundary: whatever goes wrong while
simulating or evaluating one test becomes a failed result, never an
exception that aborts the rest of the suite.
"""

import logging
from collections.abc import Callable
from typing import Optional

from .models import (
    AnchorTest,
    AnchorTestDetails,
    AnchorTestResult,
    AnchorTestSetup,
    AssertionType,
    ComparisonOperator,
    DistributionStrategy,
    PolicyStance,
    SimulationState,
    ThresholdMetric,
)
from .sim import SimulationRun, Stepper, resolve_fraction, run_simulation
from .world import POOR_COUNTRY_IDS

logger = logging.getLogger(__name__)

EQUALITY_TOLERANCE = 0.001
DEFAULT_CONSERVATION_TOLERANCE = 0.01

# Initial rate assumed by the contribution-rate threshold when the setup has none.
DEFAULT_INITIAL_CONTRIBUTION_RATE = 0.10

COMPARISON_CONTRIBUTION_RATE = 0.20
COMPARISON_POLICY_STANCE = PolicyStance.MODERATE

_STRATEGY_LABELS = {
    DistributionStrategy.GLOBAL: "global",
    DistributionStrategy.CUSTOMER_WEIGHTED: "customer-weighted",
    DistributionStrategy.HQ_LOCAL: "HQ-local",
}


def compare(actual: float, operator: Optional[ComparisonOperator], expected: float) -> bool:
    """
    Evaluate `actual <operator> expected`.

    `==` allows a 0.001 tolerance; `within` checks |actual| <= expected.
    Unknown operators evaluate to False.
    """
    if operator == ComparisonOperator.LT:
        return actual < expected
    if operator == ComparisonOperator.GT:
        return actual > expected
    if operator == ComparisonOperator.LE:
        return actual <= expected
    if operator == ComparisonOperator.GE:
        return actual >= expected
    if operator == ComparisonOperator.EQ:
        return abs(actual - expected) < EQUALITY_TOLERANCE
    if operator == ComparisonOperator.WITHIN:
        return abs(actual) <= expected
    return False


def _operator_label(operator: Optional[ComparisonOperator]) -> str:
    return operator.value if operator is not None else "?"


def _result(
    test: AnchorTest,
    passed: bool,
    reason: str,
    expected: str,
    actual: str,
    metrics: dict[str, float],
) -> AnchorTestResult:
    return AnchorTestResult(
        test_id=test.id,
        test_name=test.name,
        category=test.category,
        passed=passed,
        reason=reason,
        details=AnchorTestDetails(expected=expected, actual=actual, metrics=metrics),
    )


def _base_metrics(test: AnchorTest, run: SimulationRun) -> dict[str, float]:
    initial_wellbeing = run.initial.average_wellbeing
    final_wellbeing = run.final.average_wellbeing
    return {
        "initial_wellbeing": initial_wellbeing,
        "final_wellbeing": final_wellbeing,
        "wellbeing_delta": final_wellbeing - initial_wellbeing,
        "months": float(test.simulation_months),
    }


# =============================================================================
# EVALUATORS (one per assertion kind)
# =============================================================================

def _evaluate_wellbeing_delta(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    metrics = _base_metrics(test, run)
    delta = metrics["wellbeing_delta"]
    op = test.assertion.operator
    value = test.assertion.value if test.assertion.value is not None else 0.0

    passed = compare(delta, op, value)
    reason = (
        f"Wellbeing changed by {delta:.2f} (expected {_operator_label(op)} {value:g})"
        if passed
        else f"Wellbeing delta {delta:.2f} did not satisfy {_operator_label(op)} {value:g}"
    )
    return _result(
        test, passed, reason,
        expected=f"{_operator_label(op)} {value:g}",
        actual=f"Wellbeing delta: {delta:.2f}",
        metrics=metrics,
    )


def _evaluate_wellbeing_ratio(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    metrics = _base_metrics(test, run)
    initial_wellbeing = metrics["initial_wellbeing"]
    ratio = metrics["final_wellbeing"] / initial_wellbeing if initial_wellbeing > 0 else 0.0
    metrics["wellbeing_ratio"] = ratio
    op = test.assertion.operator or ComparisonOperator.GE
    value = test.assertion.value if test.assertion.value is not None else 0.0

    passed = compare(ratio, op, value)
    reason = (
        f"Wellbeing maintained at {ratio * 100:.1f}% of initial"
        if passed
        else f"Wellbeing collapsed to {ratio * 100:.1f}% of initial "
             f"(expected {_operator_label(op)} {value * 100:g}%)"
    )
    return _result(
        test, passed, reason,
        expected=f"final/initial {_operator_label(op)} {value:g}",
        actual=f"Final/Initial ratio: {ratio:.3f}",
        metrics=metrics,
    )


def _evaluate_contribution_rate(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    metrics = _base_metrics(test, run)
    # Missing or malformed setup rates compare against the default initial rate
    initial_rate = resolve_fraction(
        test.setup.all_corps_contribution_rate,
        DEFAULT_INITIAL_CONTRIBUTION_RATE,
        "all_corps_contribution_rate",
    )
    final_rate = run.history[-1].game_theory.avg_contribution_rate if run.history else initial_rate
    metrics["initial_contribution_rate"] = initial_rate
    metrics["final_contribution_rate"] = final_rate
    op = test.assertion.operator or ComparisonOperator.GT

    passed = compare(final_rate, op, initial_rate)
    reason = (
        f"Contribution rate increased from {initial_rate * 100:.1f}% to {final_rate * 100:.1f}%"
        if passed
        else f"Contribution rate did not increase (stayed at {final_rate * 100:.1f}%, "
             f"expected {_operator_label(op)} {initial_rate * 100:.1f}%)"
    )
    return _result(
        test, passed, reason,
        expected=f"avg contribution rate {_operator_label(op)} {initial_rate:.3f}",
        actual=f"Contribution rate: {initial_rate:.3f} -> {final_rate:.3f}",
        metrics=metrics,
    )


_THRESHOLD_EVALUATORS = {
    ThresholdMetric.WELLBEING_RATIO: _evaluate_wellbeing_ratio,
    ThresholdMetric.CONTRIBUTION_RATE: _evaluate_contribution_rate,
}


def _evaluate_threshold(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    evaluator = _THRESHOLD_EVALUATORS.get(test.assertion.metric)
    if evaluator is None:
        return _result(
            test, False,
            f"Threshold assertion has no known metric: {test.assertion.metric}",
            expected="metric in " + ", ".join(m.value for m in ThresholdMetric),
            actual=str(test.assertion.metric),
            metrics=_base_metrics(test, run),
        )
    return evaluator(test, run)


def _evaluate_game_theory(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    metrics = _base_metrics(test, run)
    peak_risk = run.max_race_to_bottom_risk
    metrics["max_race_to_bottom_risk"] = peak_risk
    op = test.assertion.operator or ComparisonOperator.GT
    value = test.assertion.value if test.assertion.value is not None else 0.0

    passed = compare(peak_risk, op, value)
    reason = (
        f"Race-to-bottom risk reached {peak_risk * 100:.1f}% (threshold: {value * 100:g}%)"
        if passed
        else f"Race-to-bottom risk only reached {peak_risk * 100:.1f}% "
             f"(expected {_operator_label(op)} {value * 100:g}%)"
    )
    return _result(
        test, passed, reason,
        expected=f"peak race-to-bottom risk {_operator_label(op)} {value:g}",
        actual=f"Max race-to-bottom risk: {peak_risk:.3f}",
        metrics=metrics,
    )


def _evaluate_conservation(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    metrics = _base_metrics(test, run)
    ledger = run.history[-1].ledger if run.history else None
    inflow = ledger.monthly_inflow if ledger else 0.0
    outflow = ledger.monthly_outflow if ledger else 0.0
    diff = abs(inflow - outflow) / max(inflow, 1.0)
    tolerance = (
        test.assertion.tolerance
        if test.assertion.tolerance is not None
        else DEFAULT_CONSERVATION_TOLERANCE
    )
    metrics.update(inflow=inflow, outflow=outflow, relative_difference=diff)

    passed = compare(diff, ComparisonOperator.WITHIN, tolerance)
    reason = (
        f"Money conserved within {diff * 100:.2f}% tolerance"
        if passed
        else f"Money conservation violated: {diff * 100:.2f}% difference "
             f"(allowed: {tolerance * 100:.0f}%)"
    )
    return _result(
        test, passed, reason,
        expected=f"|inflow - outflow| / max(inflow, 1) <= {tolerance:g}",
        actual=f"Inflow: {inflow:.2f}, Outflow: {outflow:.2f}, Diff: {diff * 100:.2f}%",
        metrics=metrics,
    )


Evaluator = Callable[[AnchorTest, SimulationRun], AnchorTestResult]

EVALUATORS: dict[AssertionType, Evaluator] = {
    AssertionType.WELLBEING_DELTA: _evaluate_wellbeing_delta,
    AssertionType.THRESHOLD: _evaluate_threshold,
    AssertionType.GAME_THEORY: _evaluate_game_theory,
    AssertionType.CONSERVATION: _evaluate_conservation,
}


def evaluate_anchor_test(test: AnchorTest, run: SimulationRun) -> AnchorTestResult:
    """
    Evaluate a single-run assertion against a finished simulation.

    Assertion kinds without an evaluator fail with a descriptive reason.
    """
    evaluator = EVALUATORS.get(test.assertion.type)
    if evaluator is None:
        kind = getattr(test.assertion.type, "value", test.assertion.type)
        return _result(
            test, False,
            f"Unknown assertion type: {kind}",
            expected="a supported assertion type",
            actual=str(kind),
            metrics=_base_metrics(test, run),
        )
    return evaluator(test, run)


# =============================================================================
# COMPARISON PATH
# =============================================================================

def poor_countries_wellbeing(state: SimulationState) -> float:
    """Average wellbeing of the designated low-income countries present in state."""
    values = [state.country_data[cid].wellbeing for cid in POOR_COUNTRY_IDS if cid in state.country_data]
    return sum(values) / len(values) if values else 0.0


def run_comparison_test(test: AnchorTest, stepper: Optional[Stepper] = None) -> AnchorTestResult:
    """
    Run the scenario once per strategy and compare low-income outcomes.

    The first strategy in compare_strategies must leave the low-income
    countries strictly better off than the second. Contribution rate and
    stance are pinned in both runs so only the routing differs.
    """
    strategies = test.setup.compare_strategies or ()
    if len(strategies) < 2:
        return _result(
            test, False,
            f"Comparison needs two strategies, got {len(strategies)}",
            expected="two distribution strategies",
            actual=", ".join(s.value for s in strategies) or "none",
            metrics={"months": float(test.simulation_months)},
        )

    favoured, baseline = strategies[0], strategies[1]
    outcomes: list[tuple[SimulationRun, float]] = []
    for strategy in (favoured, baseline):
        setup = AnchorTestSetup(
            displacement_rate=test.setup.displacement_rate,
            market_pressure=test.setup.market_pressure,
            distribution_strategy=strategy,
            all_corps_contribution_rate=COMPARISON_CONTRIBUTION_RATE,
            all_corps_policy_stance=COMPARISON_POLICY_STANCE,
        )
        run = run_simulation(test.simulation_months, setup, stepper)
        outcomes.append((run, poor_countries_wellbeing(run.final)))

    (favoured_run, favoured_wellbeing), (_, baseline_wellbeing) = outcomes
    favoured_label = _STRATEGY_LABELS.get(favoured, str(favoured))
    baseline_label = _STRATEGY_LABELS.get(baseline, str(baseline))

    passed = compare(favoured_wellbeing, ComparisonOperator.GT, baseline_wellbeing)
    verdict = "higher" if passed else "NOT higher"
    reason = (
        f"Poor countries' wellbeing {verdict} with {favoured_label} "
        f"({favoured_wellbeing:.1f}) vs {baseline_label} ({baseline_wellbeing:.1f})"
    )

    metrics = _base_metrics(test, favoured_run)
    metrics.update(
        favoured_poor_wellbeing=favoured_wellbeing,
        baseline_poor_wellbeing=baseline_wellbeing,
        difference=favoured_wellbeing - baseline_wellbeing,
    )
    return _result(
        test, passed, reason,
        expected=f"{favoured_label} > {baseline_label} for poor countries",
        actual=f"{favoured_label}: {favoured_wellbeing:.2f}, {baseline_label}: {baseline_wellbeing:.2f}",
        metrics=metrics,
    )


# =============================================================================
# SINGLE-TEST BOUNDARY
# =============================================================================

def run_anchor_test(test: AnchorTest, stepper: Optional[Stepper] = None) -> AnchorTestResult:
    """
    Run one anchor test end to end.

    Any exception raised while simulating or evaluating is converted into a
    failed result carrying the error message.

    Args:
        test: Anchor test to run
        stepper: Month stepper (defaults to the built-in stepper)

    Returns:
        AnchorTestResult (never raises for test-level failures)
    """
    try:
        if test.setup.compare_strategies is not None:
            result = run_comparison_test(test, stepper)
        else:
            run = run_simulation(test.simulation_months, test.setup, stepper)
            result = evaluate_anchor_test(test, run)
    except Exception as e:
        logger.warning("Anchor test %s raised during execution: %s", test.id, e)
        return AnchorTestResult(
            test_id=test.id,
            test_name=test.name,
            category=test.category,
            passed=False,
            reason=f"Test execution error: {e}",
            error=str(e),
        )

    logger.info("Anchor test %s %s: %s", test.id, "passed" if result.passed else "failed", result.reason)
    return result
