"""
Tests for the assertion evaluator.

Tests verify:
- Operator semantics
- Each assertion kind passes and fails with distinct, value-bearing reasons
- 0-month runs evaluate against a zero delta without faulting
- The comparison path pins contribution and stance in both runs
- Unknown kinds and stepper faults become failed results, never exceptions
"""

import pytest

from ubisim.assertions import compare, poor_countries_wellbeing, run_anchor_test
from ubisim.models import (
    AnchorCategory,
    AnchorTest,
    AnchorTestAssertion,
    AnchorTestSetup,
    AssertionType,
    ComparisonOperator,
    DistributionStrategy,
    GlobalLedger,
    PolicyStance,
    SimulationOutput,
    ThresholdMetric,
)
from ubisim.sim import build_initial_state
from ubisim.stepper import analyze_game_theory
from ubisim.world import POOR_COUNTRY_IDS


def _test(assertion, months=10, setup=None, category=AnchorCategory.CAUSAL):
    return AnchorTest(
        id="AT-X",
        name="Scratch",
        category=category,
        description="scratch test",
        simulation_months=months,
        setup=setup or AnchorTestSetup(),
        assertion=assertion,
    )


class TestCompare:
    """Test the shared operator evaluator."""

    @pytest.mark.parametrize(
        "actual,operator,expected,outcome",
        [
            (1.0, ComparisonOperator.LT, 2.0, True),
            (2.0, ComparisonOperator.LT, 2.0, False),
            (3.0, ComparisonOperator.GT, 2.0, True),
            (2.0, ComparisonOperator.LE, 2.0, True),
            (2.0, ComparisonOperator.GE, 2.0, True),
            (1.9, ComparisonOperator.GE, 2.0, False),
            (2.0005, ComparisonOperator.EQ, 2.0, True),
            (2.01, ComparisonOperator.EQ, 2.0, False),
            (0.005, ComparisonOperator.WITHIN, 0.01, True),
            (-0.02, ComparisonOperator.WITHIN, 0.01, False),
        ],
    )
    def test_operators(self, actual, operator, expected, outcome):
        """Verify each comparison operator."""
        assert compare(actual, operator, expected) is outcome

    def test_unknown_operator_is_false(self):
        """Verify a missing operator never passes."""
        assert compare(1.0, None, 0.0) is False
        assert compare(1.0, "!=", 0.0) is False


class TestWellbeingDelta:
    """Test wellbeingDelta assertions."""

    ASSERTION = AnchorTestAssertion(
        type=AssertionType.WELLBEING_DELTA, operator=ComparisonOperator.LT, value=-5
    )

    def test_pass(self, make_stepper):
        """Verify a large enough drop passes with the delta in the reason."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper(wellbeing_step=-1.0))
        assert result.passed
        assert result.reason == "Wellbeing changed by -10.00 (expected < -5)"
        assert result.details.metrics["wellbeing_delta"] == pytest.approx(-10.0)
        assert result.details.metrics["months"] == 10

    def test_fail(self, make_stepper):
        """Verify a small drop fails with the delta in the reason."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper(wellbeing_step=-0.1))
        assert not result.passed
        assert result.reason == "Wellbeing delta -1.00 did not satisfy < -5"
        assert result.error is None

    def test_zero_months_evaluates_zero_delta(self, make_stepper):
        """Verify a 0-month run evaluates a zero delta without faulting."""
        stepper = make_stepper(wellbeing_step=-1.0)
        result = run_anchor_test(_test(self.ASSERTION, months=0), stepper)
        assert not result.passed
        assert result.error is None
        assert result.details.metrics["wellbeing_delta"] == 0.0
        assert result.details.metrics["initial_wellbeing"] == result.details.metrics["final_wellbeing"]

        equal_zero = AnchorTestAssertion(
            type=AssertionType.WELLBEING_DELTA, operator=ComparisonOperator.EQ, value=0
        )
        assert run_anchor_test(_test(equal_zero, months=0), stepper).passed


class TestThreshold:
    """Test both threshold variants."""

    RATIO = AnchorTestAssertion(
        type=AssertionType.THRESHOLD,
        metric=ThresholdMetric.WELLBEING_RATIO,
        operator=ComparisonOperator.GE,
        value=0.8,
    )
    CONTRIBUTION = AnchorTestAssertion(
        type=AssertionType.THRESHOLD,
        metric=ThresholdMetric.CONTRIBUTION_RATE,
        operator=ComparisonOperator.GT,
    )

    def test_ratio_pass(self, make_stepper):
        """Verify a maintained wellbeing ratio passes."""
        result = run_anchor_test(_test(self.RATIO), make_stepper(wellbeing_step=-0.7))
        assert result.passed
        assert result.reason == "Wellbeing maintained at 90.0% of initial"

    def test_ratio_fail(self, make_stepper):
        """Verify a collapsed wellbeing ratio fails."""
        result = run_anchor_test(_test(self.RATIO), make_stepper(wellbeing_step=-3.5))
        assert not result.passed
        assert result.reason.startswith("Wellbeing collapsed to 50.0% of initial")
        assert "80%" in result.reason

    def test_contribution_uses_setup_rate(self, make_stepper):
        """Verify the setup rate is the initial contribution rate."""
        setup = AnchorTestSetup(all_corps_contribution_rate=0.2)
        result = run_anchor_test(_test(self.CONTRIBUTION, setup=setup), make_stepper(avg_rate=0.25))
        assert result.passed
        assert result.reason == "Contribution rate increased from 20.0% to 25.0%"

    def test_contribution_default_initial_rate(self, make_stepper):
        """Without a setup rate the initial rate is taken as 0.10."""
        result = run_anchor_test(_test(self.CONTRIBUTION), make_stepper(avg_rate=0.12))
        assert result.passed
        assert result.details.metrics["initial_contribution_rate"] == 0.10

        result = run_anchor_test(_test(self.CONTRIBUTION), make_stepper(avg_rate=0.08))
        assert not result.passed
        assert "did not increase (stayed at 8.0%" in result.reason

    @pytest.mark.parametrize("bad_rate", [float("nan"), 1.5, -0.2])
    def test_contribution_malformed_setup_rate(self, make_stepper, bad_rate):
        """Verify a malformed setup rate is compared as the default 0.10, not the raw value."""
        setup = AnchorTestSetup(all_corps_contribution_rate=bad_rate)
        result = run_anchor_test(_test(self.CONTRIBUTION, setup=setup), make_stepper(avg_rate=0.4))
        assert result.passed
        assert result.details.metrics["initial_contribution_rate"] == 0.10
        assert result.reason == "Contribution rate increased from 10.0% to 40.0%"

    def test_contribution_zero_months_fails(self, make_stepper):
        """Verify a 0-month run compares the initial rate with itself and fails."""
        setup = AnchorTestSetup(all_corps_contribution_rate=0.10)
        result = run_anchor_test(_test(self.CONTRIBUTION, months=0, setup=setup), make_stepper())
        assert not result.passed
        assert result.error is None

    def test_missing_metric_fails(self, make_stepper):
        """Verify a threshold without a metric fails instead of raising."""
        assertion = AnchorTestAssertion(type=AssertionType.THRESHOLD, value=1.0)
        result = run_anchor_test(_test(assertion), make_stepper())
        assert not result.passed
        assert "no known metric" in result.reason


class TestGameTheoryAssertion:
    """Test gameTheory assertions on the peak risk."""

    ASSERTION = AnchorTestAssertion(
        type=AssertionType.GAME_THEORY, operator=ComparisonOperator.GT, value=0.6
    )

    def test_transient_peak_passes(self, make_stepper):
        """Verify the peak risk counts even if the last month is low."""
        result = run_anchor_test(_test(self.ASSERTION, months=3), make_stepper(risks=[0.1, 0.9, 0.2]))
        assert result.passed
        assert result.reason == "Race-to-bottom risk reached 90.0% (threshold: 60%)"

    def test_low_risk_fails(self, make_stepper):
        """Verify a low peak risk fails."""
        result = run_anchor_test(_test(self.ASSERTION, months=3), make_stepper(risks=[0.1, 0.5, 0.2]))
        assert not result.passed
        assert result.reason == "Race-to-bottom risk only reached 50.0% (expected > 60%)"


class TestConservationAssertion:
    """Test conservation assertions on the terminal ledger."""

    ASSERTION = AnchorTestAssertion(
        type=AssertionType.CONSERVATION, operator=ComparisonOperator.WITHIN, tolerance=0.01
    )

    def test_within_tolerance(self, make_stepper):
        """Verify matching inflow and outflow pass."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper(inflow=100.0, outflow=99.5))
        assert result.passed
        assert result.reason == "Money conserved within 0.50% tolerance"

    def test_violation(self, make_stepper):
        """Verify a large mismatch fails."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper(inflow=100.0, outflow=95.0))
        assert not result.passed
        assert result.reason == "Money conservation violated: 5.00% difference (allowed: 1%)"

    def test_small_inflow_uses_unit_denominator(self, make_stepper):
        """Verify inflows below 1 are compared against a denominator of 1."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper(inflow=0.005, outflow=0.0))
        assert result.passed

    def test_zero_months(self, make_stepper):
        """Verify a 0-month run conserves trivially."""
        result = run_anchor_test(_test(self.ASSERTION, months=0), make_stepper())
        assert result.passed
        assert result.details.metrics["relative_difference"] == 0.0


class TestComparison:
    """Test the two-run comparison path."""

    SETUP = AnchorTestSetup(
        all_corps_contribution_rate=0.05,
        all_corps_policy_stance=PolicyStance.SELFISH,
        compare_strategies=(DistributionStrategy.GLOBAL, DistributionStrategy.HQ_LOCAL),
    )
    ASSERTION = AnchorTestAssertion(type=AssertionType.COMPARISON, operator=ComparisonOperator.GT)

    def _strategy_stepper(self, global_wellbeing, local_wellbeing, seen):
        def stepper(state, corporations, model):
            seen.append(corporations)
            target = (
                global_wellbeing
                if corporations[0].distribution_strategy == DistributionStrategy.GLOBAL
                else local_wellbeing
            )
            countries = {
                cid: c.model_copy(update={"wellbeing": target}) if cid in POOR_COUNTRY_IDS else c
                for cid, c in state.country_data.items()
            }
            return SimulationOutput(
                state=state.model_copy(update={"month": state.month + 1, "country_data": countries}),
                corporations=corporations,
                ledger=GlobalLedger(),
                game_theory=analyze_game_theory(corporations),
            )

        return stepper

    def test_global_higher_passes(self):
        """Verify the favoured strategy wins when poor countries end higher."""
        seen = []
        test = _test(self.ASSERTION, months=2, setup=self.SETUP, category=AnchorCategory.EQUILIBRIUM)
        result = run_anchor_test(test, self._strategy_stepper(80.0, 60.0, seen))
        assert result.passed
        assert result.reason == "Poor countries' wellbeing higher with global (80.0) vs HQ-local (60.0)"
        assert result.details.metrics["difference"] == pytest.approx(20.0)

    def test_global_not_higher_fails(self):
        """Verify a tie fails."""
        seen = []
        test = _test(self.ASSERTION, months=2, setup=self.SETUP)
        result = run_anchor_test(test, self._strategy_stepper(60.0, 60.0, seen))
        assert not result.passed
        assert "NOT higher" in result.reason

    def test_single_strategy_fails_with_details(self, make_stepper):
        """Verify a comparison with one strategy fails and still carries details."""
        setup = AnchorTestSetup(compare_strategies=(DistributionStrategy.GLOBAL,))
        stepper = make_stepper()
        result = run_anchor_test(_test(self.ASSERTION, months=3, setup=setup), stepper)
        assert not result.passed
        assert result.reason == "Comparison needs two strategies, got 1"
        assert result.details.expected == "two distribution strategies"
        assert result.details.actual == "global"
        assert result.details.metrics["months"] == 3.0
        assert stepper.calls == []

    def test_contribution_and_stance_pinned(self):
        """Both runs use rate 0.20 and a moderate stance, whatever the setup says."""
        seen = []
        test = _test(self.ASSERTION, months=1, setup=self.SETUP)
        run_anchor_test(test, self._strategy_stepper(80.0, 60.0, seen))
        assert len(seen) == 2
        strategies = [corps[0].distribution_strategy for corps in seen]
        assert strategies == [DistributionStrategy.GLOBAL, DistributionStrategy.HQ_LOCAL]
        for corps in seen:
            assert all(c.contribution_rate == 0.20 for c in corps)
            assert all(c.policy_stance == PolicyStance.MODERATE for c in corps)

    def test_comparison_type_without_strategies_fails(self, make_stepper):
        """Verify a comparison assertion without strategies fails."""
        result = run_anchor_test(_test(self.ASSERTION), make_stepper())
        assert not result.passed
        assert result.reason == "Unknown assertion type: comparison"

    def test_poor_countries_wellbeing(self):
        """Verify the low-income average uses only the designated countries."""
        state = build_initial_state()
        assert poor_countries_wellbeing(state) == 70.0
        state.country_data["HTI"].wellbeing = 30.0
        assert poor_countries_wellbeing(state) == pytest.approx((70.0 * 7 + 30.0) / 8)


class TestErrorBoundary:
    """Test that faults become failed results."""

    def test_stepper_fault_becomes_failed_result(self, failing_stepper):
        """Verify a stepper exception becomes a failed result carrying the error."""
        assertion = AnchorTestAssertion(
            type=AssertionType.WELLBEING_DELTA, operator=ComparisonOperator.LT, value=-5
        )
        result = run_anchor_test(_test(assertion), failing_stepper)
        assert not result.passed
        assert result.reason == "Test execution error: stepper exploded"
        assert result.error == "stepper exploded"
        assert result.details is None

    def test_unknown_assertion_type(self, make_stepper):
        """Verify an unknown assertion type fails with a descriptive reason."""
        assertion = AnchorTestAssertion.model_construct(
            type="mystery", operator=None, value=None, tolerance=None, metric=None
        )
        result = run_anchor_test(_test(assertion), make_stepper())
        assert not result.passed
        assert result.reason == "Unknown assertion type: mystery"
        assert result.error is None
