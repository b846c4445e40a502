"""
Tests for the anchor test registry and the default stepper end to end.

Tests verify:
- The registry declares the six tests with the documented setups
- Registry records are immutable
- Every anchor test passes against the default stepper
- Suite runs are deterministic
"""

import pytest
from pydantic import ValidationError

from ubisim.anchors import ANCHOR_TESTS, get_anchor_test
from ubisim.assertions import run_anchor_test
from ubisim.models import (
    AnchorCategory,
    AssertionType,
    ComparisonOperator,
    DistributionStrategy,
    PolicyStance,
    ThresholdMetric,
)
from ubisim.runner import run_all_anchor_tests


@pytest.fixture(scope="module")
def default_suite():
    """One full suite run with the default stepper, shared by this module."""
    return run_all_anchor_tests()


class TestRegistry:
    """Test the registry declarations."""

    def test_ids_in_order(self):
        """Verify the registry lists AT-1 to AT-6 in order."""
        assert [t.id for t in ANCHOR_TESTS] == ["AT-1", "AT-2", "AT-3", "AT-4", "AT-5", "AT-6"]

    def test_lookup(self):
        """Verify lookup by id returns the test, or None for an unknown id."""
        assert get_anchor_test("AT-3").simulation_months == 48
        assert get_anchor_test("AT-99") is None

    def test_displacement_without_safety_net(self):
        """Verify AT-1 runs 36 months at zero contribution and expects a wellbeing drop."""
        test = get_anchor_test("AT-1")
        assert test.category == AnchorCategory.CAUSAL
        assert test.simulation_months == 36
        assert test.setup.displacement_rate == 0.85
        assert test.setup.all_corps_contribution_rate == 0.0
        assert test.setup.all_corps_policy_stance == PolicyStance.SELFISH
        assert test.assertion.type == AssertionType.WELLBEING_DELTA
        assert test.assertion.operator == ComparisonOperator.LT
        assert test.assertion.value == -5

    def test_redistribution_ratio(self):
        """Verify AT-2 checks the final/initial wellbeing ratio."""
        test = get_anchor_test("AT-2")
        assert test.simulation_months == 60
        assert test.setup.distribution_strategy == DistributionStrategy.GLOBAL
        assert test.assertion.metric == ThresholdMetric.WELLBEING_RATIO
        assert test.assertion.value == 0.8

    def test_enlightened_self_interest(self):
        """Verify AT-4 starts at a 0.10 rate under high market pressure and expects rates to rise."""
        test = get_anchor_test("AT-4")
        assert test.setup.market_pressure == 0.8
        assert test.setup.all_corps_contribution_rate == 0.10
        assert test.assertion.metric == ThresholdMetric.CONTRIBUTION_RATE

    def test_comparison_and_conservation(self):
        """Verify AT-5 compares global with HQ-local and AT-6 checks conservation."""
        assert get_anchor_test("AT-5").setup.compare_strategies == (
            DistributionStrategy.GLOBAL,
            DistributionStrategy.HQ_LOCAL,
        )
        conservation = get_anchor_test("AT-6")
        assert conservation.category == AnchorCategory.CONSISTENCY
        assert conservation.simulation_months == 12
        assert conservation.assertion.tolerance == 0.01

    def test_records_are_frozen(self):
        """Verify registry records cannot be modified."""
        with pytest.raises(ValidationError):
            ANCHOR_TESTS[0].simulation_months = 1
        with pytest.raises(ValidationError):
            ANCHOR_TESTS[0].setup.displacement_rate = 0.1


class TestDefaultStepper:
    """Test that the default stepper satisfies every anchor law."""

    def test_all_pass(self, default_suite):
        """Verify the built-in stepper passes the whole suite."""
        failed = [r.test_id + ": " + r.reason for r in default_suite.results if not r.passed]
        assert failed == []
        assert default_suite.passed == 6
        assert default_suite.tier2_passed

    @pytest.mark.parametrize("test_id", ["AT-1", "AT-2", "AT-3", "AT-4", "AT-5", "AT-6"])
    def test_each_passes(self, default_suite, test_id):
        """Verify each anchor test passes on its own."""
        result = next(r for r in default_suite.results if r.test_id == test_id)
        assert result.passed, result.reason
        assert result.error is None
        assert result.details is not None

    def test_peak_risk_for_all_selfish(self, default_suite):
        """Verify an all-selfish start drives race-to-bottom risk to its maximum."""
        result = next(r for r in default_suite.results if r.test_id == "AT-3")
        assert result.details.metrics["max_race_to_bottom_risk"] > 0.6

    def test_deterministic(self, default_suite):
        """Verify two suite runs give identical results."""
        second = run_all_anchor_tests()
        assert [r.model_dump() for r in second.results] == [r.model_dump() for r in default_suite.results]

    def test_zero_month_variants(self):
        """0-month runs never fault; conservation holds and the rate cannot rise."""
        at4 = get_anchor_test("AT-4").model_copy(update={"simulation_months": 0})
        at6 = get_anchor_test("AT-6").model_copy(update={"simulation_months": 0})
        at1 = get_anchor_test("AT-1").model_copy(update={"simulation_months": 0})

        rate_result = run_anchor_test(at4)
        assert not rate_result.passed
        assert rate_result.error is None

        assert run_anchor_test(at6).passed

        delta_result = run_anchor_test(at1)
        assert delta_result.details.metrics["wellbeing_delta"] == 0.0
        assert not delta_result.passed
