"""
Anchor Test Registry

The fixed, ordered battery of invariant tests every model must satisfy.
Append-only: new tests get new ids, existing ids are never reused.
"""

from typing import Optional

from .models import (
    AnchorCategory,
    AnchorTest,
    AnchorTestAssertion,
    AnchorTestSetup,
    AssertionType,
    ComparisonOperator,
    DistributionStrategy,
    PolicyStance,
    ThresholdMetric,
)

ANCHOR_TESTS: tuple[AnchorTest, ...] = (
    AnchorTest(
        id="AT-1",
        name="Displacement Without Safety Net",
        category=AnchorCategory.CAUSAL,
        description=(
            "High AI displacement with zero corporate contribution must reduce "
            "average wellbeing. A model where mass displacement without any "
            "redistribution leaves people better off is logically broken."
        ),
        simulation_months=36,
        setup=AnchorTestSetup(
            displacement_rate=0.85,
            all_corps_contribution_rate=0.0,
            all_corps_policy_stance=PolicyStance.SELFISH,
        ),
        assertion=AnchorTestAssertion(
            type=AssertionType.WELLBEING_DELTA,
            operator=ComparisonOperator.LT,
            value=-5,
        ),
    ),
    AnchorTest(
        id="AT-2",
        name="Redistribution Cushions Displacement",
        category=AnchorCategory.CAUSAL,
        description=(
            "Generous global contributions must keep wellbeing at or above 80% "
            "of its starting level despite heavy displacement."
        ),
        simulation_months=60,
        setup=AnchorTestSetup(
            displacement_rate=0.80,
            all_corps_contribution_rate=0.40,
            all_corps_policy_stance=PolicyStance.GENEROUS,
            distribution_strategy=DistributionStrategy.GLOBAL,
        ),
        assertion=AnchorTestAssertion(
            type=AssertionType.THRESHOLD,
            metric=ThresholdMetric.WELLBEING_RATIO,
            operator=ComparisonOperator.GE,
            value=0.8,
        ),
    ),
    AnchorTest(
        id="AT-3",
        name="Race to the Bottom",
        category=AnchorCategory.EQUILIBRIUM,
        description=(
            "When every corporation is selfish with minimal contributions, the "
            "race-to-bottom risk must exceed 60% at some point in the run."
        ),
        simulation_months=48,
        setup=AnchorTestSetup(
            all_corps_contribution_rate=0.05,
            all_corps_policy_stance=PolicyStance.SELFISH,
        ),
        assertion=AnchorTestAssertion(
            type=AssertionType.GAME_THEORY,
            operator=ComparisonOperator.GT,
            value=0.6,
        ),
    ),
    AnchorTest(
        id="AT-4",
        name="Enlightened Self-Interest",
        category=AnchorCategory.CAUSAL,
        description=(
            "Under strong market pressure, corporations facing collapsing "
            "customer demand must raise their contributions above where they "
            "started."
        ),
        simulation_months=48,
        setup=AnchorTestSetup(
            all_corps_contribution_rate=0.10,
            all_corps_policy_stance=PolicyStance.MODERATE,
            market_pressure=0.8,
        ),
        assertion=AnchorTestAssertion(
            type=AssertionType.THRESHOLD,
            metric=ThresholdMetric.CONTRIBUTION_RATE,
            operator=ComparisonOperator.GT,
        ),
    ),
    AnchorTest(
        id="AT-5",
        name="Global Distribution Helps the Poorest",
        category=AnchorCategory.EQUILIBRIUM,
        description=(
            "With contributions held at 20%, low-income countries must end up "
            "better off when funds are distributed globally than when they stay "
            "in corporate headquarters countries."
        ),
        simulation_months=60,
        setup=AnchorTestSetup(
            all_corps_contribution_rate=0.20,
            all_corps_policy_stance=PolicyStance.MODERATE,
            compare_strategies=(DistributionStrategy.GLOBAL, DistributionStrategy.HQ_LOCAL),
        ),
        assertion=AnchorTestAssertion(
            type=AssertionType.COMPARISON,
            operator=ComparisonOperator.GT,
        ),
    ),
    AnchorTest(
        id="AT-6",
        name="Money Conservation",
        category=AnchorCategory.CONSISTENCY,
        description=(
            "Money paid into the fund must equal money paid out. Inflow and "
            "outflow in the final month may differ by at most 1%."
        ),
        simulation_months=12,
        setup=AnchorTestSetup(any_valid_configuration=True),
        assertion=AnchorTestAssertion(
            type=AssertionType.CONSERVATION,
            operator=ComparisonOperator.WITHIN,
            tolerance=0.01,
        ),
    ),
)


def get_anchor_test(test_id: str) -> Optional[AnchorTest]:
    """Look up an anchor test by id; None if no such test."""
    for test in ANCHOR_TESTS:
        if test.id == test_id:
            return test
    return None
