"""
Full Validation Pipeline

Two tiers decide whether a user-authored model is eligible:
1. Tier 1: structural checks on the model config (no simulation)
2. Tier 2: the anchor test suite, run incrementally

A Tier 1 failure short-circuits: no simulation runs. Complexity is always
computed so callers can show it either way.
"""

import logging
from collections.abc import Callable
from typing import Optional

from .anchors import ANCHOR_TESTS
from .config import MIN_ANCHORS_TO_PASS
from .instrumentation import (
    STAGE_COMPLEXITY,
    STAGE_TIER1,
    STAGE_TIER2,
    attach_summary,
    compute_overall_status,
    make_stage_wrapper,
    run_async_stage,
    skipped_stage,
)
from .model_checks import calculate_complexity as default_calculate_complexity
from .model_checks import get_complexity_tier
from .model_checks import validate_tier1 as default_validate_tier1
from .models import (
    AnchorTestSuiteResult,
    FullValidationResult,
    ModelConfig,
    PipelineStageRecord,
    Tier1Failure,
    Tier1Result,
)
from .runner import ProgressCallback, run_tests_with_progress
from .sim import Stepper

logger = logging.getLogger(__name__)


def _format_complexity(complexity: float) -> str:
    return f"{complexity:g}"


async def run_full_validation(
    config: ModelConfig,
    on_progress: Optional[ProgressCallback] = None,
    stepper: Optional[Stepper] = None,
    validate_tier1: Callable[[ModelConfig], list[Tier1Failure]] = default_validate_tier1,
    calculate_complexity: Callable[[ModelConfig], float] = default_calculate_complexity,
    yield_between_tests: Optional[bool] = None,
) -> FullValidationResult:
    """
    Run Tier 1, then (if it passed) Tier 2, and classify the model.

    Args:
        config: The user-authored model
        on_progress: Forwarded to the incremental anchor-test run
        stepper: Month stepper for Tier 2 (defaults to the built-in stepper)
        validate_tier1: Structural validator (empty list = pass)
        calculate_complexity: Complexity scorer (lower is simpler)
        yield_between_tests: Forwarded to the incremental anchor-test run

    Returns:
        FullValidationResult; eligible is exactly
        tier1.passed and tier2.passed >= MIN_ANCHORS_TO_PASS
    """
    stages: list[PipelineStageRecord] = []
    logger.info("Validating model %s (%s)", config.id, config.name)

    failures, tier1_record = make_stage_wrapper(*STAGE_TIER1)(lambda: validate_tier1(config))
    stages.append(attach_summary(tier1_record, failures=len(failures)))
    tier1 = Tier1Result(passed=not failures, failures=list(failures))

    complexity, complexity_record = make_stage_wrapper(*STAGE_COMPLEXITY)(
        lambda: calculate_complexity(config)
    )

    if not tier1.passed:
        logger.info("Model %s failed Tier 1 with %d error(s)", config.id, len(failures))
        stages.append(skipped_stage(*STAGE_TIER2, reason="Tier 1 failed"))
        stages.append(attach_summary(complexity_record, complexity=complexity))
        logger.info("Validation of %s finished: %s", config.id, compute_overall_status(stages))
        return FullValidationResult(
            tier1=tier1,
            tier2=AnchorTestSuiteResult(
                passed=0,
                total=len(ANCHOR_TESTS),
                results=[],
                tier2_passed=False,
            ),
            complexity=complexity,
            complexity_tier=get_complexity_tier(complexity),
            eligible=False,
            summary=f"❌ Tier 1 failed: {len(failures)} error(s). Fix before running anchor tests.",
            stages=stages,
        )

    tier2, tier2_record = await run_async_stage(
        *STAGE_TIER2,
        lambda: run_tests_with_progress(
            on_progress=on_progress,
            stepper=stepper,
            yield_between_tests=yield_between_tests,
        ),
    )
    stages.append(attach_summary(tier2_record, passed=tier2.passed, total=tier2.total))
    stages.append(attach_summary(complexity_record, complexity=complexity))

    eligible = tier1.passed and tier2.passed >= MIN_ANCHORS_TO_PASS
    if eligible:
        summary = (
            f"✅ Eligible ({tier2.passed}/{tier2.total} anchors, "
            f"complexity: {_format_complexity(complexity)})"
        )
    else:
        shortfall = MIN_ANCHORS_TO_PASS - tier2.passed
        summary = (
            f"⚠️ Not eligible: passed {tier2.passed}/{tier2.total} anchors "
            f"(need {MIN_ANCHORS_TO_PASS}+, {shortfall} short)"
        )

    logger.info("Validation of %s finished: %s", config.id, summary)
    return FullValidationResult(
        tier1=tier1,
        tier2=tier2,
        complexity=complexity,
        complexity_tier=get_complexity_tier(complexity),
        eligible=eligible,
        summary=summary,
        stages=stages,
    )
