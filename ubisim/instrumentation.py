"""
Stage instrumentation for the validation pipeline.

Wraps individual pipeline stages (structural checks, anchor suite,
complexity scoring) to collect a PipelineStageRecord for each. The wrappers
record and re-raise; they never change the control flow or error handling
of the stage they wrap.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .models import PipelineStageRecord, StageStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stage ids used by the validation pipeline
STAGE_TIER1 = ("T1", "Structural Validation")
STAGE_TIER2 = ("T2", "Anchor Test Suite")
STAGE_COMPLEXITY = ("C1", "Complexity Scoring")


def _build_stage_record(stage_id: str, stage_name: str) -> PipelineStageRecord:
    return PipelineStageRecord(
        id=stage_id,
        name=stage_name,
        status=StageStatus.SUCCESS,
        summary={},
        errors=[],
    )


def _mark_failed(record: PipelineStageRecord, error: Exception) -> None:
    record.status = StageStatus.FAILED
    record.errors.append(str(error)[:200])
    logger.warning("Stage %s (%s) failed: %s", record.id, record.name, error)


def make_stage_wrapper(
    stage_id: str,
    stage_name: str,
) -> Callable[[Callable[[], T]], tuple[T, PipelineStageRecord]]:
    """
    Create a function that runs a stage and returns (result, record).

    Usage:
        wrapper = make_stage_wrapper("T1", "Structural Validation")
        failures, record = wrapper(lambda: validate_tier1(config))

    On exception the record is marked FAILED and the exception re-raised.
    """

    def execute_with_instrumentation(func: Callable[[], T]) -> tuple[T, PipelineStageRecord]:
        record = _build_stage_record(stage_id, stage_name)
        try:
            result = func()
        except Exception as e:
            _mark_failed(record, e)
            raise
        record.status = StageStatus.SUCCESS
        return result, record

    return execute_with_instrumentation


async def run_async_stage(
    stage_id: str,
    stage_name: str,
    func: Callable[[], Awaitable[T]],
) -> tuple[T, PipelineStageRecord]:
    """Async counterpart of make_stage_wrapper for coroutine stages."""
    record = _build_stage_record(stage_id, stage_name)
    try:
        result = await func()
    except Exception as e:
        _mark_failed(record, e)
        raise
    record.status = StageStatus.SUCCESS
    return result, record


def skipped_stage(stage_id: str, stage_name: str, reason: str) -> PipelineStageRecord:
    """Record for a stage the pipeline decided not to run."""
    record = _build_stage_record(stage_id, stage_name)
    record.status = StageStatus.SKIPPED
    record.summary = {"reason": reason}
    return record


def attach_summary(record: PipelineStageRecord, **summary: Any) -> PipelineStageRecord:
    record.summary.update(summary)
    return record


def compute_overall_status(stages: list[PipelineStageRecord]) -> str:
    """
    Compute overall status from stage records.

    - SUCCESS: every stage succeeded
    - FAILED: any stage failed
    - PARTIAL: no failures, but at least one stage was skipped
    """
    if any(s.status == StageStatus.FAILED for s in stages):
        return "FAILED"
    if any(s.status == StageStatus.SKIPPED for s in stages):
        return "PARTIAL"
    return "SUCCESS"
