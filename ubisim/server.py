"""
FastAPI HTTP server for the anchor-test validation engine.

Exposes:
- GET  /health                    - Health check
- GET  /api/anchors               - Anchor test descriptions
- POST /api/anchors/run           - Run the full suite or a subset by id
- POST /api/anchors/{test_id}/run - Run a single anchor test
- POST /api/validate              - Full two-tier validation of a model config
"""

import asyncio
import logging
import sys
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import DEFAULT_LOG_FORMAT, get_cors_origins, get_log_level
from .models import (
    AnchorTestDescription,
    AnchorTestResult,
    AnchorTestSuiteResult,
    FullValidationResult,
    ModelConfig,
    TestRunProgress,
)
from .runner import get_test_descriptions, run_single_test, run_tests_with_progress
from .validation import run_full_validation

# Configure logging
logging.basicConfig(
    level=get_log_level(),
    format=DEFAULT_LOG_FORMAT,
    stream=sys.stdout,
    force=True,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="UBI Simulator Validation API",
    description="Anchor-test validation for economic simulation models",
    version="1.0.0",
)

allow_origins = get_cors_origins()
logger.info("CORS allow_origins = %r", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class RunAnchorsRequest(BaseModel):
    """Request body for POST /api/anchors/run."""

    test_ids: Optional[list[str]] = Field(
        default=None, description="Subset of test ids to run; omit to run all"
    )


class ValidateRequest(BaseModel):
    """Request body for POST /api/validate."""

    model: ModelConfig = Field(..., description="User-authored model configuration")


def _log_progress(progress: TestRunProgress) -> None:
    logger.info(
        "[%d/%d] %s: %s",
        progress.current_test,
        progress.total_tests,
        progress.current_test_name,
        progress.status.value,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/api/anchors", response_model=list[AnchorTestDescription])
def list_anchor_tests() -> list[AnchorTestDescription]:
    """Describe every registered anchor test."""
    return get_test_descriptions()


@app.post("/api/anchors/run", response_model=AnchorTestSuiteResult)
def run_anchor_tests(req: RunAnchorsRequest) -> AnchorTestSuiteResult:
    """Run the full anchor suite, or only the listed test ids.

    Runs in the FastAPI threadpool on a private event loop.
    """
    logger.info("POST /api/anchors/run test_ids=%r", req.test_ids)
    return asyncio.run(run_tests_with_progress(on_progress=_log_progress, test_ids=req.test_ids))


@app.post("/api/anchors/{test_id}/run", response_model=AnchorTestResult)
def run_anchor_test_endpoint(test_id: str) -> AnchorTestResult:
    """Run one anchor test; 404 if the id is unknown."""
    result = run_single_test(test_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Unknown anchor test: {test_id}")
    return result


@app.post("/api/validate", response_model=FullValidationResult)
def validate_model(req: ValidateRequest) -> FullValidationResult:
    """Run Tier 1 and, if it passes, Tier 2 against a model configuration."""
    logger.info("POST /api/validate model=%s", req.model.id)
    return asyncio.run(run_full_validation(req.model, on_progress=_log_progress))


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}
