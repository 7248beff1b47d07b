"""
POST /correct
Runs the self-correction loop for one generated code snippet and returns the
verdict, the code to persist, and the run's telemetry counters.
"""
import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from code_corrector.agents.corrector import CodeIssueCorrector
from code_corrector.agents.fix_oracle import FixOracle
from code_corrector.models.correction_request import CorrectionRequest
from code_corrector.models.correction_result import ExecutionResult
from code_corrector.models.telemetry import CorrectionTelemetry
from code_corrector.services.detector_client import HttpIssueDetector

logger = logging.getLogger(__name__)

router = APIRouter()


class CorrectionResponse(BaseModel):
    result: ExecutionResult
    code: str
    reason: str
    telemetry: CorrectionTelemetry
    outcomes: list[str]


@lru_cache(maxsize=1)
def get_corrector() -> CodeIssueCorrector:
    """Process-wide corrector wired to the HTTP detector and the LLM oracle."""
    return CodeIssueCorrector(detector=HttpIssueDetector(), oracle=FixOracle())


async def shutdown_corrector() -> None:
    """Close the HTTP clients of the process-wide corrector, if one was built."""
    if get_corrector.cache_info().currsize == 0:
        return
    corrector = get_corrector()
    await corrector.oracle.close()
    await corrector.detector.close()
    get_corrector.cache_clear()


@router.post("/correct", response_model=CorrectionResponse)
async def correct_code(
    request: CorrectionRequest,
    corrector: CodeIssueCorrector = Depends(get_corrector),
) -> CorrectionResponse:
    if not corrector.can_invoke(request):
        raise HTTPException(
            status_code=422,
            detail="host, code and a non-empty substeps list are required",
        )

    logger.info(
        "Correcting %d chars of %s code (complexity %.0f)",
        len(request.code), request.host, request.complexity,
    )
    outcome = await corrector.correct(request)
    return CorrectionResponse(
        result=outcome.result,
        code=outcome.code,
        reason=outcome.reason,
        telemetry=outcome.telemetry,
        outcomes=[a.outcome.value for a in outcome.attempts],
    )
