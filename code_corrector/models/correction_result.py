"""
Correction Result Model
=======================
Pydantic model returned by CodeIssueCorrector.correct().

Fields:
    result      — SUCCESS or FAILED_AND_GO_NEXT
    code        — accepted fix, last attempted candidate, or the original code
    telemetry   — this run's counters (see CorrectionTelemetry)
    attempts    — per-round FixAttempt log, in order
    reason      — short machine-readable exit reason
"""
from enum import Enum
from typing import List
from pydantic import BaseModel, Field

from .fix_attempt import FixAttempt
from .telemetry import CorrectionTelemetry


class ExecutionResult(str, Enum):
    SUCCESS = "success"
    FAILED_AND_GO_NEXT = "failed_and_go_next"


# Exit reasons
BASELINE_CLEAN = "BASELINE_CLEAN"
BASELINE_TOO_BROKEN = "BASELINE_TOO_BROKEN"
CONVERGED = "CONVERGED"
BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"
ROUNDS_EXHAUSTED = "ROUNDS_EXHAUSTED"


class CorrectionResult(BaseModel):
    result: ExecutionResult
    code: str
    telemetry: CorrectionTelemetry = Field(default_factory=CorrectionTelemetry)
    attempts: List[FixAttempt] = []
    reason: str = ""
