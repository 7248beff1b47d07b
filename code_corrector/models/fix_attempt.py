"""
Fix Attempt Model
=================
Pydantic model recording one pass of the correction loop.

Outcomes:
    accepted        — candidate converged and was returned
    degenerate      — candidate shrank catastrophically or added compile errors
    unproductive    — candidate evaluated but not accepted; baseline advanced
    oracle_failure  — oracle produced no usable code
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel

from .detection_result import DetectionResult


class FixOutcome(str, Enum):
    ACCEPTED = "accepted"
    DEGENERATE = "degenerate"
    UNPRODUCTIVE = "unproductive"
    ORACLE_FAILURE = "oracle_failure"


class FixAttempt(BaseModel):
    iteration: int
    input_code: str
    baseline: DetectionResult
    oracle_output: Optional[str] = None
    candidate_result: Optional[DetectionResult] = None
    outcome: FixOutcome
    suggestion: str = ""
