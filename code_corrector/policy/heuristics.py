"""
Correction Heuristics
=====================
Pure decision functions used by the correction loop.

    should_skip_baseline     — baseline is clean, nothing to correct
    exceeds_tolerance        — baseline too broken to spend oracle calls on
    exceeds_round_budget     — too many compile errors left for the rounds left
    judge_degenerate         — candidate is worse than useless, discard it
    accept_candidate         — candidate is the final answer
    normalize_error          — strip volatile parts of a diagnostic for history

Degenerate checks compare against the immediately preceding baseline, not the
original input. A candidate that regresses relative to round one but not
relative to the round before it is not flagged.
"""
import logging
import re
from dataclasses import dataclass

from code_corrector.core.constants import (
    HINT_MORE_COMPILE_ERRORS,
    HINT_RETURN_COMPLETE_SNIPPET,
)
from code_corrector.models.detection_result import DetectionResult

logger = logging.getLogger(__name__)


_CHAR_RANGE_RE = re.compile(r"at Char \d+-\d+:")
_FIX_SUGGESTION_MARKER = "\nFix suggestion"


# ---------------------------------------------------------------------------
# Error normalisation
# ---------------------------------------------------------------------------
def normalize_error(error: str) -> str:
    """
    Normalise a diagnostic for the historical-error list.

    Rules:
        - every "at Char N-M:" range annotation is removed
        - everything from the first "\\nFix suggestion" onwards is removed
    """
    return _CHAR_RANGE_RE.sub("", error).split(_FIX_SUGGESTION_MARKER)[0]


# ---------------------------------------------------------------------------
# Fail-fast gates
# ---------------------------------------------------------------------------
def should_skip_baseline(baseline: DetectionResult) -> bool:
    return baseline.is_clean


def exceeds_tolerance(baseline: DetectionResult, issue_tolerance: int) -> bool:
    return len(baseline.compile_errors) > issue_tolerance


def exceeds_round_budget(baseline: DetectionResult, index: int, max_retry_count: int) -> bool:
    """True when more compile errors remain than rounds are left."""
    return len(baseline.compile_errors) > max_retry_count - index


# ---------------------------------------------------------------------------
# Degenerate result heuristic
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DegenerateJudgement:
    terminate: bool
    suggestion: str = ""


def judge_degenerate(
    baseline_code: str,
    baseline_result: DetectionResult,
    candidate_code: str,
    candidate_result: DetectionResult,
) -> DegenerateJudgement:
    """
    Decide whether a candidate fix should be discarded.

    Rules, in order:
        1. The candidate shrank by at least its own remaining length
           (mostly truncated) → ask for the complete snippet.
        2. The candidate has more compile errors than the baseline
           → tell the oracle its fix made things worse.
        3. Otherwise keep the candidate.
    """
    length_delta = len(candidate_code) - len(baseline_code)
    if length_delta < 0 and abs(length_delta) >= len(candidate_code):
        logger.debug("Terminate: code length reduced too much (%d chars)", length_delta)
        return DegenerateJudgement(terminate=True, suggestion=HINT_RETURN_COMPLETE_SNIPPET)

    if len(candidate_result.compile_errors) > len(baseline_result.compile_errors):
        logger.debug(
            "Terminate: compile errors increased %d -> %d",
            len(baseline_result.compile_errors), len(candidate_result.compile_errors),
        )
        return DegenerateJudgement(terminate=True, suggestion=HINT_MORE_COMPILE_ERRORS)

    return DegenerateJudgement(terminate=False)


# ---------------------------------------------------------------------------
# Convergence criterion
# ---------------------------------------------------------------------------
def accept_candidate(
    index: int,
    max_retry_count: int,
    candidate_result: DetectionResult,
    baseline_result: DetectionResult,
) -> bool:
    """
    Accept when the candidate compiles cleanly and either this is the last
    allowed round or its defect set equals the one the oracle was asked to fix.
    """
    if candidate_result.compile_errors:
        return False
    return index == max_retry_count - 1 or candidate_result.same_as(baseline_result)
