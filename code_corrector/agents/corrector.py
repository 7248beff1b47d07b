"""
Code Issue Corrector
====================
The self-correction loop: Detect → Fix → Re-detect → Judge, a few rounds at most.

Flow:
    1. Detect issues in the original code (baseline)
    2. Clean baseline → SUCCESS, no oracle calls
    3. Baseline compile errors above the tier's tolerance → FAILED_AND_GO_NEXT
    4. Up to max_retry_count rounds:
        a. More compile errors than rounds left → stop
        b. Ask the oracle for a fix; no usable code → next round
        c. Detect issues in the candidate
        d. Remember the baseline's compile errors (normalised) as history
        e. Degenerate candidate → keep baseline, queue corrective hint, next round
        f. Converged → strip stray entry invocation, SUCCESS
        g. Otherwise the candidate becomes the new baseline
    5. Rounds used up → FAILED_AND_GO_NEXT with the last attempted code

Budget Philosophy:
    Rounds beyond two or three make results worse, so the loop fails fast:
    it refuses badly broken code up front and stops as soon as the remaining
    compile errors outnumber the rounds left.

Concurrency:
    One run is strictly sequential; its IterationState is private to the run.
    Independent runs may share a corrector instance concurrently.
    Cancellation is observed at every await; a cancelled run raises
    asyncio.CancelledError and returns no verdict.

The CodeIssueCorrector does NOT:
    - Detect issues itself (injected IssueDetector)
    - Word prompts or call LLMs (injected FixRequestOracle)
    - Apply the code anywhere (the caller persists CorrectionResult.code)
"""
import asyncio
import inspect
import logging
import time
from typing import Callable, List, Optional

from code_corrector.core.config import CORRECTOR_MODEL_ID, ENTRY_FUNCTION_NAME
from code_corrector.core.constants import PROGRESS_FIXING_ERRORS
from code_corrector.models.correction_request import CorrectionRequest
from code_corrector.models.correction_result import (
    BASELINE_CLEAN,
    BASELINE_TOO_BROKEN,
    BUDGET_EXHAUSTED,
    CONVERGED,
    ROUNDS_EXHAUSTED,
    CorrectionResult,
    ExecutionResult,
)
from code_corrector.models.detection_result import DetectionResult
from code_corrector.models.fix_attempt import FixAttempt, FixOutcome
from code_corrector.models.fix_request import FixRequest
from code_corrector.models.telemetry import CorrectionTelemetry
from code_corrector.policy.heuristics import (
    accept_candidate,
    exceeds_round_budget,
    exceeds_tolerance,
    judge_degenerate,
    should_skip_baseline,
)
from code_corrector.policy.tiers import tier_for
from code_corrector.protocols import FixRequestOracle, IssueDetector, ProgressCallback
from code_corrector.state.iteration_state import IterationState
from code_corrector.utils.sanitizer import strip_entry_invocation

logger = logging.getLogger(__name__)


class CodeIssueCorrector:
    """
    Drives the self-correction loop for one code snippet per correct() call.

    Parameters
    ----------
    detector : IssueDetector
        Scores code for compile-time and run-time defects.
    oracle : FixRequestOracle
        Proposes revised code.
    model_id : str
        Model id forwarded to the oracle for token budgeting.
    entry_name : str
        Entry function whose stray invocation is stripped from accepted code.
    clock : callable
        Monotonic clock in seconds (injectable for tests).
    """

    name = "codeIssueCorrector"
    capability = "Fix code issues"

    def __init__(
        self,
        detector: IssueDetector,
        oracle: FixRequestOracle,
        model_id: str = CORRECTOR_MODEL_ID,
        entry_name: str = ENTRY_FUNCTION_NAME,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.detector = detector
        self.oracle = oracle
        self.model_id = model_id
        self.entry_name = entry_name
        self._clock = clock

    @staticmethod
    def can_invoke(request: CorrectionRequest) -> bool:
        """A request needs a host, code and a non-empty task breakdown."""
        return bool(request.host) and bool(request.code) and len(request.substeps) > 0

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def correct(
        self,
        request: CorrectionRequest,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CorrectionResult:
        """
        Run the correction loop for one request.

        Parameters
        ----------
        request : CorrectionRequest
            Code, host, task breakdown, complexity and reference material.
        progress : callable or None
            Receives a progress message at the start of each round
            (sync or async).
        cancel_event : asyncio.Event or None
            When set, the run stops at the next suspension point.

        Returns
        -------
        CorrectionResult
            Verdict, code to persist, telemetry and the attempt log.

        Raises
        ------
        asyncio.CancelledError
            The run was cancelled; no verdict is produced.
        """
        telemetry = CorrectionTelemetry()
        attempts: List[FixAttempt] = []

        baseline = await self._detect(request, request.code, cancel_event)
        logger.debug(
            "Baseline: [C] %d, [R] %d.",
            len(baseline.compile_errors), len(baseline.runtime_errors),
        )

        tier = tier_for(request.complexity)

        if should_skip_baseline(baseline):
            logger.debug("No issue found in baseline, skip the self reflection.")
            return CorrectionResult(
                result=ExecutionResult.SUCCESS,
                code=request.code,
                telemetry=telemetry,
                reason=BASELINE_CLEAN,
            )

        if exceeds_tolerance(baseline, tier.issue_tolerance):
            logger.info(
                "%d compile errors in baseline exceed tolerance %d, skip the self reflection.",
                len(baseline.compile_errors), tier.issue_tolerance,
            )
            return CorrectionResult(
                result=ExecutionResult.FAILED_AND_GO_NEXT,
                code=request.code,
                telemetry=telemetry,
                reason=BASELINE_TOO_BROKEN,
            )

        state = IterationState(code=request.code, baseline=baseline)
        reason = ROUNDS_EXHAUSTED

        for index in range(tier.max_retry_count):
            state.index = index
            self._check_cancelled(cancel_event)
            round_start = self._clock()

            if exceeds_round_budget(state.baseline, index, tier.max_retry_count):
                logger.info(
                    "%d compile errors need fixing in the next %d rounds, fail fast.",
                    len(state.baseline.compile_errors), tier.max_retry_count - index,
                )
                reason = BUDGET_EXHAUSTED
                break

            logger.debug("Self reflection iteration %d.", index + 1)
            await self._report(progress, PROGRESS_FIXING_ERRORS)

            fixed = await self.oracle.request_fix(self._build_fix_request(request, state))
            self._check_cancelled(cancel_event)
            state.last_output = fixed

            if not fixed:
                attempts.append(FixAttempt(
                    iteration=index,
                    input_code=state.code,
                    baseline=state.baseline,
                    outcome=FixOutcome.ORACLE_FAILURE,
                ))
                continue

            candidate_result = await self._detect(request, fixed, cancel_event)
            state.remember_baseline_errors()

            judgement = judge_degenerate(state.code, state.baseline, fixed, candidate_result)
            if judgement.terminate:
                state.additional_info = judgement.suggestion
                attempts.append(FixAttempt(
                    iteration=index,
                    input_code=state.code,
                    baseline=state.baseline,
                    oracle_output=fixed,
                    candidate_result=candidate_result,
                    outcome=FixOutcome.DEGENERATE,
                    suggestion=judgement.suggestion,
                ))
                continue

            logger.debug(
                " After fix: [C] %d, [R] %d.",
                len(candidate_result.compile_errors), len(candidate_result.runtime_errors),
            )

            duration = self._clock() - round_start
            telemetry.record_round(duration)
            logger.debug("Self reflection round completed within %.2f seconds.", duration)

            if accept_candidate(index, tier.max_retry_count, candidate_result, state.baseline):
                attempts.append(FixAttempt(
                    iteration=index,
                    input_code=state.code,
                    baseline=state.baseline,
                    oracle_output=fixed,
                    candidate_result=candidate_result,
                    outcome=FixOutcome.ACCEPTED,
                ))
                telemetry.succeeded = True
                logger.info("Self reflection converged in round %d.", index + 1)
                return CorrectionResult(
                    result=ExecutionResult.SUCCESS,
                    code=strip_entry_invocation(fixed, self.entry_name),
                    telemetry=telemetry,
                    attempts=attempts,
                    reason=CONVERGED,
                )

            attempts.append(FixAttempt(
                iteration=index,
                input_code=state.code,
                baseline=state.baseline,
                oracle_output=fixed,
                candidate_result=candidate_result,
                outcome=FixOutcome.UNPRODUCTIVE,
            ))
            state.advance(fixed, candidate_result)

        telemetry.succeeded = False
        logger.info("Self reflection gave up (%s) after %d attempts.", reason, len(attempts))
        return CorrectionResult(
            result=ExecutionResult.FAILED_AND_GO_NEXT,
            code=state.final_code,
            telemetry=telemetry,
            attempts=attempts,
            reason=reason,
        )

    # -------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------
    async def _detect(
        self,
        request: CorrectionRequest,
        code: str,
        cancel_event: Optional[asyncio.Event],
    ) -> DetectionResult:
        result = await self.detector.detect(
            code, request.host, request.is_custom_function, request.context,
        )
        self._check_cancelled(cancel_event)
        return result

    def _build_fix_request(self, request: CorrectionRequest, state: IterationState) -> FixRequest:
        return FixRequest(
            code=state.code,
            host=request.host,
            is_custom_function=request.is_custom_function,
            substeps=request.substeps,
            compile_errors=list(state.baseline.compile_errors),
            runtime_errors=list(state.baseline.runtime_errors),
            historical_errors=list(state.historical_errors),
            additional_info=state.additional_info,
            api_declarations=request.api_declarations,
            code_sample=request.code_sample,
            model_id=self.model_id,
        )

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError("Code correction cancelled")

    @staticmethod
    async def _report(progress: Optional[ProgressCallback], message: str) -> None:
        if progress is None:
            return
        outcome = progress(message)
        if inspect.isawaitable(outcome):
            await outcome
