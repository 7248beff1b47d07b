"""
Iteration State
Mutable loop state owned by a single CodeIssueCorrector run.
Created when the run starts, discarded when it returns. Never shared.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from code_corrector.models.detection_result import DetectionResult
from code_corrector.policy.heuristics import normalize_error


@dataclass
class IterationState:
    code: str
    baseline: DetectionResult
    historical_errors: List[str] = field(default_factory=list)
    additional_info: str = ""
    index: int = 0
    # Raw oracle output of the most recent round (None if it had none)
    last_output: Optional[str] = None

    def remember_baseline_errors(self) -> None:
        """Append the current baseline's normalized compile errors (append-only)."""
        self.historical_errors.extend(
            normalize_error(error) for error in self.baseline.compile_errors
        )

    def advance(self, code: str, result: DetectionResult) -> None:
        self.code = code
        self.baseline = result

    @property
    def final_code(self) -> str:
        return self.last_output or self.code
