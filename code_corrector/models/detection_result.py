"""
Detection Result Model
======================
Immutable snapshot of the defects a detector found in one code string.

Fields:
    compile_errors  — ordered compile-time diagnostics
    runtime_errors  — ordered run-time diagnostics

Each diagnostic is an opaque message string. It may embed a character-range
annotation ("at Char 12-30:") and a trailing "\\nFix suggestion ..." block;
see normalize_error() in code_corrector.policy.heuristics.

Only detectors create DetectionResults. The corrector compares and counts
them but never mutates one.
"""
from typing import Tuple
from pydantic import BaseModel, ConfigDict


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    compile_errors: Tuple[str, ...] = ()
    runtime_errors: Tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.compile_errors and not self.runtime_errors

    def same_as(self, other: "DetectionResult") -> bool:
        """Structural equality of both error sequences (order-sensitive)."""
        return (
            self.compile_errors == other.compile_errors
            and self.runtime_errors == other.runtime_errors
        )
