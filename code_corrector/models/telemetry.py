"""
Correction Telemetry
====================
Per-run counters reported by the corrector.

A fresh CorrectionTelemetry is created for every run and returned alongside
the verdict. Callers fold it into their own aggregate with merge_into(),
which is additive for measurements and overwrites the success property.

Fields:
    attempt_count       — productive rounds (reached the convergence check)
    execution_time_sec  — summed wall-clock duration of productive rounds
    succeeded           — None until the run exits with a verdict
"""
from typing import Dict, Optional
from pydantic import BaseModel

from code_corrector.core.constants import (
    MEASUREMENT_ATTEMPT_COUNT,
    MEASUREMENT_EXECUTION_TIME_SEC,
    PROPERTY_ATTEMPT_SUCCEEDED,
)


class CorrectionTelemetry(BaseModel):
    attempt_count: int = 0
    execution_time_sec: float = 0.0
    succeeded: Optional[bool] = None

    def record_round(self, duration_sec: float) -> None:
        self.attempt_count += 1
        self.execution_time_sec += duration_sec

    def merge_into(
        self,
        measurements: Dict[str, float],
        properties: Dict[str, str],
    ) -> None:
        """Add this run's counters to caller-owned telemetry maps."""
        if self.execution_time_sec:
            measurements[MEASUREMENT_EXECUTION_TIME_SEC] = (
                measurements.get(MEASUREMENT_EXECUTION_TIME_SEC, 0.0)
                + self.execution_time_sec
            )
        if self.attempt_count:
            measurements[MEASUREMENT_ATTEMPT_COUNT] = (
                measurements.get(MEASUREMENT_ATTEMPT_COUNT, 0) + self.attempt_count
            )
        if self.succeeded is not None:
            properties[PROPERTY_ATTEMPT_SUCCEEDED] = "true" if self.succeeded else "false"
