"""Collaborator protocols for the correction loop.

The corrector depends only on these shapes, so any detector or oracle
implementation (including test fakes) can be injected.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union, runtime_checkable

from code_corrector.models.detection_result import DetectionResult
from code_corrector.models.fix_request import FixRequest


@runtime_checkable
class IssueDetector(Protocol):
    """Scores a code string for compile-time and run-time defects."""

    async def detect(
        self,
        code: str,
        host: str,
        is_custom_function: bool,
        context: Dict[str, Any],
    ) -> DetectionResult: ...


@runtime_checkable
class FixRequestOracle(Protocol):
    """Proposes a revised code string, or None when it has no usable output."""

    async def request_fix(self, request: FixRequest) -> Optional[str]: ...


ProgressCallback = Callable[[str], Union[None, Awaitable[None]]]
