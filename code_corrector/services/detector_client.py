"""
Detector Client
===============
HTTP adapter for an external code issue detection service.

Wire Contract:
    POST {base_url}/detect
        {"code": str, "host": str, "is_custom_function": bool, "context": {...}}
    200 OK
        {"compile_errors": [str, ...], "runtime_errors": [str, ...]}

Failure Contract:
    The correction loop cannot continue without a detection result, so
    transport and HTTP errors propagate as httpx.HTTPError. Cancellation of
    the awaiting task aborts the in-flight request.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from code_corrector.core.config import DETECTOR_URL, DETECTOR_TIMEOUT
from code_corrector.models.detection_result import DetectionResult

logger = logging.getLogger(__name__)


class HttpIssueDetector:
    """
    IssueDetector backed by a detection service.

    Usage:
        detector = HttpIssueDetector()
        result = await detector.detect(code, "Excel", False, {})
        await detector.close()
    """

    def __init__(
        self,
        base_url: str = DETECTOR_URL,
        timeout: float = DETECTOR_TIMEOUT,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def detect(
        self,
        code: str,
        host: str,
        is_custom_function: bool,
        context: Dict[str, Any],
    ) -> DetectionResult:
        http = await self._get_http()
        resp = await http.post(
            f"{self.base_url}/detect",
            json={
                "code": code,
                "host": host,
                "is_custom_function": is_custom_function,
                "context": context,
            },
        )
        resp.raise_for_status()
        data = resp.json()

        result = DetectionResult(
            compile_errors=tuple(data.get("compile_errors") or ()),
            runtime_errors=tuple(data.get("runtime_errors") or ()),
        )
        logger.debug(
            "Detected [C] %d, [R] %d",
            len(result.compile_errors), len(result.runtime_errors),
        )
        return result
