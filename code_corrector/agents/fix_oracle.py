"""
Fix Oracle
==========
Asks an LLM for one revised version of a code snippet.

Core Philosophy:
    - One request per correction round, no caching across rounds
    - The oracle only proposes code; it never runs the detector
    - Anything that is not a complete, fenced code block is unusable

Request Assembly (order matters, see prompts.py):
    1. User prompt      — code, corrective hint, historical errors
    2. System prompt    — host, substeps, compile and runtime errors
    3. Code sample      — if the request carries one
    4. Declarations     — if the request carries any
    5. Host reference   — Excel / Excel custom functions only
    Trailing messages are dropped while the request exceeds the token budget.

Unusable Output (returns None):
    - LLM call failed on every provider
    - No ```typescript fenced block in the response
    - Extracted code is less than half the length of the input (truncated
      or refused response), rejected before any re-detection

The FixOracle does NOT:
    - Detect issues (that's the detector's job)
    - Decide acceptance (that's the corrector's job)
"""
import asyncio
import logging
import threading
from typing import Optional

from code_corrector.core.config import CODE_FENCE_LANGUAGE
from code_corrector.llm.client import LLMClient, LLMResponse, system_message, user_message
from code_corrector.llm.router import LLMRouter
from code_corrector.llm.prompts import (
    build_code_sample_prompt,
    build_declarations_prompt,
    build_fix_system_prompt,
    build_fix_user_prompt,
    get_host_reference_prompt,
)
from code_corrector.llm.token_budget import TiktokenCounter, TokenCounter, fit_to_budget
from code_corrector.models.fix_request import FixRequest
from code_corrector.utils.code_extraction import extract_code_block, is_truncated

logger = logging.getLogger(__name__)


class FixOracle:
    """
    LLM-backed implementation of the FixRequestOracle protocol.

    Parameters
    ----------
    router : LLMRouter or None
        Provider router (auto-created if not provided).
    client : LLMClient or None
        HTTP client (auto-created if not provided).
    token_counter : TokenCounter or None
        Counter used for the prompt budget (tiktoken, created lazily per model).
    fence_language : str
        Language tag expected on the response code block.
    """

    def __init__(
        self,
        router: Optional[LLMRouter] = None,
        client: Optional[LLMClient] = None,
        token_counter: Optional[TokenCounter] = None,
        fence_language: str = CODE_FENCE_LANGUAGE,
    ) -> None:
        self.router = router or LLMRouter()
        self.client = client or LLMClient()
        self.fence_language = fence_language
        self._token_counter = token_counter
        self._counters: dict[str, TokenCounter] = {}
        self._counters_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def request_fix(self, request: FixRequest) -> Optional[str]:
        """
        Request one revised code snippet.

        Steps:
            1. No compile errors → return the input code unchanged (no LLM call)
            2. Assemble prompt messages in priority order
            3. Trim messages to the token budget (in a worker thread)
            4. Call LLM with provider fallback
            5. Extract the fenced code block
            6. Reject candidates shorter than half the input

        Parameters
        ----------
        request : FixRequest
            Code, errors, history, hint and reference material.

        Returns
        -------
        str or None
            The candidate code, or None when the response is unusable.
        """
        if not request.compile_errors:
            return request.code

        # Building a tiktoken encoding may download its BPE file; keep it off the loop
        messages = await asyncio.to_thread(
            self._fit_messages, self.build_messages(request), request.model_id,
        )

        llm_response: LLMResponse = await self.client.call_with_fallback(
            messages=messages,
            router=self.router,
        )
        if not llm_response.success:
            logger.warning("Fix request failed: %s", llm_response.error)
            return None

        candidate = extract_code_block(llm_response.text, self.fence_language)
        if candidate is None:
            logger.error(
                "Failed to extract the code snippet from the %s response: %.200s",
                llm_response.provider_name, llm_response.text,
            )
            return None

        if is_truncated(request.code, candidate):
            logger.debug(
                "Code length reduced too much (%d -> %d chars)",
                len(request.code), len(candidate),
            )
            return None

        return candidate

    def build_messages(self, request: FixRequest) -> list[dict]:
        """Assemble the prompt messages, most important first."""
        messages = [
            user_message(build_fix_user_prompt(
                code=request.code,
                additional_info=request.additional_info,
                historical_errors=request.historical_errors,
            )),
            system_message(build_fix_system_prompt(
                host=request.host,
                substeps=request.substeps,
                compile_errors=request.compile_errors,
                runtime_errors=request.runtime_errors,
            )),
        ]

        optional_prompts = [
            build_code_sample_prompt(request.code_sample),
            build_declarations_prompt(request.api_declarations),
            get_host_reference_prompt(request.host, request.is_custom_function),
        ]
        messages.extend(system_message(p) for p in optional_prompts if p)
        return messages

    async def close(self) -> None:
        if self.client:
            await self.client.close()

    # -------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------
    def _fit_messages(self, messages: list[dict], model_id: str) -> list[dict]:
        return fit_to_budget(messages, self._counter_for(model_id), model_id)

    def _counter_for(self, model_id: str) -> TokenCounter:
        if self._token_counter is not None:
            return self._token_counter
        with self._counters_lock:
            if model_id not in self._counters:
                self._counters[model_id] = TiktokenCounter(model_id)
            return self._counters[model_id]
