"""
LLM Client
==========
Async chat calls to Gemini (REST) and OpenAI-compatible providers (Groq, OpenRouter).

Messages:
    Ordered chat messages, [{"role": ..., "content": ...}]. OpenAI-compatible
    endpoints receive them unchanged. Gemini gets the system messages folded
    into system_instruction and the rest as user contents, order preserved.

Retries & Fallback:
    - Each provider is retried up to ProviderConfig.max_retries times
    - Empty text, timeouts and HTTP errors count as a failed attempt
    - HTTP 429 ends that provider's attempts at once
    - call_with_fallback() walks LLMRouter.candidates() and reports every
      outcome back to the router

Failures come back as LLMResponse(success=False); httpx errors never escape.
Task cancellation always propagates.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

from code_corrector.llm.router import LLMRouter, ProviderConfig

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@dataclass
class LLMResponse:
    text: str
    provider_name: str
    success: bool = True
    error: str = ""


def system_message(content: str) -> Message:
    return {"role": "system", "content": content}


def user_message(content: str) -> Message:
    return {"role": "user", "content": content}


# ---------------------------------------------------------------------------
# Wire formats
# ---------------------------------------------------------------------------
def _gemini_request(messages: List[Message], provider: ProviderConfig) -> Tuple[str, dict, dict]:
    url = f"{provider.base_url}/models/{provider.model}:generateContent?key={provider.api_key}"
    payload: Dict[str, Any] = {
        "contents": [
            {"role": "user", "parts": [{"text": m["content"]}]}
            for m in messages if m["role"] != "system"
        ],
        "generationConfig": {
            "temperature": provider.temperature,
            "maxOutputTokens": provider.max_output_tokens,
        },
    }
    system_parts = [{"text": m["content"]} for m in messages if m["role"] == "system"]
    if system_parts:
        payload["system_instruction"] = {"parts": system_parts}
    return url, payload, {}


def _openai_request(messages: List[Message], provider: ProviderConfig) -> Tuple[str, dict, dict]:
    url = f"{provider.base_url}/chat/completions"
    payload = {
        "model": provider.model,
        "messages": messages,
        "temperature": provider.temperature,
        "max_tokens": provider.max_output_tokens,
    }
    return url, payload, {"Authorization": f"Bearer {provider.api_key}"}


def _gemini_text(data: dict) -> str:
    candidates = data.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


def _openai_text(data: dict) -> str:
    choices = data.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""


# ---------------------------------------------------------------------------
# LLM Client
# ---------------------------------------------------------------------------
class LLMClient:
    """
    Usage:
        client = LLMClient()
        response = await client.call_with_fallback(messages, router)
        await client.close()
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None) -> None:
        self._http = http

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(60.0))
        return self._http

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    async def call(self, messages: List[Message], provider: ProviderConfig) -> LLMResponse:
        """
        Send messages to one provider.

        Parameters
        ----------
        messages : list[dict]
            Ordered chat messages.
        provider : ProviderConfig
            Target provider.

        Returns
        -------
        LLMResponse
            The text, or success=False once the provider's attempts are used up.
        """
        for attempt in range(1, provider.max_retries + 1):
            try:
                text = await self._post(messages, provider)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning("%s attempt %d: HTTP %d", provider.name, attempt, status)
                if status == 429:
                    break
                continue
            except httpx.TimeoutException:
                logger.warning("%s attempt %d: timeout", provider.name, attempt)
                continue
            except httpx.HTTPError as e:
                logger.warning("%s attempt %d: %s", provider.name, attempt, e)
                continue

            if text.strip():
                return LLMResponse(text=text, provider_name=provider.name)
            logger.warning("%s attempt %d: empty response", provider.name, attempt)

        return LLMResponse(
            text="",
            provider_name=provider.name,
            success=False,
            error=f"{provider.name} gave no usable response",
        )

    async def call_with_fallback(self, messages: List[Message], router: LLMRouter) -> LLMResponse:
        """Try the router's candidates in order; the first answer wins."""
        tried = []
        for provider in router.candidates():
            tried.append(provider.name)
            response = await self.call(messages, provider)
            router.report(provider.name, response.success)
            if response.success:
                return response
            logger.info("Provider %s failed, trying next candidate", provider.name)

        return LLMResponse(
            text="",
            provider_name=tried[0] if tried else "",
            success=False,
            error="All providers failed",
        )

    async def _post(self, messages: List[Message], provider: ProviderConfig) -> str:
        build, parse = (
            (_gemini_request, _gemini_text) if provider.is_gemini
            else (_openai_request, _openai_text)
        )
        url, payload, headers = build(messages, provider)

        http = await self._get_http()
        resp = await http.post(url, json=payload, headers=headers, timeout=provider.timeout_seconds)
        resp.raise_for_status()
        try:
            return parse(resp.json())
        except (ValueError, AttributeError, TypeError):
            logger.warning("%s returned an unexpected body", provider.name)
            return ""
