"""
LLM Router
==========
Orders the LLM providers that may answer one fix request.

Selection:
    - Providers come from LLM_PROVIDER_ORDER; a provider without an API key
      is left out unless no provider has a key at all
    - candidates() yields the healthy providers in preference order, at most
      LLM_PROVIDERS_PER_REQUEST of them
    - When every provider is cooling down, the first one is tried anyway

Cooldown:
    PROVIDER_COOLDOWN_THRESHOLD failures in a row put a provider on the bench
    for the next PROVIDER_COOLDOWN_SKIP_COUNT requests. It comes back one
    failure away from the bench again.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from code_corrector.core.config import (
    GEMINI_API_KEY,
    GROQ_API_KEY,
    LLM_PROVIDER_ORDER,
    LLM_PROVIDERS_PER_REQUEST,
    LLM_TEMPERATURE,
    OPENROUTER_API_KEY,
    PROVIDER_COOLDOWN_SKIP_COUNT,
    PROVIDER_COOLDOWN_THRESHOLD,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider Configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ProviderConfig:
    name: str
    api_key: str
    base_url: str
    model: str
    max_retries: int = 2
    timeout_seconds: int = 60
    temperature: float = LLM_TEMPERATURE
    max_output_tokens: int = 4096

    @property
    def is_gemini(self) -> bool:
        return self.name == "gemini"


_KNOWN_PROVIDERS: Dict[str, ProviderConfig] = {
    "groq": ProviderConfig(
        name="groq",
        api_key=GROQ_API_KEY or "",
        base_url="https://api.groq.com/openai/v1",
        model="llama-3.3-70b-versatile",
    ),
    "gemini": ProviderConfig(
        name="gemini",
        api_key=GEMINI_API_KEY or "",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        model="gemini-2.0-flash",
    ),
    "openrouter": ProviderConfig(
        name="openrouter",
        api_key=OPENROUTER_API_KEY or "",
        base_url="https://openrouter.ai/api/v1",
        model="qwen/qwen-2.5-coder-32b-instruct:free",
        max_retries=1,
    ),
}


def build_providers(order: Optional[List[str]] = None) -> List[ProviderConfig]:
    """Resolve provider names to configs, dropping unknown and keyless ones."""
    names = order if order is not None else LLM_PROVIDER_ORDER
    known = [_KNOWN_PROVIDERS[n] for n in names if n in _KNOWN_PROVIDERS]
    unknown = [n for n in names if n not in _KNOWN_PROVIDERS]
    if unknown:
        logger.warning("Ignoring unknown LLM providers: %s", ", ".join(unknown))

    keyed = [p for p in known if p.api_key]
    if not keyed:
        logger.warning("No LLM provider has an API key configured")
        return known
    return keyed


# ---------------------------------------------------------------------------
# Provider Health
# ---------------------------------------------------------------------------
@dataclass
class ProviderHealth:
    consecutive_failures: int = 0
    benched_for: int = 0
    threshold: int = PROVIDER_COOLDOWN_THRESHOLD

    @property
    def available(self) -> bool:
        return self.benched_for == 0

    def record_failure(self) -> None:
        self.consecutive_failures += 1
        if self.available and self.consecutive_failures >= self.threshold:
            self.benched_for = PROVIDER_COOLDOWN_SKIP_COUNT

    def record_success(self) -> None:
        self.consecutive_failures = 0

    def tick(self) -> None:
        if self.benched_for == 0:
            return
        self.benched_for -= 1
        if self.benched_for == 0:
            self.consecutive_failures = max(0, self.threshold - 1)


# ---------------------------------------------------------------------------
# LLM Router
# ---------------------------------------------------------------------------
class LLMRouter:
    """
    Usage:
        router = LLMRouter()
        for provider in router.candidates():
            ...call provider...
            router.report(provider.name, ok)
    """

    def __init__(
        self,
        providers: Optional[List[ProviderConfig]] = None,
        per_request: int = LLM_PROVIDERS_PER_REQUEST,
    ) -> None:
        self.providers = providers if providers is not None else build_providers()
        if not self.providers:
            raise ValueError("LLMRouter needs at least one provider")
        self.per_request = max(1, per_request)
        self._health: Dict[str, ProviderHealth] = {
            p.name: ProviderHealth() for p in self.providers
        }

    def candidates(self) -> Iterator[ProviderConfig]:
        """Providers to try for one request, best first."""
        for health in self._health.values():
            health.tick()

        available = [p for p in self.providers if self._health[p.name].available]
        if not available:
            logger.warning("All LLM providers cooling down, trying %s anyway", self.providers[0].name)
            available = [self.providers[0]]

        yield from available[: self.per_request]

    def report(self, provider_name: str, ok: bool) -> None:
        health = self._health[provider_name]
        if ok:
            health.record_success()
            return
        health.record_failure()
        if not health.available:
            logger.warning(
                "Provider %s benched for %d requests after %d failures",
                provider_name, health.benched_for, health.consecutive_failures,
            )

    def health(self, provider_name: str) -> ProviderHealth:
        return self._health[provider_name]
