"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GEMINI_API_KEY          — Primary LLM provider API key (Google Gemini)
    GROQ_API_KEY            — Fallback LLM provider API key (Groq)
    OPENROUTER_API_KEY      — Second fallback LLM provider (OpenRouter free models)
    LLM_PROVIDER_ORDER      — Comma-separated provider preference (default: groq,gemini,openrouter)
    LLM_PROVIDERS_PER_REQUEST — Providers tried for one fix request (default: 2)
    LLM_TEMPERATURE         — Sampling temperature for fix requests (default: 0.1)
    CORRECTOR_MODEL_ID      — Model id used for prompt token budgeting (default: gpt-3.5-turbo)
    DEFAULT_TOKEN_LIMIT     — Prompt budget for models missing from MODEL_TOKEN_LIMITS
    DETECTOR_URL            — Base URL of the code issue detection service
    DETECTOR_TIMEOUT        — Seconds to wait for one detection call (default: 60)
    CODE_FENCE_LANGUAGE     — Fence tag expected around oracle code (default: typescript)
    ENTRY_FUNCTION_NAME     — Entry function whose stray invocation is stripped (default: main)
    LOG_DIR                 — Directory for daily log files (default: logs)
    LOG_LEVEL               — Root log level name (default: INFO)
    LOG_TO_FILE             — Also write the daily log file (default: true)

Token Budget:
    MODEL_TOKEN_LIMITS caps the size of a single fix request. When the
    assembled messages exceed the budget, the lowest-priority trailing
    messages (host reference, declarations, samples) are dropped first.
"""
import os
from dotenv import load_dotenv

load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

# Oracle model + prompt budget
CORRECTOR_MODEL_ID = os.getenv("CORRECTOR_MODEL_ID", "gpt-3.5-turbo")
MODEL_TOKEN_LIMITS: dict[str, int] = {
    "gpt-3.5-turbo": int(os.getenv("TOKEN_LIMIT_GPT35", 3500)),
    "gpt-4": int(os.getenv("TOKEN_LIMIT_GPT4", 7000)),
}
DEFAULT_TOKEN_LIMIT = int(os.getenv("DEFAULT_TOKEN_LIMIT", 3500))

# Provider selection
LLM_PROVIDER_ORDER = [
    name.strip() for name in os.getenv("LLM_PROVIDER_ORDER", "groq,gemini,openrouter").split(",")
    if name.strip()
]
LLM_PROVIDERS_PER_REQUEST = int(os.getenv("LLM_PROVIDERS_PER_REQUEST", 2))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.1))

# Provider health cooldown
PROVIDER_COOLDOWN_THRESHOLD = int(os.getenv("PROVIDER_COOLDOWN_THRESHOLD", 4))
PROVIDER_COOLDOWN_SKIP_COUNT = int(os.getenv("PROVIDER_COOLDOWN_SKIP_COUNT", 5))

# Detector service
DETECTOR_URL = os.getenv("DETECTOR_URL", "http://127.0.0.1:8100")
DETECTOR_TIMEOUT = float(os.getenv("DETECTOR_TIMEOUT", 60))

# Oracle output conventions
CODE_FENCE_LANGUAGE = os.getenv("CODE_FENCE_LANGUAGE", "typescript")
ENTRY_FUNCTION_NAME = os.getenv("ENTRY_FUNCTION_NAME", "main")

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes")


def get_token_limit(model_id: str) -> int:
    """Return the prompt token budget for a model id."""
    return MODEL_TOKEN_LIMITS.get(model_id, DEFAULT_TOKEN_LIMIT)
