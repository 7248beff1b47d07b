"""
Token Budget
============
Keeps a fix request under the model's prompt token limit.

Messages are ordered by priority (most important first). While the request
is over budget the last message is dropped. The first message (the code to
fix) is never dropped; a request that is still over budget with only that
message left is sent as-is and the provider decides.

Token counting uses tiktoken with the OpenAI cookbook message overhead.
"""
import logging
from typing import Protocol

from code_corrector.core.config import get_token_limit

logger = logging.getLogger(__name__)


class TokenCounter(Protocol):
    def count_messages(self, messages: list[dict]) -> int: ...


class TiktokenCounter:
    """Token counter backed by tiktoken; falls back to o200k_base for unknown models."""

    def __init__(self, model_id: str = "gpt-3.5-turbo") -> None:
        import tiktoken

        try:
            self._enc = tiktoken.encoding_for_model(model_id)
        except KeyError:
            self._enc = tiktoken.get_encoding("o200k_base")

    def count_messages(self, messages: list[dict]) -> int:
        if not messages:
            return 0

        total = 0
        for message in messages:
            total += 3  # per-message overhead
            for key, value in message.items():
                if isinstance(value, str):
                    total += len(self._enc.encode(value))
                if key == "name":
                    total += 1
        total += 3  # response primer
        return total


def fit_to_budget(
    messages: list[dict],
    counter: TokenCounter,
    model_id: str,
) -> list[dict]:
    """
    Drop trailing messages until the request fits the model's budget.

    Parameters
    ----------
    messages : list[dict]
        Chat messages, most important first. Not modified.
    counter : TokenCounter
        Token counter for the target model.
    model_id : str
        Model id used to look up the budget.

    Returns
    -------
    list[dict]
        A prefix of messages that fits (at least the first message).
    """
    limit = get_token_limit(model_id)
    kept = list(messages)
    count = counter.count_messages(kept)
    while count > limit and len(kept) > 1:
        kept.pop()
        count = counter.count_messages(kept)
    logger.debug("Token count: %d / %d, messages kept: %d of %d", count, limit, len(kept), len(messages))
    return kept
