"""
Fix Oracle Unit Tests
=====================
All tests mock the LLM — no real API calls.

Covers:
    - No-compile-error shortcut (no LLM call)
    - Message order and optional reference messages
    - Token budget trimming (off the event loop)
    - Code block extraction from the response
    - Unusable output (no block, truncated block, provider failure)
    - Prompt content (errors, history, hint)
"""
import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

from code_corrector.agents.fix_oracle import FixOracle
from code_corrector.llm.client import LLMClient, LLMResponse
from code_corrector.llm.prompts import (
    CUSTOM_FUNCTION_REFERENCE_PROMPT,
    EXCEL_REFERENCE_PROMPT,
)
from code_corrector.llm.token_budget import fit_to_budget
from code_corrector.models.correction_request import ApiDeclaration
from code_corrector.models.fix_request import FixRequest


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
SAMPLE_CODE = """\
async function main() {
  await Excel.run(async (context) => {
    const sheet = context.workbook.worksheets.getActiveWorksheet();
    const range = sheet.getRange("A1:B2");
    range.load("values");
    await context.sync();
    console.log(range.value);
  });
}"""

SAMPLE_FIXED = SAMPLE_CODE.replace("range.value)", "range.values)")


class FlatTokenCounter:
    """Counts a fixed number of tokens per message."""

    def __init__(self, per_message: int = 1) -> None:
        self.per_message = per_message

    def count_messages(self, messages):
        return self.per_message * len(messages)


def _make_request(**overrides) -> FixRequest:
    fields = dict(
        code=SAMPLE_CODE,
        host="Excel",
        substeps=["Read A1:B2", "Log the values"],
        compile_errors=["at Char 200-210: Property 'value' does not exist on type 'Range'."],
        runtime_errors=[],
    )
    fields.update(overrides)
    return FixRequest(**fields)


def _mock_client(text: str = "", success: bool = True) -> MagicMock:
    client = MagicMock(spec=LLMClient)
    client.call_with_fallback = AsyncMock(return_value=LLMResponse(
        text=text, provider_name="groq", success=success,
        error="" if success else "All providers failed",
    ))
    return client


def _fenced(code: str) -> str:
    return f"Here is the fix:\n```typescript\n{code}\n```\n"


def _oracle(client, per_message: int = 1) -> FixOracle:
    return FixOracle(client=client, token_counter=FlatTokenCounter(per_message))


# ---------------------------------------------------------------------------
# 1. No compile errors → input returned, no LLM call
# ---------------------------------------------------------------------------
def test_no_compile_errors_returns_input_unchanged():
    client = _mock_client(_fenced(SAMPLE_FIXED))
    oracle = _oracle(client)

    result = asyncio.run(oracle.request_fix(_make_request(
        compile_errors=[], runtime_errors=["TypeError: x is undefined"],
    )))

    assert result == SAMPLE_CODE
    client.call_with_fallback.assert_not_called()


# ---------------------------------------------------------------------------
# 2. Successful extraction
# ---------------------------------------------------------------------------
def test_returns_extracted_code_block():
    client = _mock_client(_fenced(SAMPLE_FIXED))
    oracle = _oracle(client)

    result = asyncio.run(oracle.request_fix(_make_request()))

    assert result == SAMPLE_FIXED
    client.call_with_fallback.assert_awaited_once()


# ---------------------------------------------------------------------------
# 3. Unusable outputs
# ---------------------------------------------------------------------------
def test_response_without_code_block_is_unusable():
    oracle = _oracle(_mock_client("Sorry, I can't fix this."))
    assert asyncio.run(oracle.request_fix(_make_request())) is None


def test_truncated_candidate_is_unusable():
    truncated = SAMPLE_CODE[: len(SAMPLE_CODE) // 3]
    oracle = _oracle(_mock_client(_fenced(truncated)))
    assert asyncio.run(oracle.request_fix(_make_request())) is None


def test_provider_failure_is_unusable():
    oracle = _oracle(_mock_client(success=False))
    assert asyncio.run(oracle.request_fix(_make_request())) is None


def test_cancellation_propagates():
    client = MagicMock(spec=LLMClient)
    client.call_with_fallback = AsyncMock(side_effect=asyncio.CancelledError())
    oracle = _oracle(client)

    async def run_test():
        try:
            await oracle.request_fix(_make_request())
        except asyncio.CancelledError:
            return "cancelled"
        return "finished"

    assert asyncio.run(run_test()) == "cancelled"


# ---------------------------------------------------------------------------
# 4. Message assembly
# ---------------------------------------------------------------------------
class TestMessageAssembly:

    def test_minimal_request_has_user_system_and_host_reference(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request())

        assert [m["role"] for m in messages] == ["user", "system", "system"]
        assert SAMPLE_CODE in messages[0]["content"]
        assert "Property 'value' does not exist" in messages[1]["content"]
        assert messages[2]["content"] == EXCEL_REFERENCE_PROMPT

    def test_full_request_order(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request(
            code_sample="const sample = 1;",
            api_declarations=[ApiDeclaration(
                description="Range.values", code_sample="values: any[][];",
            )],
        ))

        assert len(messages) == 5
        assert "const sample = 1;" in messages[2]["content"]
        assert "[Description] Range.values" in messages[3]["content"]
        assert messages[4]["content"] == EXCEL_REFERENCE_PROMPT

    def test_custom_function_reference(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request(is_custom_function=True))
        assert messages[-1]["content"] == CUSTOM_FUNCTION_REFERENCE_PROMPT

    def test_non_excel_host_has_no_reference(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request(host="Word"))
        assert len(messages) == 2

    def test_history_and_hint_in_user_prompt(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request(
            historical_errors=["Cannot find name 'sheet'."],
            additional_info="The previous fix introduced more compile errors.",
        ))
        user_prompt = messages[0]["content"]
        assert "Cannot find name 'sheet'." in user_prompt
        assert "The previous fix introduced more compile errors." in user_prompt

    def test_substeps_and_runtime_errors_in_system_prompt(self):
        oracle = _oracle(_mock_client())
        messages = oracle.build_messages(_make_request(
            runtime_errors=["RichApi.Error: The argument is invalid."],
        ))
        system_prompt = messages[1]["content"]
        assert "1. Read A1:B2" in system_prompt
        assert "2. Log the values" in system_prompt
        assert "RichApi.Error: The argument is invalid." in system_prompt


# ---------------------------------------------------------------------------
# 5. Token budget
# ---------------------------------------------------------------------------
class TestTokenBudget:

    def test_drops_trailing_messages_until_within_budget(self):
        messages = [{"role": "user", "content": str(i)} for i in range(5)]
        with patch("code_corrector.llm.token_budget.get_token_limit", return_value=3000):
            kept = fit_to_budget(messages, FlatTokenCounter(1000), "gpt-3.5-turbo")
        assert [m["content"] for m in kept] == ["0", "1", "2"]
        assert len(messages) == 5

    def test_first_message_is_never_dropped(self):
        messages = [{"role": "user", "content": "a"}, {"role": "system", "content": "b"}]
        with patch("code_corrector.llm.token_budget.get_token_limit", return_value=10):
            kept = fit_to_budget(messages, FlatTokenCounter(1000), "gpt-3.5-turbo")
        assert kept == [messages[0]]

    def test_oracle_sends_trimmed_messages(self):
        client = _mock_client(_fenced(SAMPLE_FIXED))
        oracle = _oracle(client, per_message=1000)

        with patch("code_corrector.llm.token_budget.get_token_limit", return_value=2000):
            asyncio.run(oracle.request_fix(_make_request(code_sample="const s = 1;")))

        sent = client.call_with_fallback.call_args.kwargs["messages"]
        assert [m["role"] for m in sent] == ["user", "system"]


# ---------------------------------------------------------------------------
# 6. Event loop stays responsive
# ---------------------------------------------------------------------------
class SlowStartTokenCounter(FlatTokenCounter):
    """Blocks on construction, like a first-use encoding download."""

    def __init__(self, model_id: str) -> None:
        time.sleep(0.6)
        super().__init__(per_message=1)


def test_counter_build_does_not_block_event_loop():
    client = _mock_client(_fenced(SAMPLE_FIXED))
    oracle = FixOracle(client=client)

    async def run_test():
        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.perf_counter()
            while not done.is_set():
                await asyncio.sleep(0.02)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        ticking = asyncio.create_task(ticker())
        await asyncio.sleep(0)
        result = await oracle.request_fix(_make_request())
        done.set()
        await ticking
        return result, max(gaps)

    with patch("code_corrector.agents.fix_oracle.TiktokenCounter", SlowStartTokenCounter):
        result, max_gap = asyncio.run(run_test())

    assert result == SAMPLE_FIXED
    assert max_gap < 0.3


def test_counter_built_once_per_model():
    built = []

    class RecordingCounter(FlatTokenCounter):
        def __init__(self, model_id: str) -> None:
            built.append(model_id)
            super().__init__(per_message=1)

    client = _mock_client(_fenced(SAMPLE_FIXED))
    oracle = FixOracle(client=client)

    with patch("code_corrector.agents.fix_oracle.TiktokenCounter", RecordingCounter):
        asyncio.run(oracle.request_fix(_make_request()))
        asyncio.run(oracle.request_fix(_make_request()))

    assert built == ["gpt-3.5-turbo"]
