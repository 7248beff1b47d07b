"""
LLM Prompts
===========
Centralised store for the fix oracle's system and user prompts.

Prompt Design Rules:
    - Fix the listed compile errors first, runtime errors second
    - Keep the task breakdown intact — the code must still do every substep
    - Never repeat a fix for an error that was already attempted
    - Return the COMPLETE snippet in one fenced code block, no explanations

Message Priority:
    The fix oracle assembles messages in this order and drops them from the
    end when over budget, so later builders here are lower priority:
        1. build_fix_user_prompt        (code, hint, history)
        2. build_fix_system_prompt      (host, substeps, errors)
        3. build_code_sample_prompt     (example code)
        4. build_declarations_prompt    (API declarations)
        5. get_host_reference_prompt    (host-specific API guidance)
"""
import logging
from typing import List, Sequence

from code_corrector.core.config import CODE_FENCE_LANGUAGE
from code_corrector.core.constants import HOST_EXCEL
from code_corrector.models.correction_request import ApiDeclaration

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Host reference prompts
# ---------------------------------------------------------------------------
EXCEL_REFERENCE_PROMPT = (
    "EXCEL JAVASCRIPT API REFERENCE:\n"
    "- All workbook access happens inside `await Excel.run(async (context) => { ... })`.\n"
    "- Queue reads with `.load(\"propertyName\")` and call `await context.sync()` "
    "before reading loaded values.\n"
    "- Use `context.workbook.worksheets.getActiveWorksheet()` for the active sheet "
    "and `sheet.getRange(\"A1:B2\")` for ranges.\n"
    "- Range values are two-dimensional arrays: `range.values = [[1, 2]]`.\n"
    "- Do not use `ActiveXObject`, VBA syntax or Node.js modules."
)

CUSTOM_FUNCTION_REFERENCE_PROMPT = (
    "EXCEL CUSTOM FUNCTIONS REFERENCE:\n"
    "- Each custom function is a plain exported function with a JSDoc block "
    "containing `@customfunction`.\n"
    "- Document every parameter with `@param` and the result with `@returns`.\n"
    "- Custom functions cannot call `Excel.run`; they receive arguments and return values.\n"
    "- Streaming functions take a `CustomFunctions.StreamingInvocation` as the last parameter.\n"
    "- Return `Promise` for asynchronous results; throw `CustomFunctions.Error` for errors."
)


def get_host_reference_prompt(host: str, is_custom_function: bool) -> str:
    """
    Return host-specific API guidance, or "" for hosts without one.

    Parameters
    ----------
    host : str
        Host platform identifier.
    is_custom_function : bool
        Excel custom-function generation mode.
    """
    if host == HOST_EXCEL:
        return CUSTOM_FUNCTION_REFERENCE_PROMPT if is_custom_function else EXCEL_REFERENCE_PROMPT
    return ""


# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------
def build_fix_system_prompt(
    host: str,
    substeps: Sequence[str],
    compile_errors: Sequence[str],
    runtime_errors: Sequence[str],
) -> str:
    """
    Build the system prompt describing the task and the defects to fix.

    Parameters
    ----------
    host : str
        Host platform identifier (Excel, Word, PowerPoint, ...).
    substeps : sequence of str
        Ordered task breakdown the code implements.
    compile_errors : sequence of str
        Current compile errors (must all be fixed).
    runtime_errors : sequence of str
        Current runtime errors (fix where possible).

    Returns
    -------
    str
        Complete system prompt.
    """
    parts: list[str] = [
        f"You are an expert in Office JavaScript add-ins for {host}, fluent in "
        f"{CODE_FENCE_LANGUAGE}. You fix defects in generated code snippets.",
    ]

    if substeps:
        steps = "\n".join(f"{i}. {step}" for i, step in enumerate(substeps, start=1))
        parts.append(f"THE CODE IMPLEMENTS THESE STEPS:\n{steps}")

    if compile_errors:
        listed = "\n".join(f"- {e}" for e in compile_errors)
        parts.append(f"COMPILE ERRORS (fix ALL of them):\n{listed}")

    if runtime_errors:
        listed = "\n".join(f"- {e}" for e in runtime_errors)
        parts.append(f"RUNTIME ERRORS (fix where possible):\n{listed}")

    parts.append(
        "HARD RULES:\n"
        "1. Keep every step above implemented. Do NOT drop functionality.\n"
        "2. Change only what is needed to remove the errors.\n"
        "3. Do NOT add a call to the entry function at the end of the snippet.\n"
        f"4. Return the COMPLETE snippet in ONE ```{CODE_FENCE_LANGUAGE} code block.\n"
        "5. No explanations before or after the code block."
    )
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# User prompt
# ---------------------------------------------------------------------------
def build_fix_user_prompt(
    code: str,
    additional_info: str = "",
    historical_errors: Sequence[str] = (),
) -> str:
    """
    Build the user prompt carrying the code and the correction memory.

    Parameters
    ----------
    code : str
        Current code snippet.
    additional_info : str
        Corrective hint from the previous round (may be empty).
    historical_errors : sequence of str
        Normalised errors already attempted in earlier rounds.
    """
    parts: list[str] = [
        f"Fix the errors in this code snippet:\n```{CODE_FENCE_LANGUAGE}\n{code}\n```",
    ]

    if historical_errors:
        listed = "\n".join(f"- {e}" for e in historical_errors)
        parts.append(
            "THESE ERRORS WERE ALREADY ADDRESSED IN EARLIER ATTEMPTS:\n"
            f"{listed}\n"
            "Do NOT reintroduce them and do NOT repeat the same fix."
        )

    if additional_info:
        parts.append(f"NOTE ABOUT THE PREVIOUS ATTEMPT:\n{additional_info}")

    parts.append(
        f"Respond with the complete fixed snippet in a single ```{CODE_FENCE_LANGUAGE} block."
    )
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Reference material prompts
# ---------------------------------------------------------------------------
def build_declarations_prompt(declarations: List[ApiDeclaration]) -> str:
    """Return the API declaration reference prompt, or "" when there are none."""
    if not declarations:
        return ""

    blocks: list[str] = []
    for decl in declarations:
        logger.debug("Declaration matched: %s", decl.description)
        blocks.append(
            f"- [Description] {decl.description}:\n"
            f"```{CODE_FENCE_LANGUAGE}\n{decl.code_sample}\n```"
        )
    return (
        "API DECLARATIONS you may rely on. Use only members declared here or in "
        "the standard library:\n\n" + "\n\n".join(blocks)
    )


def build_code_sample_prompt(code_sample: str) -> str:
    """Return the code sample reference prompt, or "" when there is no sample."""
    if not code_sample or not code_sample.strip():
        return ""
    return (
        "EXAMPLE CODE solving a similar task. Follow its API usage patterns:\n"
        f"```{CODE_FENCE_LANGUAGE}\n{code_sample}\n```"
    )
