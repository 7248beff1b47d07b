"""
Output Sanitizer
================
Removes a stray top-level call to the entry function that the oracle tends
to append even when it was not asked to, e.g.

    main();
    await main();
    main().then(() => console.log("done"));

Only the first match is removed. Code without a match is returned unchanged.
"""
import re
from functools import lru_cache

from code_corrector.core.config import ENTRY_FUNCTION_NAME


@lru_cache(maxsize=8)
def _invocation_pattern(entry_name: str) -> re.Pattern:
    return re.compile(rf"(await\s)?\b{re.escape(entry_name)}\(\)(\..+)?;", re.MULTILINE)


def strip_entry_invocation(code: str, entry_name: str = ENTRY_FUNCTION_NAME) -> str:
    return _invocation_pattern(entry_name).sub("", code, count=1)
