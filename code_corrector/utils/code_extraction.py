"""
Code Block Extraction
=====================
Pulls the code out of an oracle response.

The oracle is told to answer with a single fenced block tagged with the
expected language (```typescript ... ```). The first such block wins; text
outside it is ignored. A response without one has no usable code.
"""
import re
from functools import lru_cache
from typing import Optional

from code_corrector.core.config import CODE_FENCE_LANGUAGE


@lru_cache(maxsize=8)
def _fence_pattern(language: str) -> re.Pattern:
    return re.compile(rf"```\s*{re.escape(language)}([\s\S]*?)```", re.MULTILINE)


def extract_code_block(response: str, language: str = CODE_FENCE_LANGUAGE) -> Optional[str]:
    """Return the trimmed body of the first fenced block for language, or None."""
    if not response:
        return None
    match = _fence_pattern(language).search(response)
    if not match:
        return None
    return match.group(1).strip()


def is_truncated(original: str, candidate: str) -> bool:
    """True when the candidate is less than half the original's length."""
    return len(original) - len(candidate) > len(candidate)
