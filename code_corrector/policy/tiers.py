"""
Complexity Tier Policy
======================
Maps a declared task complexity score to the correction budget.

    score       max_retry_count   issue_tolerance
    < 25        2                 2
    25 – 49     2                 2
    50 – 74     3                 3
    >= 75       3                 3

Rounds beyond two or three degrade rather than improve the result, so the
budget stays small even for the most complex tasks. Scores outside [0, 100]
fall into the nearest bucket.
"""
from pydantic import BaseModel, ConfigDict


class TierParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_retry_count: int
    issue_tolerance: int


# (exclusive upper bound, parameters), checked in order
_TIERS: list[tuple[float, TierParameters]] = [
    (25, TierParameters(max_retry_count=2, issue_tolerance=2)),
    (50, TierParameters(max_retry_count=2, issue_tolerance=2)),
    (75, TierParameters(max_retry_count=3, issue_tolerance=3)),
]
_TOP_TIER = TierParameters(max_retry_count=3, issue_tolerance=3)


def tier_for(complexity_score: float) -> TierParameters:
    """
    Return the retry/tolerance parameters for a complexity score.

    Parameters
    ----------
    complexity_score : float
        Declared task complexity, nominally in [0, 100].

    Returns
    -------
    TierParameters
        Immutable budget for one correction run.
    """
    for upper, params in _TIERS:
        if complexity_score < upper:
            return params
    return _TOP_TIER
