"""
Correction Heuristics Tests
===========================
Pure decision functions — no detector, no LLM.

Covers:
    - Complexity tier mapping and clamping
    - Error normalisation
    - Fail-fast gates (tolerance, per-round budget)
    - Degenerate result heuristic (shrinkage, compile-error regression)
    - Convergence criterion (fixed point, last-round leniency)
"""
import pytest

from code_corrector.core.constants import (
    HINT_MORE_COMPILE_ERRORS,
    HINT_RETURN_COMPLETE_SNIPPET,
)
from code_corrector.models.detection_result import DetectionResult
from code_corrector.policy.heuristics import (
    accept_candidate,
    exceeds_round_budget,
    exceeds_tolerance,
    judge_degenerate,
    normalize_error,
    should_skip_baseline,
)
from code_corrector.policy.tiers import TierParameters, tier_for


def _result(compile_errors=(), runtime_errors=()):
    return DetectionResult(
        compile_errors=tuple(compile_errors),
        runtime_errors=tuple(runtime_errors),
    )


# ---------------------------------------------------------------------------
# 1. Complexity tiers
# ---------------------------------------------------------------------------
class TestTierPolicy:

    @pytest.mark.parametrize("score,expected", [
        (0, (2, 2)),
        (24.9, (2, 2)),
        (25, (2, 2)),
        (49, (2, 2)),
        (50, (3, 3)),
        (74, (3, 3)),
        (75, (3, 3)),
        (100, (3, 3)),
    ])
    def test_bucket_boundaries(self, score, expected):
        tier = tier_for(score)
        assert (tier.max_retry_count, tier.issue_tolerance) == expected

    def test_out_of_range_scores_clamp(self):
        assert tier_for(-10) == TierParameters(max_retry_count=2, issue_tolerance=2)
        assert tier_for(250) == TierParameters(max_retry_count=3, issue_tolerance=3)

    def test_parameters_are_immutable(self):
        tier = tier_for(10)
        with pytest.raises(Exception):
            tier.max_retry_count = 10


# ---------------------------------------------------------------------------
# 2. Error normalisation
# ---------------------------------------------------------------------------
class TestNormalizeError:

    def test_strips_char_range_annotation(self):
        raw = "at Char 12-30: Property 'foo' does not exist on type 'Range'."
        assert normalize_error(raw) == " Property 'foo' does not exist on type 'Range'."

    def test_strips_every_char_range(self):
        raw = "at Char 1-2: a at Char 3-4: b"
        assert normalize_error(raw) == " a  b"

    def test_strips_fix_suggestion_suffix(self):
        raw = "Cannot find name 'sheet'.\nFix suggestion: declare sheet first."
        assert normalize_error(raw) == "Cannot find name 'sheet'."

    def test_strips_both(self):
        raw = "at Char 5-9: Cannot find name 'x'.\nFix suggestion: use let."
        assert normalize_error(raw) == " Cannot find name 'x'."

    def test_plain_message_unchanged(self):
        assert normalize_error("Unexpected token.") == "Unexpected token."


# ---------------------------------------------------------------------------
# 3. Fail-fast gates
# ---------------------------------------------------------------------------
class TestFailFastGates:

    def test_clean_baseline_is_skipped(self):
        assert should_skip_baseline(_result()) is True

    def test_runtime_errors_alone_are_not_skipped(self):
        assert should_skip_baseline(_result(runtime_errors=["boom"])) is False

    def test_tolerance_is_exclusive(self):
        assert exceeds_tolerance(_result(["a", "b"]), issue_tolerance=2) is False
        assert exceeds_tolerance(_result(["a", "b", "c"]), issue_tolerance=2) is True

    def test_round_budget(self):
        two_errors = _result(["a", "b"])
        # 3 rounds, index 0 → 3 rounds left
        assert exceeds_round_budget(two_errors, index=0, max_retry_count=3) is False
        # index 1 → 2 rounds left
        assert exceeds_round_budget(two_errors, index=1, max_retry_count=3) is False
        # index 2 → 1 round left
        assert exceeds_round_budget(two_errors, index=2, max_retry_count=3) is True


# ---------------------------------------------------------------------------
# 4. Degenerate result heuristic
# ---------------------------------------------------------------------------
class TestDegenerateHeuristic:

    def test_catastrophic_shrink_terminates(self):
        baseline_code = "x" * 100
        candidate_code = "y" * 40  # shrank by 60 >= 40
        judgement = judge_degenerate(
            baseline_code, _result(["e1"]), candidate_code, _result(),
        )
        assert judgement.terminate is True
        assert judgement.suggestion == HINT_RETURN_COMPLETE_SNIPPET

    def test_shrink_equal_to_candidate_length_terminates(self):
        judgement = judge_degenerate("x" * 100, _result(["e"]), "y" * 50, _result())
        assert judgement.terminate is True

    def test_moderate_shrink_is_kept(self):
        judgement = judge_degenerate("x" * 100, _result(["e"]), "y" * 60, _result())
        assert judgement.terminate is False
        assert judgement.suggestion == ""

    def test_growth_is_kept(self):
        judgement = judge_degenerate("x" * 10, _result(["e"]), "y" * 200, _result())
        assert judgement.terminate is False

    def test_more_compile_errors_terminates(self):
        judgement = judge_degenerate(
            "x" * 100, _result(["e1"]), "y" * 100, _result(["e1", "e2"]),
        )
        assert judgement.terminate is True
        assert judgement.suggestion == HINT_MORE_COMPILE_ERRORS

    def test_shrink_rule_wins_over_regression_rule(self):
        judgement = judge_degenerate(
            "x" * 100, _result(["e1"]), "y" * 10, _result(["e1", "e2"]),
        )
        assert judgement.suggestion == HINT_RETURN_COMPLETE_SNIPPET

    def test_same_compile_error_count_is_kept(self):
        judgement = judge_degenerate(
            "x" * 100, _result(["e1"]), "y" * 100, _result(["other"]),
        )
        assert judgement.terminate is False


# ---------------------------------------------------------------------------
# 5. Convergence criterion
# ---------------------------------------------------------------------------
class TestConvergence:

    def test_fixed_point_accepted_in_any_round(self):
        baseline = _result(runtime_errors=["r1"])
        candidate = _result(runtime_errors=["r1"])
        assert accept_candidate(0, 3, candidate, baseline) is True

    def test_different_runtime_errors_rejected_before_last_round(self):
        baseline = _result(["c1"], ["r1"])
        candidate = _result(runtime_errors=["r2"])
        assert accept_candidate(0, 3, candidate, baseline) is False

    def test_last_round_leniency(self):
        baseline = _result(["c1"], ["r1"])
        candidate = _result(runtime_errors=["r2"])
        assert accept_candidate(2, 3, candidate, baseline) is True

    def test_compile_errors_never_accepted(self):
        baseline = _result(["c1"])
        candidate = _result(["c1"])
        assert accept_candidate(2, 3, candidate, baseline) is False

    def test_same_as_is_order_sensitive(self):
        a = _result(runtime_errors=["r1", "r2"])
        b = _result(runtime_errors=["r2", "r1"])
        assert a.same_as(b) is False
        assert a.same_as(_result(runtime_errors=["r1", "r2"])) is True
