"""
Tests for the heuristic reviewer and answer verification.
"""
import pytest

from problemqa.core.models import ProblemRecord, ProblemType, RecommendedAction
from problemqa.review.reviewer import (
    HeuristicReviewer,
    QualityChecks,
    has_common_typos,
    review_problem,
)
from problemqa.review.verifier import (
    AnswerVerifier,
    FormatAnswerVerifier,
    VerificationResult,
)


class AlwaysWrongVerifier:
    """Verifier stand-in that disagrees with every answer."""

    def verify(self, problem):
        return VerificationResult(
            is_correct=False, ai_answer="①", confidence=0.9, reasoning="disagrees"
        )


def _replace(record, **changes):
    values = {
        "content": record.content,
        "type": record.type,
        "answer": record.answer,
        "options": record.options,
        "explanation": record.explanation,
    }
    values.update(changes)
    return ProblemRecord(**values)


# =============================================================================
# Decision policy
# =============================================================================


class TestReviewDecision:
    """Test APPROVE / REVISE / REJECT recommendations."""

    def test_well_formed_problem_is_approved(self, good_record):
        result = review_problem(good_record)

        assert result.recommended_action == RecommendedAction.APPROVE
        assert result.detected_issues == []
        assert result.quality_checks.passed == 5
        assert result.overall_confidence == pytest.approx(0.85)

    def test_short_problem_needs_revision(self):
        """Parsed scenario problem: one issue (too short) means REVISE, not REJECT."""
        record = ProblemRecord(
            content="다음 중 소수가 아닌 것은?",
            type=ProblemType.MULTIPLE_CHOICE,
            answer="③",
            options='["2", "3", "4", "5"]',
        )

        result = review_problem(record)

        assert result.detected_issues == ["Problem content is too short."]
        assert result.recommended_action == RecommendedAction.REVISE
        assert result.quality_checks.has_options is True
        assert result.quality_checks.has_answer is True

    def test_missing_answer_is_rejected(self, unanswered_record):
        result = review_problem(unanswered_record)

        assert "Answer is empty." in result.detected_issues
        assert result.recommended_action == RecommendedAction.REJECT

    def test_three_issues_are_rejected(self):
        record = ProblemRecord(
            content="짧은 문제",
            type=ProblemType.MULTIPLE_CHOICE,
            answer="F",
            options='["하나"]',
        )

        result = review_problem(record)

        assert len(result.detected_issues) >= 3
        assert result.recommended_action == RecommendedAction.REJECT

    def test_verifier_disagreement_needs_revision(self, good_record):
        reviewer = HeuristicReviewer(verifier=AlwaysWrongVerifier())

        result = reviewer.review(good_record)

        assert result.recommended_action == RecommendedAction.REVISE
        assert result.answer_verification.ai_answer == "①"

    def test_missing_explanation_needs_revision(self, good_record):
        result = review_problem(_replace(good_record, explanation=None))

        assert result.detected_issues == []
        assert result.recommended_action == RecommendedAction.REVISE

    def test_typos_need_revision(self, good_record):
        result = review_problem(_replace(good_record, content=good_record.content + ",."))

        assert result.quality_checks.no_typos is False
        assert result.recommended_action == RecommendedAction.REVISE

    def test_low_verification_confidence_needs_revision(self, good_record):
        """Short answer problems verify at 0.5, below the default threshold."""
        record = _replace(good_record, type=ProblemType.SHORT_ANSWER, options=None, answer="4")

        result = review_problem(record)

        assert result.detected_issues == []
        assert result.answer_verification.confidence == 0.5
        assert result.recommended_action == RecommendedAction.REVISE

    def test_approve_threshold_is_configurable(self, good_record):
        record = _replace(good_record, type=ProblemType.SHORT_ANSWER, options=None, answer="4")

        result = HeuristicReviewer(approve_confidence=0.5).review(record)

        assert result.recommended_action == RecommendedAction.APPROVE

    def test_adding_issues_never_moves_toward_approve(self, good_record):
        """Each degradation keeps the recommendation away from APPROVE."""
        ranks = {
            RecommendedAction.APPROVE: 0,
            RecommendedAction.REVISE: 1,
            RecommendedAction.REJECT: 2,
        }
        degraded = [
            good_record,
            _replace(good_record, content="보기 중에서 소수가 아닌 수 하나를 고른다."),
            _replace(good_record, content="보기 중에서 소수가 아닌 수 하나를 고른다.", options='["2", "2", "4", "5"]'),
            _replace(good_record, content="짧은 문제", options='["2", "2", "4", "5"]'),
            _replace(good_record, content="짧은 문제", options='["2", "2", "4", "5"]', answer=""),
        ]

        actions = [review_problem(r).recommended_action for r in degraded]

        assert actions[0] == RecommendedAction.APPROVE
        assert all(a != RecommendedAction.APPROVE for a in actions[1:])
        assert [ranks[a] for a in actions] == sorted(ranks[a] for a in actions)

    @pytest.mark.parametrize("issue_count", [1, 2, 3, 4])
    def test_any_issue_blocks_approval(self, issue_count):
        checks = QualityChecks(True, True, True, True, True)
        verification = VerificationResult(True, "③", 1.0, "certain")

        action = HeuristicReviewer().determine_action(
            ["issue"] * issue_count, checks, verification
        )

        assert action != RecommendedAction.APPROVE


# =============================================================================
# Issues, warnings and explanation
# =============================================================================


class TestIssueDetection:
    """Test individual detected issues."""

    def test_no_question_expression(self, good_record):
        issues = HeuristicReviewer().detect_issues(
            _replace(good_record, content="보기 중에서 소수가 아닌 수 하나를 고른다.")
        )

        assert issues == ["Problem format is unclear (no question expression)."]

    def test_malformed_options(self, good_record):
        record = _replace(good_record, options="not json")

        result = review_problem(record)

        assert "Options are malformed." in result.detected_issues
        assert result.quality_checks.has_options is False
        assert result.answer_verification.confidence == 0.3

    def test_missing_options(self, good_record):
        issues = HeuristicReviewer().detect_issues(_replace(good_record, options=None))

        assert issues == ["Multiple-choice problem has no options."]

    def test_too_many_options(self, good_record):
        options = '["1", "2", "3", "4", "5", "6", "7"]'

        issues = HeuristicReviewer().detect_issues(_replace(good_record, options=options))

        assert issues == ["Too many options (more than 6)."]

    def test_duplicate_options_ignore_case(self, good_record):
        issues = HeuristicReviewer().detect_issues(_replace(good_record, options='["A", "a", "b"]'))

        assert issues == ["Duplicate options found."]

    def test_answer_not_an_option_marker(self, good_record):
        issues = HeuristicReviewer().detect_issues(_replace(good_record, answer="소수"))

        assert issues == ["Answer is not a valid option marker."]


class TestWarnings:
    def test_missing_explanation_and_short_content(self, unanswered_record):
        warnings = HeuristicReviewer.generate_warnings(unanswered_record)

        assert "Explanation is missing or too short; adding one is recommended." in warnings
        assert "Problem is very short; check that the context is sufficient." in warnings

    def test_long_content(self, good_record):
        warnings = HeuristicReviewer.generate_warnings(_replace(good_record, content="가" * 1001))

        assert "Problem is very long; consider trimming to the essentials." in warnings

    def test_copyright_notice(self, good_record):
        record = _replace(good_record, content=good_record.content + " 출처: 2023 모의고사")

        warnings = HeuristicReviewer.generate_warnings(record)

        assert "Copyright notice detected; confirm usage rights." in warnings

    def test_warnings_do_not_change_the_decision(self, good_record):
        record = _replace(good_record, content=good_record.content + " Copyright 2023")

        result = review_problem(record)

        assert result.review_warnings
        assert result.recommended_action == RecommendedAction.APPROVE


class TestGeneratedExplanation:
    def test_draft_for_short_explanation(self, good_record):
        draft = HeuristicReviewer.generate_explanation(good_record)

        assert draft.startswith("[Auto-generated draft]")
        assert "③" in draft
        assert "Analyzing each option:" in draft

    def test_none_when_explanation_is_good(self, good_record):
        record = _replace(good_record, explanation="자세한 해설 " * 10)

        assert HeuristicReviewer.generate_explanation(record) is None


class TestTypos:
    @pytest.mark.parametrize(
        "text",
        ["안녕하세요,. 반갑습니다", "정말인가요??", "다음  문제", "함수f(x)"],
    )
    def test_detected(self, text):
        assert has_common_typos(text) is True

    def test_clean_text(self):
        assert has_common_typos("정상적인 문장입니다. 함수 f (x) 를 구하시오?") is False


class TestReviewResult:
    def test_review_score_and_payload(self, good_record):
        result = review_problem(good_record)

        assert result.review_score == 85.0
        payload = result.issues_payload()
        assert payload["issues"] == []
        assert payload["qualityChecks"]["hasAnswer"] is True

    def test_to_dict(self, good_record):
        data = review_problem(good_record).to_dict()

        assert data["recommendedAction"] == "APPROVE"
        assert data["answerVerification"]["confidence"] == 0.7


# =============================================================================
# Verifier
# =============================================================================


class TestFormatAnswerVerifier:
    """Test the format-only verifier."""

    @pytest.fixture
    def verifier(self):
        return FormatAnswerVerifier()

    def test_satisfies_protocol(self, verifier):
        assert isinstance(verifier, AnswerVerifier)
        assert isinstance(AlwaysWrongVerifier(), AnswerVerifier)

    def test_multiple_choice_with_options(self, verifier, good_record):
        result = verifier.verify(good_record)

        assert result.is_correct is True
        assert result.confidence == 0.7

    def test_multiple_choice_bad_answer(self, verifier, good_record):
        result = verifier.verify(_replace(good_record, answer="소수"))

        assert result.is_correct is False
        assert result.confidence == 0.8

    @pytest.mark.parametrize("answer", ["O", "x", "참", "FALSE"])
    def test_true_false(self, verifier, answer):
        record = ProblemRecord(content="지구는 둥글다. O/X", type=ProblemType.TRUE_FALSE, answer=answer)

        assert verifier.verify(record).confidence == 0.8

    def test_other_types_default(self, verifier):
        record = ProblemRecord(content="광합성을 서술하시오.", type=ProblemType.ESSAY, answer="빛")

        result = verifier.verify(record)

        assert result.is_correct is True
        assert result.confidence == 0.5
