"""
Quality Scorer.

Combines five 0-100 signals into one composite quality score:

- accuracyScore: answer, explanation, options and correct-rate completeness
- clarityScore: length, punctuation and special-character ratio
- difficultyFit: whether the declared tier matches length, formulas and correct rate
- trustScore: source override, else source grade table, else default
- usageScore: step function of usage count

overallScore is the weighted sum of the five (0.3/0.2/0.15/0.2/0.15),
rounded to one decimal. Every score is a pure function of its inputs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from problemqa.core.models import ProblemRecord, SourceGrade
from problemqa.core.tables import DEFAULT_SCORING_TABLES, ScoringTables

EXPLANATION_MIN_CHARS = 10
BALANCED_CORRECT_RATE = (0.2, 0.8)

_TERMINAL_PUNCTUATION = re.compile(r"[.?!。？！]\s*$")
_QUESTION_MARK = re.compile(r"\?|？")
_SPECIAL_CHARS = re.compile(r"[^\w\sㄱ-ㅎㅏ-ㅣ가-힣.,?!:;'\"()]")
_FORMULA = re.compile(r"[$∫∑∏√πθ]")


@dataclass(frozen=True)
class QualityScores:
    accuracy_score: float
    clarity_score: float
    difficulty_fit: float
    trust_score: float
    usage_score: float
    overall_score: float

    def components(self) -> dict[str, float]:
        return {
            "accuracy": self.accuracy_score,
            "clarity": self.clarity_score,
            "difficultyFit": self.difficulty_fit,
            "trust": self.trust_score,
            "usage": self.usage_score,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracyScore": self.accuracy_score,
            "clarityScore": self.clarity_score,
            "difficultyFit": self.difficulty_fit,
            "trustScore": self.trust_score,
            "usageScore": self.usage_score,
            "overallScore": self.overall_score,
        }


class QualityScorer:
    """Scores problem records against an injectable ScoringTables."""

    def __init__(self, tables: ScoringTables = DEFAULT_SCORING_TABLES):
        self.tables = tables

    def trust_score(
        self,
        source_grade: SourceGrade | str | None = None,
        source_trust_score: float | None = None,
    ) -> float:
        if source_trust_score is not None:
            return max(0, min(100, source_trust_score))
        grade = source_grade.value if isinstance(source_grade, SourceGrade) else source_grade
        if grade and grade in self.tables.grade_trust_scores:
            return self.tables.grade_trust_scores[grade]
        return self.tables.default_trust_score

    def accuracy_score(self, problem: ProblemRecord) -> float:
        score = 60

        if problem.answer and problem.answer.strip():
            score += 15

        if problem.explanation and len(problem.explanation.strip()) >= EXPLANATION_MIN_CHARS:
            score += 15

        if problem.is_multiple_choice:
            # Malformed options count as no options
            options, _ = problem.option_list()
            if len(options) >= 2:
                score += 10

        rate = problem.normalized_correct_rate
        if rate is not None:
            low, high = BALANCED_CORRECT_RATE
            if low <= rate <= high:
                score += 10

        return min(100, score)

    def clarity_score(self, problem: ProblemRecord) -> float:
        score = 50
        content = problem.content

        if len(content) >= 20:
            score += 10

        if 50 <= len(content) <= 500:
            score += 15
        elif len(content) > 500:
            score += 5

        if _TERMINAL_PUNCTUATION.search(content.strip()):
            score += 10

        if _QUESTION_MARK.search(content):
            score += 10

        if content:
            special_ratio = len(_SPECIAL_CHARS.findall(content)) / len(content)
            if special_ratio < 0.1:
                score += 5

        return min(100, score)

    def difficulty_fit_score(self, problem: ProblemRecord) -> float:
        score = 70
        content = problem.content
        word_count = len(content.split())
        has_formula = bool(_FORMULA.search(content))
        tier = problem.difficulty_key

        if tier == "LOW":
            if word_count <= 50 and not has_formula:
                score += 20
            elif word_count > 100 or has_formula:
                score -= 10
        elif tier == "MEDIUM":
            if 30 <= word_count <= 150:
                score += 20
        elif tier == "HIGH":
            if word_count >= 50 or has_formula:
                score += 20

        rate = problem.normalized_correct_rate
        if rate is not None:
            low, high = self.tables.correct_rate_ranges.get(
                tier, self.tables.default_correct_rate_range
            )
            if low <= rate <= high:
                score += 10
            else:
                score -= 10

        return max(0, min(100, score))

    def usage_score(self, usage_count: int) -> float:
        for max_count, step_score in self.tables.usage_steps:
            if usage_count <= max_count:
                return step_score
        return self.tables.usage_max_score

    def overall_score(
        self,
        accuracy: float,
        clarity: float,
        difficulty_fit: float,
        trust: float,
        usage: float,
    ) -> float:
        weights = self.tables.score_weights
        overall = (
            accuracy * weights["accuracy"]
            + clarity * weights["clarity"]
            + difficulty_fit * weights["difficultyFit"]
            + trust * weights["trust"]
            + usage * weights["usage"]
        )
        return round(overall, 1)

    def score(self, problem: ProblemRecord) -> QualityScores:
        source = problem.source
        accuracy = self.accuracy_score(problem)
        clarity = self.clarity_score(problem)
        difficulty_fit = self.difficulty_fit_score(problem)
        trust = self.trust_score(
            source.grade if source else None,
            source.trust_score if source else None,
        )
        usage = self.usage_score(problem.usage_count or 0)

        return QualityScores(
            accuracy_score=accuracy,
            clarity_score=clarity,
            difficulty_fit=difficulty_fit,
            trust_score=trust,
            usage_score=usage,
            overall_score=self.overall_score(accuracy, clarity, difficulty_fit, trust, usage),
        )

    def grade_description(self, grade: SourceGrade | str | None) -> str:
        key = grade.value if isinstance(grade, SourceGrade) else grade
        descriptions = self.tables.grade_descriptions
        return descriptions.get(key or "", descriptions["D"])


_default_scorer = QualityScorer()


def calculate_trust_score(
    source_grade: SourceGrade | str | None = None,
    source_trust_score: float | None = None,
) -> float:
    return _default_scorer.trust_score(source_grade, source_trust_score)


def calculate_usage_score(usage_count: int) -> float:
    return _default_scorer.usage_score(usage_count)


def calculate_overall_score(
    accuracy: float,
    clarity: float,
    difficulty_fit: float,
    trust: float,
    usage: float,
) -> float:
    return _default_scorer.overall_score(accuracy, clarity, difficulty_fit, trust, usage)


def calculate_quality_scores(problem: ProblemRecord) -> QualityScores:
    return _default_scorer.score(problem)


def get_grade_description(grade: SourceGrade | str | None) -> str:
    return _default_scorer.grade_description(grade)
