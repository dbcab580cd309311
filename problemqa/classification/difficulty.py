"""
Difficulty Estimator.

Computes five structural complexity factors (0-100) from a problem's content
and options, combines them with fixed weights, rescales by grade level and
maps the result to a discrete level.

Factors:
- textComplexity: average sentence length x 1.5
- conceptLevel: share of words containing advanced vocabulary x 500
- mathComplexity: math keyword hits x 10, +20 equation glyphs, +30 LaTeX
- vocabularyLevel: average word length x 15
- structureComplexity: complex-sentence hits x 15, +20 many options, +10 > 5 options
"""

from __future__ import annotations

import re
import statistics
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from problemqa.core.models import DifficultyLevel
from problemqa.core.tables import DEFAULT_DIFFICULTY_TABLES, DifficultyTables

_SENTENCE_SPLIT = re.compile(r"[.!?。]")
_EQUATION_GLYPHS = re.compile(r"[=<>≤≥±∫∑∏√]")
_LATEX = re.compile(r"\$.*\$|\\frac|\\sqrt")
_THREE_CIRCLED = re.compile(r"①.*②.*③", re.DOTALL)


@dataclass
class DifficultyFactors:
    text_complexity: int = 0
    concept_level: int = 0
    math_complexity: int = 0
    vocabulary_level: int = 0
    structure_complexity: int = 0

    def as_weighted_dict(self) -> dict[str, int]:
        return {
            "textComplexity": self.text_complexity,
            "conceptLevel": self.concept_level,
            "mathComplexity": self.math_complexity,
            "vocabularyLevel": self.vocabulary_level,
            "structureComplexity": self.structure_complexity,
        }

    def values(self) -> list[int]:
        return list(self.as_weighted_dict().values())


@dataclass
class DifficultyResult:
    score: int
    level: DifficultyLevel
    confidence: float
    factors: DifficultyFactors
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "confidence": self.confidence,
            "factors": self.factors.as_weighted_dict(),
            "suggestions": list(self.suggestions),
        }


@dataclass
class DifficultyStats:
    avg_score: int
    distribution: dict[str, int]
    avg_confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgScore": self.avg_score,
            "distribution": dict(self.distribution),
            "avgConfidence": self.avg_confidence,
        }


def _cap(value: float) -> float:
    return max(0.0, min(100.0, value))


class DifficultyEstimator:
    """Weighted, grade-adjusted structural difficulty estimation."""

    def __init__(self, tables: DifficultyTables = DEFAULT_DIFFICULTY_TABLES):
        self.tables = tables
        self._complex_patterns = [re.compile(p) for p in tables.complex_patterns]

    def estimate(
        self,
        content: str,
        options: Sequence[str] | None = None,
        grade_level: str | None = None,
    ) -> DifficultyResult:
        """Estimate the difficulty of a problem."""
        factors = self.calculate_factors(content or "", list(options or []))
        weights = self.tables.factor_weights

        score = sum(
            value * weights.get(name, 0.0)
            for name, value in factors.as_weighted_dict().items()
        )
        if grade_level:
            score = self.adjust_for_grade(score, grade_level)
        score = _cap(score)

        level = self.score_to_level(score)

        # Agreement between factors drives confidence
        variance = statistics.pvariance(factors.values())
        confidence = max(0.3, 1 - variance / 1000)

        return DifficultyResult(
            score=round(score),
            level=level,
            confidence=round(min(confidence, 1.0), 2),
            factors=factors,
            suggestions=self.generate_suggestions(factors, level),
        )

    def calculate_factors(self, content: str, options: list[str]) -> DifficultyFactors:
        full_text = " ".join([content, *options])
        words = full_text.split()
        word_total = max(1, len(words))

        sentences = [s for s in _SENTENCE_SPLIT.split(full_text) if s]
        avg_sentence_length = len(full_text) / len(sentences) if sentences else len(full_text)
        text_complexity = _cap(avg_sentence_length * 1.5)

        advanced = sum(
            1 for w in words if any(v in w for v in self.tables.advanced_vocabulary)
        )
        concept_level = _cap(advanced / word_total * 500)

        math_hits = sum(1 for k in self.tables.math_keywords if k in full_text)
        math_complexity = math_hits * 10
        if _EQUATION_GLYPHS.search(full_text):
            math_complexity += 20
        if _LATEX.search(full_text):
            math_complexity += 30
        math_complexity = _cap(math_complexity)

        avg_word_length = sum(len(w) for w in words) / word_total
        vocabulary_level = _cap(avg_word_length * 15)

        complex_hits = sum(1 for p in self._complex_patterns if p.search(full_text))
        structure_complexity = complex_hits * 15
        if _THREE_CIRCLED.search(full_text) or len(options) > 4:
            structure_complexity += 20
        if len(options) > 5:
            structure_complexity += 10
        structure_complexity = _cap(structure_complexity)

        return DifficultyFactors(
            text_complexity=round(text_complexity),
            concept_level=round(concept_level),
            math_complexity=round(math_complexity),
            vocabulary_level=round(vocabulary_level),
            structure_complexity=round(structure_complexity),
        )

    def adjust_for_grade(self, score: float, grade_level: str) -> float:
        return score * self.tables.grade_multipliers.get(grade_level, 1.0)

    def score_to_level(self, score: float) -> DifficultyLevel:
        easy, medium, hard = self.tables.level_bounds
        if score < easy:
            return DifficultyLevel.EASY
        if score < medium:
            return DifficultyLevel.MEDIUM
        if score < hard:
            return DifficultyLevel.HARD
        return DifficultyLevel.VERY_HARD

    @staticmethod
    def generate_suggestions(factors: DifficultyFactors, level: DifficultyLevel) -> list[str]:
        suggestions = []

        if factors.text_complexity > 70:
            suggestions.append("Shorten sentences to improve comprehension")

        if factors.vocabulary_level > 75:
            suggestions.append("Replace some advanced vocabulary with simpler wording")

        if factors.structure_complexity > 60 and level == DifficultyLevel.EASY:
            suggestions.append("Problem structure is complex for its difficulty")

        if factors.math_complexity < 20 and factors.concept_level > 60:
            suggestions.append("Concept-heavy problem; consider adding a calculation step")

        return suggestions


_default_estimator = DifficultyEstimator()


def estimate_difficulty(
    content: str,
    options: Sequence[str] | None = None,
    grade_level: str | None = None,
) -> DifficultyResult:
    return _default_estimator.estimate(content, options, grade_level)


def estimate_batch_difficulty(problems: Iterable[dict[str, Any]]) -> list[DifficultyResult]:
    """Estimate each {"content", "options"?, "gradeLevel"?} problem."""
    return [
        estimate_difficulty(p.get("content", ""), p.get("options"), p.get("gradeLevel"))
        for p in problems
    ]


def calculate_difficulty_stats(results: Sequence[DifficultyResult]) -> DifficultyStats:
    """Average score, level distribution and average confidence."""
    if not results:
        return DifficultyStats(avg_score=0, distribution={}, avg_confidence=0.0)

    distribution = {level.value: 0 for level in DifficultyLevel}
    for result in results:
        distribution[result.level.value] += 1

    return DifficultyStats(
        avg_score=round(statistics.fmean(r.score for r in results)),
        distribution=distribution,
        avg_confidence=round(statistics.fmean(r.confidence for r in results), 2),
    )
