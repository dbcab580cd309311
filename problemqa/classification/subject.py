"""
Subject Classifier.

Keyword-count classification of free text into a school subject, a coarse
difficulty-tier hint, and a duplicate scan against an existing corpus.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from problemqa.core.models import CorpusEntry, DifficultyTier
from problemqa.core.tables import DEFAULT_CLASSIFIER_TABLES, ClassifierTables
from problemqa.similarity.duplicates import DuplicateMatch, find_duplicates

_FORMULA = re.compile(r"[∫∑∏√πθ]|[a-z]\s*=")
_MULTI_PART = re.compile(r"\(1\)|가\)|①|ㄱ\.")


@dataclass
class SubjectResult:
    subject: str | None
    confidence: float
    keywords: list[str] = field(default_factory=list)
    scores: dict[str, int] = field(default_factory=dict)


@dataclass
class TierEstimate:
    difficulty: DifficultyTier
    confidence: float


@dataclass
class ClassificationResult:
    """Combined classifier output consumed by reviewers and the UI."""

    suggested_subject: str | None
    subject_confidence: float
    suggested_difficulty: DifficultyTier
    difficulty_confidence: float
    keywords: list[str] = field(default_factory=list)
    duplicates: list[DuplicateMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestedSubject": self.suggested_subject,
            "subjectConfidence": self.subject_confidence,
            "suggestedDifficulty": self.suggested_difficulty.value,
            "difficultyConfidence": self.difficulty_confidence,
            "keywords": list(self.keywords),
            "duplicates": [d.to_dict() for d in self.duplicates],
        }


class SubjectClassifier:
    """Scores content against per-subject keyword sets."""

    def __init__(self, tables: ClassifierTables = DEFAULT_CLASSIFIER_TABLES):
        self.tables = tables

    def classify_subject(self, content: str) -> SubjectResult:
        """
        Suggest a subject for the content.

        Each keyword found (case-insensitive substring) adds one point to its
        subject. The first subject in table order reaching the max score wins.
        """
        normalized = (content or "").lower()
        scores: dict[str, int] = {}
        found: list[str] = []

        for subject, keywords in self.tables.subject_keywords.items():
            score = 0
            for keyword in keywords:
                if keyword.lower() in normalized:
                    score += 1
                    found.append(keyword)
            scores[subject] = score

        best_subject: str | None = None
        best_score = 0
        for subject, score in scores.items():
            if score > best_score:
                best_score = score
                best_subject = subject

        confidence = min(best_score / self.tables.keywords_for_full_confidence, 1.0) if best_score else 0.0

        return SubjectResult(
            subject=best_subject,
            confidence=confidence,
            keywords=list(dict.fromkeys(found)),
            scores=scores,
        )

    def estimate_difficulty_tier(self, content: str) -> TierEstimate:
        """Coarse LOW/MEDIUM/HIGH hint from indicator phrases and shape."""
        normalized = (content or "").lower()
        scores = {tier: 0 for tier in ("LOW", "MEDIUM", "HIGH")}

        for tier, indicators in self.tables.tier_indicators.items():
            for indicator in indicators:
                if indicator.lower() in normalized:
                    scores[tier] = scores.get(tier, 0) + 1

        word_count = len(content.split()) if content else 0
        if word_count > 200:
            scores["HIGH"] += 1
        elif word_count > 100:
            scores["MEDIUM"] += 1
        else:
            scores["LOW"] += 1

        if _FORMULA.search(content or ""):
            scores["MEDIUM"] += 1
        if _MULTI_PART.search(content or ""):
            scores["MEDIUM"] += 1

        best = "MEDIUM"
        best_score = scores["MEDIUM"]
        for tier, score in scores.items():
            if score > best_score:
                best_score = score
                best = tier

        confidence = min(best_score / 3, 1.0) if best_score > 0 else 0.5
        return TierEstimate(DifficultyTier(best), confidence)

    def classify(
        self,
        content: str,
        existing: Iterable[CorpusEntry] = (),
        threshold: float = 0.7,
    ) -> ClassificationResult:
        """Full classification: subject, tier hint and duplicates."""
        subject = self.classify_subject(content)
        tier = self.estimate_difficulty_tier(content)
        duplicates = find_duplicates(content, existing, threshold=threshold)

        return ClassificationResult(
            suggested_subject=subject.subject,
            subject_confidence=subject.confidence,
            suggested_difficulty=tier.difficulty,
            difficulty_confidence=tier.confidence,
            keywords=subject.keywords,
            duplicates=duplicates,
        )


_default_classifier = SubjectClassifier()


def classify_subject(content: str) -> SubjectResult:
    return _default_classifier.classify_subject(content)


def estimate_difficulty_tier(content: str) -> TierEstimate:
    return _default_classifier.estimate_difficulty_tier(content)


def classify_problem(
    content: str,
    existing: Iterable[CorpusEntry] = (),
    threshold: float = 0.7,
) -> ClassificationResult:
    return _default_classifier.classify(content, existing, threshold)
