"""
Comprehensive Similarity - variant and near-duplicate detection.

Blends four signals:
1. Jaccard token overlap (0.4)
2. Term-frequency cosine similarity (0.3)
3. Formula structure similarity (0.2)
4. Numeric substitution, i.e. same text with changed numbers (0.1)

Used to find problems that are re-numbered variants of each other, which
plain token overlap misses.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np
from rapidfuzz.distance import Levenshtein

from problemqa.core.models import CorpusEntry
from problemqa.similarity.duplicates import jaccard_similarity, tokenize

_LATEX_FORMULA = re.compile(r"\$[^$]+\$")
_FUNCTION_FORMULA = re.compile(r"[a-zA-Z]\s*\([^)]*\)\s*=\s*[^\n,]+")
_ARITHMETIC_FORMULA = re.compile(r"\d+\s*[+\-×÷*/]\s*\d+\s*=\s*\d+")
_NUMBER = re.compile(r"-?\d+\.?\d*")

WEIGHTS = {
    "text": 0.4,
    "semantic": 0.3,
    "formula": 0.2,
    "numeric": 0.1,
}


@dataclass
class NumericSubstitution:
    is_variant: bool
    changed_numbers: list[tuple[float, float]] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class SimilarityResult:
    text_similarity: float
    semantic_similarity: float
    formula_similarity: float
    numeric_substitution: NumericSubstitution
    overall_similarity: float
    is_duplicate: bool
    is_variant: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "textSimilarity": self.text_similarity,
            "semanticSimilarity": self.semantic_similarity,
            "formulaSimilarity": self.formula_similarity,
            "numericSubstitution": {
                "isVariant": self.numeric_substitution.is_variant,
                "confidence": self.numeric_substitution.confidence,
            },
            "overallSimilarity": self.overall_similarity,
            "isDuplicate": self.is_duplicate,
            "isVariant": self.is_variant,
        }


@dataclass
class SimilarProblem:
    id: str
    similarity: SimilarityResult

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "similarity": self.similarity.to_dict()}


# =============================================================================
# Text similarity
# =============================================================================


def cosine_similarity(tokens1: list[str], tokens2: list[str]) -> float:
    """Cosine similarity of term-frequency vectors."""
    vocabulary = sorted(set(tokens1) | set(tokens2))
    if not vocabulary:
        return 0.0

    freq1, freq2 = Counter(tokens1), Counter(tokens2)
    v1 = np.array([freq1[t] for t in vocabulary], dtype=np.float64)
    v2 = np.array([freq2[t] for t in vocabulary], dtype=np.float64)

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.dot(v1, v2) / (norm1 * norm2))


def edit_similarity(s1: str, s2: str) -> float:
    """1 - Levenshtein distance / longer length."""
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return 1 - Levenshtein.distance(s1, s2) / max_len


# =============================================================================
# Formula comparison
# =============================================================================


def extract_formulas(text: str) -> list[str]:
    formulas = []
    formulas.extend(_LATEX_FORMULA.findall(text))
    formulas.extend(_FUNCTION_FORMULA.findall(text))
    formulas.extend(_ARITHMETIC_FORMULA.findall(text))
    return formulas


def normalize_formula(formula: str) -> str:
    """Collapse variables to x and numbers to N so only structure remains."""
    normalized = re.sub(r"\s+", "", formula)
    normalized = re.sub(r"[a-zA-Z]", "x", normalized)
    normalized = re.sub(r"\d+", "N", normalized)
    return normalized.lower()


def formula_similarity(text1: str, text2: str) -> float:
    formulas1 = extract_formulas(text1)
    formulas2 = extract_formulas(text2)
    if not formulas1 or not formulas2:
        return 0.0

    matches = min(len(formulas1), len(formulas2))
    total = 0.0
    for f1 in formulas1[:matches]:
        n1 = normalize_formula(f1)
        total += max(edit_similarity(n1, normalize_formula(f2)) for f2 in formulas2)

    return total / matches


# =============================================================================
# Numeric substitution
# =============================================================================


def extract_numbers(text: str) -> list[float]:
    numbers = []
    for token in _NUMBER.findall(text):
        try:
            numbers.append(float(token))
        except ValueError:
            continue
    return numbers


def detect_numeric_substitution(text1: str, text2: str) -> NumericSubstitution:
    """Detect texts that differ only in (at most half of) their numbers."""
    stripped1 = _NUMBER.sub("___NUM___", text1)
    stripped2 = _NUMBER.sub("___NUM___", text2)

    stripped_similarity = edit_similarity(stripped1, stripped2)
    if stripped_similarity < 0.9:
        return NumericSubstitution(is_variant=False)

    nums1 = extract_numbers(text1)
    nums2 = extract_numbers(text2)
    if len(nums1) != len(nums2) or not nums1:
        return NumericSubstitution(is_variant=False)

    changed = [(a, b) for a, b in zip(nums1, nums2) if a != b]
    same_count = len(nums1) - len(changed)

    is_variant = 0 < len(changed) <= len(nums1) * 0.5
    confidence = stripped_similarity * (same_count / len(nums1) + 0.5) if is_variant else 0.0

    return NumericSubstitution(
        is_variant=is_variant,
        changed_numbers=changed,
        confidence=min(1.0, confidence),
    )


# =============================================================================
# Comprehensive similarity
# =============================================================================


def calculate_comprehensive_similarity(
    text1: str,
    text2: str,
    duplicate_threshold: float = 0.85,
    variant_threshold: float = 0.7,
) -> SimilarityResult:
    tokens1 = tokenize(text1)
    tokens2 = tokenize(text2)

    text_sim = jaccard_similarity(tokens1, tokens2)
    semantic_sim = cosine_similarity(tokens1, tokens2)
    formula_sim = formula_similarity(text1, text2)
    numeric = detect_numeric_substitution(text1, text2)

    overall = (
        text_sim * WEIGHTS["text"]
        + semantic_sim * WEIGHTS["semantic"]
        + formula_sim * WEIGHTS["formula"]
        + (numeric.confidence * WEIGHTS["numeric"] if numeric.is_variant else 0.0)
    )

    return SimilarityResult(
        text_similarity=round(text_sim, 2),
        semantic_similarity=round(semantic_sim, 2),
        formula_similarity=round(formula_sim, 2),
        numeric_substitution=NumericSubstitution(
            is_variant=numeric.is_variant,
            changed_numbers=numeric.changed_numbers,
            confidence=round(numeric.confidence, 2),
        ),
        overall_similarity=round(overall, 2),
        is_duplicate=overall >= duplicate_threshold,
        is_variant=numeric.is_variant or variant_threshold <= overall < duplicate_threshold,
    )


def find_similar_problems(
    target: str,
    problems: Iterable[CorpusEntry],
    threshold: float = 0.5,
) -> list[SimilarProblem]:
    """Every problem at or above threshold, most similar first."""
    results = []
    for problem in problems:
        similarity = calculate_comprehensive_similarity(target, problem.content)
        if similarity.overall_similarity >= threshold:
            results.append(SimilarProblem(id=problem.id, similarity=similarity))

    return sorted(results, key=lambda r: r.similarity.overall_similarity, reverse=True)
