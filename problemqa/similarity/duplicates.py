"""
Duplicate Detector.

Jaccard similarity over normalized token sets, and a linear scan of an
existing corpus for near-duplicates. Cost is O(n) per candidate; callers with
large corpora should chunk the corpus or pre-filter it with an index.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from problemqa.core.models import CorpusEntry

DEFAULT_DUPLICATE_THRESHOLD = 0.7
PREVIEW_LENGTH = 100

_NON_WORD = re.compile(r"[^\wㄱ-ㅎㅏ-ㅣ가-힣]")


@dataclass
class DuplicateMatch:
    """An existing problem similar to the candidate."""

    id: str
    similarity: float
    content: str  # Preview

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "similarity": self.similarity, "content": self.content}


def tokenize(text: str) -> list[str]:
    """Lowercase, strip non-word characters, drop tokens of length <= 1."""
    normalized = _NON_WORD.sub(" ", (text or "").lower())
    return [w for w in normalized.split() if len(w) > 1]


def jaccard_similarity(tokens1: Iterable[str], tokens2: Iterable[str]) -> float:
    set1, set2 = set(tokens1), set(tokens2)
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def calculate_similarity(text1: str, text2: str) -> float:
    """
    Jaccard index of the two texts' token sets.

    Texts whose every token is a single character have empty token sets; they
    are equal (1.0) only when their normalized forms match, or, for texts
    with no word characters at all, when the stripped texts match.
    """
    words1, words2 = set(tokenize(text1)), set(tokenize(text2))

    if not words1 and not words2:
        norm1 = " ".join(_NON_WORD.sub(" ", (text1 or "").lower()).split())
        norm2 = " ".join(_NON_WORD.sub(" ", (text2 or "").lower()).split())
        if norm1 or norm2:
            return 1.0 if norm1 == norm2 else 0.0
        stripped1, stripped2 = (text1 or "").strip(), (text2 or "").strip()
        return 1.0 if stripped1 and stripped1 == stripped2 else 0.0
    if not words1 or not words2:
        return 0.0

    return jaccard_similarity(words1, words2)


def find_duplicates(
    content: str,
    existing: Iterable[CorpusEntry],
    threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
) -> list[DuplicateMatch]:
    """
    Flag every corpus entry whose similarity to content is >= threshold.

    Returns:
        Matches sorted by similarity, highest first.
    """
    matches = []

    for entry in existing:
        similarity = calculate_similarity(content, entry.content)
        if similarity >= threshold:
            matches.append(
                DuplicateMatch(
                    id=entry.id,
                    similarity=round(similarity, 2),
                    content=entry.content[:PREVIEW_LENGTH],
                )
            )

    return sorted(matches, key=lambda m: m.similarity, reverse=True)
