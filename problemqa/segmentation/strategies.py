"""
Ordered extraction strategies.

Each strategy pairs a compiled pattern with an extractor. Strategies are
evaluated in order and the first one producing at least one value wins, so a
new option-marker style is added by appending a strategy, not by branching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence

Extractor = Callable[[re.Pattern, str], list[str]]


def _all_groups(pattern: re.Pattern, text: str) -> list[str]:
    """Every match's last group, stripped, empties dropped."""
    values = []
    for match in pattern.finditer(text):
        value = match.group(match.lastindex or 0).strip()
        if value:
            values.append(value)
    return values


def _first_group(pattern: re.Pattern, text: str) -> list[str]:
    match = pattern.search(text)
    if not match:
        return []
    value = match.group(1).strip()
    return [value] if value else []


@dataclass(frozen=True)
class ExtractionStrategy:
    """A named (pattern, extractor) pair."""

    name: str
    pattern: re.Pattern
    extractor: Extractor = _all_groups

    def extract(self, text: str) -> list[str]:
        return self.extractor(self.pattern, text)

    def strip(self, text: str) -> str:
        """Remove every span this strategy matches."""
        return self.pattern.sub("", text)


@dataclass(frozen=True)
class StrategyMatch:
    strategy: ExtractionStrategy
    values: list[str]


def first_match(strategies: Sequence[ExtractionStrategy], text: str) -> StrategyMatch | None:
    """Evaluate strategies in order; the first yielding values wins."""
    for strategy in strategies:
        values = strategy.extract(text)
        if values:
            return StrategyMatch(strategy, values)
    return None


# =============================================================================
# Default strategies for Korean educational content
# =============================================================================

CIRCLED_MARKERS = "①②③④⑤"

OPTION_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    # ① 2 ② 3 ③ 4  (most common in Korean tests)
    ExtractionStrategy(
        "circled",
        re.compile(rf"([{CIRCLED_MARKERS}])[^\S\n]*([^\n{CIRCLED_MARKERS}]+)"),
    ),
    # A. text  B) text
    ExtractionStrategy(
        "latin",
        re.compile(r"(?<!\S)([A-E])[.)][^\S\n]*(.+?)(?=[^\S\n]+[A-E][.)]|\n|\Z)"),
    ),
    # 가. text  나) text
    ExtractionStrategy(
        "korean",
        re.compile(r"(?<!\S)([가나다라마])[.)][^\S\n]*(.+?)(?=[^\S\n]+[가나다라마][.)]|\n|\Z)"),
    ),
)

_ANSWER_TOKEN = rf"([{CIRCLED_MARKERS}\dA-E가-마]+)"

ANSWER_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy(
        "정답", re.compile(rf"정답\s*[:：]\s*{_ANSWER_TOKEN}", re.IGNORECASE), _first_group
    ),
    ExtractionStrategy(
        "답", re.compile(rf"답\s*[:：]\s*{_ANSWER_TOKEN}", re.IGNORECASE), _first_group
    ),
    ExtractionStrategy(
        "answer", re.compile(rf"Answer\s*[:：]\s*{_ANSWER_TOKEN}", re.IGNORECASE), _first_group
    ),
)

# Explanation runs until the next numbered problem marker or the end of text
_NEXT_PROBLEM = r"(?=\n\s*(?:문제?\s*)?(?:\[?\d+\]?[.):]|【\d+】)|\Z)"

EXPLANATION_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy(
        "해설", re.compile(rf"해설\s*[:：]\s*([\s\S]*?){_NEXT_PROBLEM}", re.IGNORECASE), _first_group
    ),
    ExtractionStrategy(
        "풀이", re.compile(rf"풀이\s*[:：]\s*([\s\S]*?){_NEXT_PROBLEM}", re.IGNORECASE), _first_group
    ),
)

# Patterns removing answer lines and explanation tails from problem content
ANSWER_LINE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"정답\s*[:：]\s*[^\n]+", re.IGNORECASE),
    re.compile(r"답\s*[:：]\s*[^\n]+", re.IGNORECASE),
    re.compile(r"Answer\s*[:：]\s*[^\n]+", re.IGNORECASE),
)
EXPLANATION_TAIL_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"해설\s*[:：][\s\S]*\Z", re.IGNORECASE),
    re.compile(r"풀이\s*[:：][\s\S]*\Z", re.IGNORECASE),
)
