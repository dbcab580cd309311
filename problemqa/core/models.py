"""
Problem Pipeline Data Models.

These models represent the data flowing through the pipeline: candidate
problems produced by the segmenter, and the scoring/review view of a persisted
problem read from whatever shape the storage layer provides.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


# =============================================================================
# Enums
# =============================================================================


class ProblemType(str, Enum):
    """Problem answer formats."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"
    ESSAY = "ESSAY"
    TRUE_FALSE = "TRUE_FALSE"


class ProblemStatus(str, Enum):
    """Publish lifecycle of a persisted problem."""
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"


class ReviewStage(str, Enum):
    """Review pipeline progress marker, independent of publish status."""
    NONE = "NONE"
    AUTO = "AUTO"      # Automatic validation
    AI = "AI"          # Heuristic reviewer pass
    MANUAL = "MANUAL"  # Human review


class ReviewOutcome(str, Enum):
    """Outcome stored on a review record."""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_REVISION = "NEEDS_REVISION"


class QueueStatus(str, Enum):
    """Status of a review queue work item."""
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_active(self) -> bool:
        return self in (QueueStatus.PENDING, QueueStatus.IN_REVIEW)


class RecommendedAction(str, Enum):
    """Heuristic reviewer recommendation."""
    APPROVE = "APPROVE"
    REVISE = "REVISE"
    REJECT = "REJECT"

    def to_outcome(self) -> ReviewOutcome:
        if self is RecommendedAction.APPROVE:
            return ReviewOutcome.APPROVED
        if self is RecommendedAction.REJECT:
            return ReviewOutcome.REJECTED
        return ReviewOutcome.NEEDS_REVISION


class DifficultyLevel(str, Enum):
    """Estimated difficulty level."""
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    VERY_HARD = "VERY_HARD"


class DifficultyTier(str, Enum):
    """Declared difficulty tier stored on a problem."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SourceGrade(str, Enum):
    """Trust tier of a content source."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


# =============================================================================
# Options helpers
# =============================================================================


def parse_options(options: str | list[str] | None) -> tuple[list[str], bool]:
    """
    Decode a JSON-encoded options array.

    Returns:
        (options, malformed) - malformed is True when a value was present
        but could not be decoded into a list of strings; options is then [].
    """
    if options is None:
        return [], False
    if isinstance(options, list):
        return [str(o) for o in options], False
    if not options.strip():
        return [], False
    try:
        decoded = json.loads(options)
    except (TypeError, ValueError):
        return [], True
    if not isinstance(decoded, list):
        return [], True
    return [str(o) for o in decoded], False


def encode_options(options: list[str] | None) -> str | None:
    """Encode options the way the storage layer keeps them."""
    if options is None:
        return None
    return json.dumps(options, ensure_ascii=False)


# =============================================================================
# Candidate Problem (segmenter output)
# =============================================================================


@dataclass
class CandidateProblem:
    """
    An unpersisted, parsed unit of problem content.

    Created per parse call; discarded after an external collaborator persists
    it as a Problem or rejects it.
    """
    content: str
    type: ProblemType
    raw_text: str
    options: list[str] | None = None
    answer: str | None = None
    explanation: str | None = None

    def to_record(self, **overrides: Any) -> ProblemRecord:
        """Build the review/scoring view of this candidate."""
        values: dict[str, Any] = {
            "content": self.content,
            "type": self.type,
            "options": encode_options(self.options),
            "answer": self.answer or "",
            "explanation": self.explanation,
        }
        values.update(overrides)
        return ProblemRecord(**values)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "content": self.content,
            "type": self.type.value,
            "rawText": self.raw_text,
        }
        if self.options is not None:
            data["options"] = list(self.options)
        if self.answer is not None:
            data["answer"] = self.answer
        if self.explanation is not None:
            data["explanation"] = self.explanation
        return data


# =============================================================================
# Problem / Source (collaborator records)
# =============================================================================


@dataclass
class SourceInfo:
    """Trust information of the source a problem came from."""
    grade: SourceGrade | str | None = None
    trust_score: int | None = None  # Explicit override


@dataclass
class ProblemRecord:
    """
    Scoring and review view of a persisted problem.

    Options are kept JSON-encoded, as the storage layer provides them.
    """
    content: str
    type: ProblemType | str = ProblemType.SHORT_ANSWER
    answer: str = ""
    options: str | None = None
    explanation: str | None = None
    difficulty: DifficultyTier | str = DifficultyTier.MEDIUM
    grade_level: str | None = None
    usage_count: int = 0
    correct_rate: float | None = None
    source: SourceInfo | None = None
    id: str | None = None

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, ProblemType):
            try:
                self.type = ProblemType(self.type)
            except ValueError:
                pass
        if self.answer is None:
            self.answer = ""

    @property
    def is_multiple_choice(self) -> bool:
        return self.type == ProblemType.MULTIPLE_CHOICE

    @property
    def difficulty_key(self) -> str:
        return self.difficulty.value if isinstance(self.difficulty, Enum) else str(self.difficulty)

    @property
    def normalized_correct_rate(self) -> float | None:
        """Correct rate as a fraction; percentages (> 1) are scaled down."""
        if self.correct_rate is None:
            return None
        rate = float(self.correct_rate)
        return rate / 100 if rate > 1 else rate

    def option_list(self) -> tuple[list[str], bool]:
        return parse_options(self.options)


@dataclass
class CorpusEntry:
    """An existing problem used for duplicate detection."""
    id: str
    content: str

