"""
Review queue lifecycle and review-record submission.

A queue entry is the work-item view of a problem under review:

    PENDING ──assign──> IN_REVIEW ──decide──> APPROVED | REJECTED

At most one entry per problem may be PENDING or IN_REVIEW. The check runs
before insertion and raises DuplicateQueueEntryError.

ReviewQueue keeps entries in memory; the SQLAlchemy repository enforces the
same rules against the database.
"""

from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from loguru import logger

from problemqa.core.errors import DuplicateQueueEntryError, InvalidTransitionError
from problemqa.core.models import QueueStatus, ReviewOutcome, ReviewStage
from problemqa.workflow.states import ContentState, Transition, record_review


@dataclass(frozen=True)
class QueueEntry:
    problem_id: str
    review_type: ReviewStage
    priority: int = 0
    status: QueueStatus = QueueStatus.PENDING
    assigned_to: str | None = None
    notes: str | None = None
    confidence: float | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "problemId": self.problem_id,
            "reviewType": self.review_type.value,
            "priority": self.priority,
            "status": self.status.value,
            "assignedTo": self.assigned_to,
            "notes": self.notes,
            "confidence": self.confidence,
            "createdAt": self.created_at.isoformat(),
        }


def assign_entry(entry: QueueEntry, assignee: str) -> QueueEntry:
    """PENDING -> IN_REVIEW. Reassigning an IN_REVIEW entry keeps its status."""
    if not entry.status.is_active:
        raise InvalidTransitionError(entry.status.value, "assign")
    return replace(entry, status=QueueStatus.IN_REVIEW, assigned_to=assignee)


def decide_entry(entry: QueueEntry, decision: QueueStatus | str, notes: str | None = None) -> QueueEntry:
    """Close an active entry as APPROVED or REJECTED."""
    decision = QueueStatus(decision)
    if not entry.status.is_active or decision.is_active:
        raise InvalidTransitionError(entry.status.value, f"decide:{decision.value}")
    return replace(entry, status=decision, notes=notes if notes is not None else entry.notes)


class ReviewQueue:
    """In-memory review queue."""

    def __init__(self):
        self._entries: dict[int, QueueEntry] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: int) -> QueueEntry:
        return self._entries[entry_id]

    def active_entry(self, problem_id: str) -> QueueEntry | None:
        for entry in self._entries.values():
            if entry.problem_id == problem_id and entry.status.is_active:
                return entry
        return None

    def enqueue(
        self,
        problem_id: str,
        review_type: ReviewStage | str,
        priority: int = 0,
        notes: str | None = None,
        confidence: float | None = None,
    ) -> QueueEntry:
        if self.active_entry(problem_id) is not None:
            raise DuplicateQueueEntryError(problem_id)

        entry = QueueEntry(
            problem_id=problem_id,
            review_type=ReviewStage(review_type),
            priority=priority,
            notes=notes,
            confidence=confidence,
            id=next(self._ids),
        )
        self._entries[entry.id] = entry
        logger.debug(f"Queued problem {problem_id} for {entry.review_type.value} review")
        return entry

    def assign(self, entry_id: int, assignee: str) -> QueueEntry:
        entry = assign_entry(self._entries[entry_id], assignee)
        self._entries[entry_id] = entry
        return entry

    def decide(self, entry_id: int, decision: QueueStatus | str, notes: str | None = None) -> QueueEntry:
        entry = decide_entry(self._entries[entry_id], decision, notes)
        self._entries[entry_id] = entry
        return entry

    def close_active(self, problem_id: str, decision: QueueStatus | str) -> QueueEntry | None:
        """Mirror a content decision onto the problem's active entry, if any."""
        entry = self.active_entry(problem_id)
        if entry is None:
            return None
        return self.decide(entry.id, decision)

    def entries(
        self,
        status: QueueStatus | str = QueueStatus.PENDING,
        review_type: ReviewStage | str | None = None,
    ) -> list[QueueEntry]:
        """Entries with the given status, highest priority first, then oldest."""
        status = QueueStatus(status)
        entries = [
            e for e in self._entries.values()
            if e.status == status
            and (review_type is None or e.review_type == ReviewStage(review_type))
        ]
        return sorted(entries, key=lambda e: (-e.priority, e.id))

    def stats(self) -> dict[str, dict[str, int]]:
        by_status = Counter(e.status.value for e in self._entries.values())
        by_type = Counter(
            e.review_type.value for e in self._entries.values()
            if e.status == QueueStatus.PENDING
        )
        return {"byStatus": dict(by_status), "byType": dict(by_type)}


# =============================================================================
# Review submission
# =============================================================================


@dataclass
class ReviewSubmission:
    """A reviewer's verdict on one problem at one stage."""
    problem_id: str
    stage: ReviewStage
    outcome: ReviewOutcome
    score: float | None = None
    issues: dict[str, Any] | None = None
    comments: str | None = None
    reviewer_id: str | None = None

    def __post_init__(self):
        self.stage = ReviewStage(self.stage)
        self.outcome = ReviewOutcome(self.outcome)
        if self.score is not None and not 0 <= self.score <= 100:
            raise ValueError(f"Review score must be within [0, 100], got {self.score}")


def submit_review(state: ContentState, submission: ReviewSubmission) -> Transition:
    """Apply a submitted review to a problem in the given state."""
    return record_review(
        state,
        submission.stage,
        submission.outcome,
        score=submission.score,
        issues=submission.issues,
        comments=submission.comments,
        reviewer_id=submission.reviewer_id,
    )
