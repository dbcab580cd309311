"""
Review workflow state machine.

A problem's lifecycle status and review stage are projected from one tagged
ContentState, so combinations such as APPROVED with review stage NONE cannot
be represented:

    DRAFT ──submit──> AWAITING_AUTO ──APPROVED──> AWAITING_AI ──APPROVED──> AWAITING_MANUAL
                           │                           │                          │
                           └──────REJECTED─────────────┴─────────REJECTED─────────┤
                                                                                  │
                                  REJECTED <──────────────────────────────────────┤
                                  APPROVED <──────────APPROVED────────────────────┘
                                      │
                                      └──archive──> ARCHIVED

NEEDS_REVISION keeps the problem at its current stage.

Transition functions never mutate anything. They return the next state plus
the side-effect requests (review records, queue changes) that the caller's
storage layer must carry out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from problemqa.core.errors import InvalidTransitionError
from problemqa.core.models import (
    ProblemStatus,
    QueueStatus,
    ReviewOutcome,
    ReviewStage,
)
from problemqa.review.reviewer import ReviewResult


class ContentState(str, Enum):
    DRAFT = "DRAFT"
    AWAITING_AUTO = "AWAITING_AUTO"
    AWAITING_AI = "AWAITING_AI"
    AWAITING_MANUAL = "AWAITING_MANUAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"

    @property
    def status(self) -> ProblemStatus:
        return _PROJECTION[self][0]

    @property
    def review_stage(self) -> ReviewStage:
        return _PROJECTION[self][1]

    @property
    def is_terminal(self) -> bool:
        return self in (ContentState.REJECTED, ContentState.ARCHIVED)

    @property
    def awaiting_stage(self) -> ReviewStage | None:
        """Review stage this state is waiting on, if any."""
        return _AWAITING.get(self)

    def project(self) -> tuple[ProblemStatus, ReviewStage]:
        return _PROJECTION[self]

    @classmethod
    def from_columns(
        cls, status: ProblemStatus | str, review_stage: ReviewStage | str
    ) -> ContentState:
        """Recover the tagged state from stored status/reviewStage columns."""
        status = ProblemStatus(status)
        review_stage = ReviewStage(review_stage)

        if status == ProblemStatus.PENDING:
            return {
                ReviewStage.NONE: cls.AWAITING_AUTO,
                ReviewStage.AUTO: cls.AWAITING_AUTO,
                ReviewStage.AI: cls.AWAITING_AI,
                ReviewStage.MANUAL: cls.AWAITING_MANUAL,
            }[review_stage]
        return {
            ProblemStatus.DRAFT: cls.DRAFT,
            ProblemStatus.APPROVED: cls.APPROVED,
            ProblemStatus.REJECTED: cls.REJECTED,
            ProblemStatus.ARCHIVED: cls.ARCHIVED,
        }[status]


_PROJECTION = {
    ContentState.DRAFT: (ProblemStatus.DRAFT, ReviewStage.NONE),
    ContentState.AWAITING_AUTO: (ProblemStatus.PENDING, ReviewStage.AUTO),
    ContentState.AWAITING_AI: (ProblemStatus.PENDING, ReviewStage.AI),
    ContentState.AWAITING_MANUAL: (ProblemStatus.PENDING, ReviewStage.MANUAL),
    ContentState.APPROVED: (ProblemStatus.APPROVED, ReviewStage.MANUAL),
    ContentState.REJECTED: (ProblemStatus.REJECTED, ReviewStage.NONE),
    ContentState.ARCHIVED: (ProblemStatus.ARCHIVED, ReviewStage.MANUAL),
}

_AWAITING = {
    ContentState.AWAITING_AUTO: ReviewStage.AUTO,
    ContentState.AWAITING_AI: ReviewStage.AI,
    ContentState.AWAITING_MANUAL: ReviewStage.MANUAL,
}

# Where an APPROVED review at each stage leads
_ADVANCE = {
    ReviewStage.AUTO: ContentState.AWAITING_AI,
    ReviewStage.AI: ContentState.AWAITING_MANUAL,
    ReviewStage.MANUAL: ContentState.APPROVED,
}


# =============================================================================
# Side-effect requests
# =============================================================================


@dataclass(frozen=True)
class CreateReviewRecord:
    """Append one review record to the problem's history."""
    stage: ReviewStage
    outcome: ReviewOutcome
    score: float | None = None
    issues: dict[str, Any] | None = None
    comments: str | None = None
    reviewer_id: str | None = None


@dataclass(frozen=True)
class EnqueueForReview:
    """Create a PENDING queue entry; refused when one is already active."""
    review_type: ReviewStage
    priority: int = 0


@dataclass(frozen=True)
class MirrorQueueDecision:
    """Close the problem's active queue entry with the content decision."""
    status: QueueStatus


@dataclass(frozen=True)
class AttachGeneratedExplanation:
    """Fill an empty explanation with the reviewer's generated draft."""
    explanation: str


@dataclass(frozen=True)
class RecomputeQualityScores:
    """Recompute and persist the quality scores of an approved problem."""


Effect = Union[
    CreateReviewRecord,
    EnqueueForReview,
    MirrorQueueDecision,
    AttachGeneratedExplanation,
    RecomputeQualityScores,
]


@dataclass(frozen=True)
class Transition:
    state: ContentState
    effects: tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def status(self) -> ProblemStatus:
        return self.state.status

    @property
    def review_stage(self) -> ReviewStage:
        return self.state.review_stage


# =============================================================================
# Transition functions
# =============================================================================


def submit(state: ContentState, priority: int = 0) -> Transition:
    """DRAFT -> AWAITING_AUTO, queueing the problem for review."""
    if state != ContentState.DRAFT:
        raise InvalidTransitionError(state.value, "submit")
    return Transition(
        ContentState.AWAITING_AUTO,
        (EnqueueForReview(ReviewStage.AUTO, priority),),
    )


def record_review(
    state: ContentState,
    stage: ReviewStage | str,
    outcome: ReviewOutcome | str,
    score: float | None = None,
    issues: dict[str, Any] | None = None,
    comments: str | None = None,
    reviewer_id: str | None = None,
) -> Transition:
    """
    Apply a review pass at the stage the problem is currently awaiting.

    APPROVED advances AUTO -> AI -> MANUAL -> approved; REJECTED rejects the
    problem from any stage; NEEDS_REVISION keeps the current state.
    """
    stage = ReviewStage(stage)
    outcome = ReviewOutcome(outcome)
    event = f"review:{stage.value}:{outcome.value}"

    if state.awaiting_stage != stage:
        raise InvalidTransitionError(state.value, event)

    effects: list[Effect] = [
        CreateReviewRecord(
            stage=stage,
            outcome=outcome,
            score=score,
            issues=issues,
            comments=comments,
            reviewer_id=reviewer_id,
        )
    ]

    if outcome == ReviewOutcome.APPROVED:
        next_state = _ADVANCE[stage]
    elif outcome == ReviewOutcome.REJECTED:
        next_state = ContentState.REJECTED
    else:
        next_state = state

    effects.extend(_terminal_effects(next_state))
    return Transition(next_state, tuple(effects))


def record_ai_review(
    state: ContentState,
    result: ReviewResult,
    has_explanation: bool = True,
    reviewer_id: str | None = None,
) -> Transition:
    """
    Apply a heuristic reviewer result to a problem awaiting AI review.

    REJECT short-circuits to REJECTED (review stage NONE); APPROVE moves on to
    manual review and attaches the generated explanation when the problem has
    none. REVISE also hands the problem to manual review, where a human
    revises it; an AI-stage problem is never left waiting on the AI stage.
    """
    outcome = result.recommended_action.to_outcome()
    summary = ", ".join(result.detected_issues) or "no issues"

    transition = record_review(
        state,
        ReviewStage.AI,
        outcome,
        score=result.review_score,
        issues=result.issues_payload(),
        comments=f"AI review: {summary}",
        reviewer_id=reviewer_id,
    )

    if outcome == ReviewOutcome.NEEDS_REVISION:
        transition = Transition(ContentState.AWAITING_MANUAL, transition.effects)

    if (
        outcome == ReviewOutcome.APPROVED
        and not has_explanation
        and result.generated_explanation
    ):
        return Transition(
            transition.state,
            transition.effects + (AttachGeneratedExplanation(result.generated_explanation),),
        )
    return transition


def apply_queue_decision(state: ContentState, decision: QueueStatus | str) -> Transition:
    """
    Mirror a terminal queue decision onto the problem.

    An APPROVED entry approves the problem; a REJECTED entry rejects it.
    """
    decision = QueueStatus(decision)
    event = f"queue:{decision.value}"

    if state.awaiting_stage is None or decision.is_active:
        raise InvalidTransitionError(state.value, event)

    next_state = ContentState.APPROVED if decision == QueueStatus.APPROVED else ContentState.REJECTED
    effects: list[Effect] = [
        CreateReviewRecord(
            stage=state.awaiting_stage,
            outcome=ReviewOutcome(decision.value),
            comments="Queue decision",
        )
    ]
    if next_state == ContentState.APPROVED:
        effects.append(RecomputeQualityScores())
    return Transition(next_state, tuple(effects))


def archive(state: ContentState) -> Transition:
    """APPROVED -> ARCHIVED (soft delete)."""
    if state != ContentState.APPROVED:
        raise InvalidTransitionError(state.value, "archive")
    return Transition(ContentState.ARCHIVED)


def _terminal_effects(state: ContentState) -> list[Effect]:
    if state == ContentState.APPROVED:
        return [MirrorQueueDecision(QueueStatus.APPROVED), RecomputeQualityScores()]
    if state == ContentState.REJECTED:
        return [MirrorQueueDecision(QueueStatus.REJECTED)]
    return []
