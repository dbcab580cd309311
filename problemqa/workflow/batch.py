"""
Batch AI review.

Runs the heuristic reviewer over every problem awaiting the AI stage in one
sequential pass. Each item is isolated: an exception is logged and recorded
as a failed outcome, and the loop moves on to the next problem.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from problemqa.core.models import ProblemRecord, RecommendedAction
from problemqa.review.reviewer import HeuristicReviewer
from problemqa.workflow.states import ContentState, Transition, record_ai_review


class ReviewStore(Protocol):
    """Storage operations batch review needs."""

    def pending_ai_review(self, limit: int) -> list[tuple[ProblemRecord, ContentState]]:
        ...

    def apply_transition(self, problem_id: str, transition: Transition) -> None:
        ...


@dataclass
class BatchItemOutcome:
    problem_id: str | None
    success: bool
    recommended_action: RecommendedAction | None = None
    issue_count: int = 0
    state: ContentState | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"problemId": self.problem_id, "success": self.success}
        if self.success:
            data["recommendedAction"] = self.recommended_action.value
            data["issues"] = self.issue_count
            data["state"] = self.state.value
        else:
            data["error"] = self.error
        return data


@dataclass
class BatchReport:
    outcomes: list[BatchItemOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "results": [o.to_dict() for o in self.outcomes],
        }


class BatchReviewer:
    """Sequential AI-stage reviewer with per-item isolation."""

    def __init__(self, reviewer: HeuristicReviewer | None = None):
        self.reviewer = reviewer or HeuristicReviewer()

    def review_items(
        self,
        items: Iterable[tuple[ProblemRecord, ContentState]],
        apply: Callable[[ProblemRecord, Transition], None] | None = None,
    ) -> BatchReport:
        report = BatchReport()

        for problem, state in items:
            try:
                result = self.reviewer.review(problem)
                transition = record_ai_review(
                    state,
                    result,
                    has_explanation=bool(problem.explanation),
                )
                if apply is not None:
                    apply(problem, transition)
            except Exception as e:
                logger.warning(f"Batch review failed for problem {problem.id}: {e}")
                report.outcomes.append(
                    BatchItemOutcome(problem_id=problem.id, success=False, error=str(e))
                )
                continue

            report.outcomes.append(
                BatchItemOutcome(
                    problem_id=problem.id,
                    success=True,
                    recommended_action=result.recommended_action,
                    issue_count=len(result.detected_issues),
                    state=transition.state,
                )
            )

        logger.info(
            f"Batch AI review complete: {report.processed} processed, {report.failed} failed"
        )
        return report

    def run(self, store: ReviewStore, limit: int = 10) -> BatchReport:
        """Review up to ``limit`` problems awaiting AI review and persist the results."""
        items = store.pending_ai_review(limit)
        return self.review_items(
            items,
            apply=lambda problem, transition: store.apply_transition(problem.id, transition),
        )
