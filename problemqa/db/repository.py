"""
Problem repository.

Storage collaborator for the review workflow:
- carries out the side-effect requests attached to workflow transitions
- enforces one PENDING/IN_REVIEW queue item per problem (check-then-insert)
- writes quality scores only as a complete, recomputed set
- appends review records, never updates them
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from problemqa.core.errors import DuplicateQueueEntryError, InvalidTransitionError
from problemqa.core.models import (
    CorpusEntry,
    ProblemRecord,
    ProblemStatus,
    QueueStatus,
    ReviewStage,
    SourceInfo,
)
from problemqa.db.models import Problem, ProblemReview, ProblemSource, ReviewQueueItem
from problemqa.quality.scorer import QualityScorer, QualityScores
from problemqa.workflow.states import (
    AttachGeneratedExplanation,
    ContentState,
    CreateReviewRecord,
    EnqueueForReview,
    MirrorQueueDecision,
    RecomputeQualityScores,
    Transition,
    apply_queue_decision,
)

_ACTIVE_QUEUE_STATUSES = (QueueStatus.PENDING.value, QueueStatus.IN_REVIEW.value)


class ProblemRepository:
    """SQLAlchemy-backed problem store."""

    def __init__(
        self,
        session: Session,
        scorer: QualityScorer | None = None,
        default_source_id: str | None = None,
    ):
        self.session = session
        self.scorer = scorer or QualityScorer()
        self.default_source_id = default_source_id

    # ========================================
    # Sources and problems
    # ========================================

    def add_source(self, name: str, grade: str = "D", trust_score: int | None = None) -> ProblemSource:
        source = ProblemSource(name=name, grade=grade, trust_score=trust_score)
        self.session.add(source)
        self.session.flush()
        return source

    def add_problem(
        self,
        record: ProblemRecord,
        state: ContentState = ContentState.DRAFT,
        source_id: str | None = None,
        subject: str | None = None,
    ) -> str:
        status, stage = state.project()
        problem = Problem(
            content=record.content,
            type=record.type.value if hasattr(record.type, "value") else record.type,
            options=record.options,
            answer=record.answer,
            explanation=record.explanation,
            grade_level=record.grade_level,
            subject=subject,
            difficulty=record.difficulty_key,
            source_id=source_id or self.default_source_id,
            usage_count=record.usage_count,
            correct_rate=record.correct_rate,
            status=status.value,
            review_stage=stage.value,
        )
        self.session.add(problem)
        self.session.flush()
        return problem.id

    def get(self, problem_id: str) -> Problem | None:
        return self.session.get(Problem, problem_id)

    def _require(self, problem_id: str) -> Problem:
        problem = self.get(problem_id)
        if problem is None:
            raise LookupError(f"Problem {problem_id} not found")
        return problem

    @staticmethod
    def state_of(problem: Problem) -> ContentState:
        return ContentState.from_columns(problem.status, problem.review_stage)

    @staticmethod
    def to_record(problem: Problem) -> ProblemRecord:
        source = None
        if problem.source is not None:
            source = SourceInfo(grade=problem.source.grade, trust_score=problem.source.trust_score)
        return ProblemRecord(
            id=problem.id,
            content=problem.content,
            type=problem.type,
            answer=problem.answer or "",
            options=problem.options,
            explanation=problem.explanation,
            difficulty=problem.difficulty,
            grade_level=problem.grade_level,
            usage_count=problem.usage_count or 0,
            correct_rate=problem.correct_rate,
            source=source,
        )

    def corpus(self, limit: int = 500, exclude_id: str | None = None) -> list[CorpusEntry]:
        """Most recent problems for duplicate detection."""
        query = select(Problem.id, Problem.content).order_by(Problem.created_at.desc()).limit(limit)
        if exclude_id is not None:
            query = query.where(Problem.id != exclude_id)
        return [CorpusEntry(id=row.id, content=row.content) for row in self.session.execute(query)]

    def pending_for_stage(self, stage: ReviewStage | str, limit: int = 10) -> list[Problem]:
        result = self.session.execute(
            select(Problem)
            .where(
                and_(
                    Problem.status == ProblemStatus.PENDING.value,
                    Problem.review_stage == ReviewStage(stage).value,
                )
            )
            .order_by(Problem.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    def pending_ai_review(self, limit: int = 10) -> list[tuple[ProblemRecord, ContentState]]:
        return [
            (self.to_record(p), self.state_of(p))
            for p in self.pending_for_stage(ReviewStage.AI, limit)
        ]

    # ========================================
    # Workflow
    # ========================================

    def apply_transition(self, problem_id: str, transition: Transition) -> None:
        """Persist the new state and carry out the transition's side effects."""
        problem = self._require(problem_id)
        status, stage = transition.state.project()
        problem.status = status.value
        problem.review_stage = stage.value

        for effect in transition.effects:
            if isinstance(effect, CreateReviewRecord):
                self.session.add(
                    ProblemReview(
                        problem_id=problem_id,
                        reviewer_id=effect.reviewer_id,
                        stage=effect.stage.value,
                        status=effect.outcome.value,
                        score=effect.score,
                        comments=effect.comments,
                        issues=effect.issues,
                    )
                )
            elif isinstance(effect, EnqueueForReview):
                self.enqueue(problem_id, effect.review_type, priority=effect.priority)
            elif isinstance(effect, MirrorQueueDecision):
                item = self.active_queue_item(problem_id)
                if item is not None:
                    item.status = effect.status.value
                    self.session.flush()
            elif isinstance(effect, AttachGeneratedExplanation):
                if not problem.explanation:
                    problem.explanation = effect.explanation
            elif isinstance(effect, RecomputeQualityScores):
                self.session.flush()
                self.recompute_quality(problem_id)

        # An open work item follows the stage its problem is waiting on
        awaiting = transition.state.awaiting_stage
        item = self.active_queue_item(problem_id)
        if item is not None and awaiting is not None:
            item.review_type = awaiting.value

        self.session.flush()
        logger.debug(f"Problem {problem_id} -> {transition.state.value}")

    def reviews(self, problem_id: str) -> list[ProblemReview]:
        result = self.session.execute(
            select(ProblemReview)
            .where(ProblemReview.problem_id == problem_id)
            .order_by(ProblemReview.id)
        )
        return list(result.scalars().all())

    # ========================================
    # Review queue
    # ========================================

    def active_queue_item(self, problem_id: str) -> ReviewQueueItem | None:
        result = self.session.execute(
            select(ReviewQueueItem).where(
                and_(
                    ReviewQueueItem.problem_id == problem_id,
                    ReviewQueueItem.status.in_(_ACTIVE_QUEUE_STATUSES),
                )
            )
        )
        return result.scalars().first()

    def enqueue(
        self,
        problem_id: str,
        review_type: ReviewStage | str,
        priority: int = 0,
        notes: str | None = None,
        confidence: float | None = None,
    ) -> ReviewQueueItem:
        if self.active_queue_item(problem_id) is not None:
            raise DuplicateQueueEntryError(problem_id)

        item = ReviewQueueItem(
            problem_id=problem_id,
            review_type=ReviewStage(review_type).value,
            priority=priority,
            notes=notes,
            confidence=confidence,
        )
        self.session.add(item)
        self.session.flush()
        return item

    def queue_items(
        self,
        status: QueueStatus | str = QueueStatus.PENDING,
        review_type: ReviewStage | str | None = None,
        limit: int = 20,
    ) -> list[ReviewQueueItem]:
        conditions = [ReviewQueueItem.status == QueueStatus(status).value]
        if review_type is not None:
            conditions.append(ReviewQueueItem.review_type == ReviewStage(review_type).value)

        result = self.session.execute(
            select(ReviewQueueItem)
            .where(and_(*conditions))
            .order_by(ReviewQueueItem.priority.desc(), ReviewQueueItem.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    def queue_stats(self) -> dict[str, dict[str, int]]:
        by_status = self.session.execute(
            select(ReviewQueueItem.status, func.count(ReviewQueueItem.id))
            .group_by(ReviewQueueItem.status)
        )
        by_type = self.session.execute(
            select(ReviewQueueItem.review_type, func.count(ReviewQueueItem.id))
            .where(ReviewQueueItem.status == QueueStatus.PENDING.value)
            .group_by(ReviewQueueItem.review_type)
        )
        return {
            "byStatus": {status: count for status, count in by_status},
            "byType": {review_type: count for review_type, count in by_type},
        }

    def assign_queue_item(self, item_id: int, assignee: str) -> ReviewQueueItem:
        item = self._require_queue_item(item_id)
        if item.status not in _ACTIVE_QUEUE_STATUSES:
            raise InvalidTransitionError(item.status, "assign")
        item.status = QueueStatus.IN_REVIEW.value
        item.assigned_to = assignee
        self.session.flush()
        return item

    def decide_queue_item(
        self,
        item_id: int,
        decision: QueueStatus | str,
        notes: str | None = None,
    ) -> ReviewQueueItem:
        """Close a queue item and mirror the decision onto its problem."""
        item = self._require_queue_item(item_id)
        decision = QueueStatus(decision)
        if item.status not in _ACTIVE_QUEUE_STATUSES or decision.is_active:
            raise InvalidTransitionError(item.status, f"decide:{decision.value}")

        problem = self._require(item.problem_id)
        transition = apply_queue_decision(self.state_of(problem), decision)

        item.status = decision.value
        if notes is not None:
            item.notes = notes
        self.apply_transition(problem.id, transition)
        return item

    def _require_queue_item(self, item_id: int) -> ReviewQueueItem:
        item = self.session.get(ReviewQueueItem, item_id)
        if item is None:
            raise LookupError(f"Queue item {item_id} not found")
        return item

    # ========================================
    # Quality scores
    # ========================================

    def recompute_quality(self, problem_id: str) -> QualityScores:
        problem = self._require(problem_id)
        scores = self.scorer.score(self.to_record(problem))
        problem.apply_quality_scores(scores)
        self.session.flush()
        return scores

    def recompute_approved(self) -> int:
        """Recompute scores for every approved problem. Returns the count."""
        result = self.session.execute(
            select(Problem).where(Problem.status == ProblemStatus.APPROVED.value)
        )
        problems = list(result.scalars().all())
        for problem in problems:
            problem.apply_quality_scores(self.scorer.score(self.to_record(problem)))
        self.session.flush()
        logger.info(f"Recomputed quality scores for {len(problems)} approved problems")
        return len(problems)
