"""
SQLAlchemy models for the problem store.

Implements:
- ProblemSource: content source with trust grade
- Problem: problem content plus pipeline-owned scores and workflow columns
- ProblemReview: append-only review history
- ReviewQueueItem: work item for a problem under review
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from problemqa.core.models import (
    ProblemStatus,
    ProblemType,
    QueueStatus,
    ReviewStage,
)
from problemqa.quality.scorer import QualityScores


def _uuid() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class ProblemSource(Base):
    """Where problems come from, with a trust grade (A-E)."""

    __tablename__ = "problem_sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    grade: Mapped[str] = mapped_column(String(1), default="D")
    trust_score: Mapped[int | None] = mapped_column(Integer)  # Explicit override

    created_at: Mapped[datetime] = mapped_column(default=func.now())

    problems: Mapped[list[Problem]] = relationship(back_populates="source")


class Problem(Base):
    """
    A persisted problem.

    status and review_stage are written together from a ContentState
    projection. The five component scores and quality_score are written only
    through apply_quality_scores, so quality_score always matches them.
    """

    __tablename__ = "problems"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)

    # Content
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=ProblemType.SHORT_ANSWER.value)
    options: Mapped[str | None] = mapped_column(Text)  # JSON-encoded array
    answer: Mapped[str] = mapped_column(Text, default="")
    explanation: Mapped[str | None] = mapped_column(Text)
    grade_level: Mapped[str | None] = mapped_column(String(20))
    subject: Mapped[str | None] = mapped_column(String(20))
    difficulty: Mapped[str] = mapped_column(String(10), default="MEDIUM")
    source_id: Mapped[str | None] = mapped_column(
        ForeignKey("problem_sources.id", ondelete="SET NULL")
    )

    # Usage
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    correct_rate: Mapped[float | None] = mapped_column(Float)

    # Pipeline-owned scores (0-100)
    accuracy_score: Mapped[float | None] = mapped_column(Float)
    clarity_score: Mapped[float | None] = mapped_column(Float)
    difficulty_fit: Mapped[float | None] = mapped_column(Float)
    trust_score: Mapped[float | None] = mapped_column(Float)
    usage_score: Mapped[float | None] = mapped_column(Float)
    quality_score: Mapped[float | None] = mapped_column(Float)

    # Workflow
    status: Mapped[str] = mapped_column(String(20), default=ProblemStatus.DRAFT.value)
    review_stage: Mapped[str] = mapped_column(String(20), default=ReviewStage.NONE.value)

    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    # Relationships
    source: Mapped[ProblemSource | None] = relationship(back_populates="problems")
    reviews: Mapped[list[ProblemReview]] = relationship(
        back_populates="problem", order_by="ProblemReview.id"
    )
    queue_items: Mapped[list[ReviewQueueItem]] = relationship(back_populates="problem")

    def apply_quality_scores(self, scores: QualityScores) -> None:
        self.accuracy_score = scores.accuracy_score
        self.clarity_score = scores.clarity_score
        self.difficulty_fit = scores.difficulty_fit
        self.trust_score = scores.trust_score
        self.usage_score = scores.usage_score
        self.quality_score = scores.overall_score


class ProblemReview(Base):
    """One review pass. Rows are inserted, never updated."""

    __tablename__ = "problem_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    problem_id: Mapped[str] = mapped_column(
        ForeignKey("problems.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id: Mapped[str | None] = mapped_column(Text)
    stage: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # ReviewOutcome
    score: Mapped[float | None] = mapped_column(Float)
    comments: Mapped[str | None] = mapped_column(Text)
    issues: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(default=func.now())

    problem: Mapped[Problem] = relationship(back_populates="reviews")


class ReviewQueueItem(Base):
    """Problem awaiting review. One PENDING/IN_REVIEW item per problem."""

    __tablename__ = "review_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    problem_id: Mapped[str] = mapped_column(
        ForeignKey("problems.id", ondelete="CASCADE"), nullable=False
    )
    review_type: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default=QueueStatus.PENDING.value)
    assigned_to: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    confidence: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    problem: Mapped[Problem] = relationship(back_populates="queue_items")
