"""
Content ingestion pipeline.

raw text -> segmenter -> {classifier, difficulty estimator, duplicate detector}
-> automatic validation -> heuristic reviewer -> workflow state

Analyzers are pure; persistence happens only through an optional store that
receives the new problem and every workflow transition.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from config import Settings
from problemqa.classification.difficulty import DifficultyEstimator, DifficultyResult
from problemqa.classification.subject import ClassificationResult, SubjectClassifier
from problemqa.core.models import (
    CandidateProblem,
    CorpusEntry,
    ProblemRecord,
    ReviewOutcome,
    ReviewStage,
    SourceInfo,
)
from problemqa.quality.scorer import QualityScorer, QualityScores
from problemqa.review.reviewer import HeuristicReviewer, ReviewResult
from problemqa.segmentation.segmenter import ParseResult, TextSegmenter, validate_problems
from problemqa.similarity.duplicates import DEFAULT_DUPLICATE_THRESHOLD
from problemqa.workflow.states import (
    ContentState,
    Effect,
    Transition,
    record_ai_review,
    record_review,
    submit,
)


class ProblemStore(Protocol):
    """Storage operations ingestion needs."""

    def add_problem(
        self, record: ProblemRecord, state: ContentState, subject: str | None = None
    ) -> str:
        ...

    def apply_transition(self, problem_id: str, transition: Transition) -> None:
        ...


@dataclass
class IngestedProblem:
    candidate: CandidateProblem
    record: ProblemRecord
    classification: ClassificationResult
    difficulty: DifficultyResult
    quality: QualityScores
    state: ContentState
    review: ReviewResult | None = None
    validation_error: str | None = None
    effects: list[Effect] = field(default_factory=list)

    @property
    def problem_id(self) -> str | None:
        return self.record.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "problemId": self.problem_id,
            "problem": self.candidate.to_dict(),
            "classification": self.classification.to_dict(),
            "difficulty": self.difficulty.to_dict(),
            "review": self.review.to_dict() if self.review else None,
            "quality": self.quality.to_dict(),
            "status": self.state.status.value,
            "reviewStage": self.state.review_stage.value,
            "validationError": self.validation_error,
        }


@dataclass
class IngestReport:
    parse: ParseResult
    problems: list[IngestedProblem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.parse.success,
            "errors": list(self.parse.errors),
            "problems": [p.to_dict() for p in self.problems],
        }


class ContentPipeline:
    """Runs raw document text through every analyzer and the review workflow."""

    def __init__(
        self,
        segmenter: TextSegmenter | None = None,
        classifier: SubjectClassifier | None = None,
        estimator: DifficultyEstimator | None = None,
        reviewer: HeuristicReviewer | None = None,
        scorer: QualityScorer | None = None,
        duplicate_threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
        corpus_limit: int | None = None,
    ):
        self.segmenter = segmenter or TextSegmenter()
        self.classifier = classifier or SubjectClassifier()
        self.estimator = estimator or DifficultyEstimator()
        self.reviewer = reviewer or HeuristicReviewer()
        self.scorer = scorer or QualityScorer()
        self.duplicate_threshold = duplicate_threshold
        self.corpus_limit = corpus_limit

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentPipeline:
        return cls(
            reviewer=HeuristicReviewer(approve_confidence=settings.review_approve_confidence),
            duplicate_threshold=settings.duplicate_threshold,
            corpus_limit=settings.duplicate_corpus_limit,
        )

    def ingest(
        self,
        text: str,
        corpus: Iterable[CorpusEntry] = (),
        grade_level: str | None = None,
        source: SourceInfo | None = None,
        store: ProblemStore | None = None,
    ) -> IngestReport:
        parsed = self.segmenter.parse(text)
        report = IngestReport(parse=parsed)

        corpus = list(corpus)
        if self.corpus_limit is not None:
            corpus = corpus[: self.corpus_limit]

        for candidate in parsed.problems:
            report.problems.append(
                self.process(candidate, corpus, grade_level=grade_level, source=source, store=store)
            )
            # Later candidates in the same document are checked against earlier ones
            if report.problems[-1].problem_id is not None:
                corpus.append(CorpusEntry(report.problems[-1].problem_id, candidate.content))

        logger.info(
            f"Ingested {len(report.problems)} problems "
            f"({len(parsed.errors)} parse errors)"
        )
        return report

    def process(
        self,
        candidate: CandidateProblem,
        corpus: Iterable[CorpusEntry] = (),
        grade_level: str | None = None,
        source: SourceInfo | None = None,
        store: ProblemStore | None = None,
    ) -> IngestedProblem:
        classification = self.classifier.classify(
            candidate.content, corpus, threshold=self.duplicate_threshold
        )
        difficulty = self.estimator.estimate(candidate.content, candidate.options, grade_level)
        record = candidate.to_record(
            difficulty=classification.suggested_difficulty,
            grade_level=grade_level,
            source=source,
        )

        state = ContentState.DRAFT
        if store is not None:
            record.id = store.add_problem(
                record, state, subject=classification.suggested_subject
            )

        effects: list[Effect] = []

        def advance(transition: Transition) -> ContentState:
            if store is not None:
                store.apply_transition(record.id, transition)
            effects.extend(transition.effects)
            return transition.state

        state = advance(submit(state))

        validation = validate_problems([candidate])
        validation_error = validation.invalid[0][1] if validation.invalid else None
        auto_issues: dict[str, Any] = {
            "issues": [validation_error] if validation_error else [],
            "duplicates": [d.to_dict() for d in classification.duplicates],
        }
        state = advance(
            record_review(
                state,
                ReviewStage.AUTO,
                ReviewOutcome.REJECTED if validation_error else ReviewOutcome.APPROVED,
                issues=auto_issues,
                comments=f"Automatic validation: {validation_error or 'passed'}",
            )
        )

        review = None
        if state == ContentState.AWAITING_AI:
            review = self.reviewer.review(record)
            state = advance(
                record_ai_review(state, review, has_explanation=bool(record.explanation))
            )

        return IngestedProblem(
            candidate=candidate,
            record=record,
            classification=classification,
            difficulty=difficulty,
            quality=self.scorer.score(record),
            state=state,
            review=review,
            validation_error=validation_error,
            effects=effects,
        )
