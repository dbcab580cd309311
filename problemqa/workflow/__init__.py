"""Review workflow: content state machine, review queue, batch review and ingestion."""

from problemqa.workflow.batch import BatchItemOutcome, BatchReport, BatchReviewer
from problemqa.workflow.pipeline import ContentPipeline, IngestedProblem, IngestReport
from problemqa.workflow.queue import (
    QueueEntry,
    ReviewQueue,
    ReviewSubmission,
    assign_entry,
    decide_entry,
    submit_review,
)
from problemqa.workflow.states import (
    AttachGeneratedExplanation,
    ContentState,
    CreateReviewRecord,
    EnqueueForReview,
    MirrorQueueDecision,
    RecomputeQualityScores,
    Transition,
    apply_queue_decision,
    archive,
    record_ai_review,
    record_review,
    submit,
)

__all__ = [
    "ContentState",
    "Transition",
    "CreateReviewRecord",
    "EnqueueForReview",
    "MirrorQueueDecision",
    "AttachGeneratedExplanation",
    "RecomputeQualityScores",
    "submit",
    "record_review",
    "record_ai_review",
    "apply_queue_decision",
    "archive",
    "QueueEntry",
    "ReviewQueue",
    "ReviewSubmission",
    "assign_entry",
    "decide_entry",
    "submit_review",
    "BatchReviewer",
    "BatchReport",
    "BatchItemOutcome",
    "ContentPipeline",
    "IngestedProblem",
    "IngestReport",
]
