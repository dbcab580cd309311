"""
Core Module - Shared domain models, lookup tables and errors.

All analyzer packages (segmentation, classification, similarity, review,
quality, workflow) import their shared concepts from here rather than
redefining them.
"""

from problemqa.core.errors import (
    DuplicateQueueEntryError,
    InvalidTransitionError,
    PipelineError,
    UnsupportedFileTypeError,
)
from problemqa.core.models import (
    CandidateProblem,
    CorpusEntry,
    DifficultyLevel,
    DifficultyTier,
    ProblemRecord,
    ProblemStatus,
    ProblemType,
    QueueStatus,
    RecommendedAction,
    ReviewOutcome,
    ReviewStage,
    SourceGrade,
    SourceInfo,
    encode_options,
    parse_options,
)
from problemqa.core.tables import (
    DEFAULT_CLASSIFIER_TABLES,
    DEFAULT_DIFFICULTY_TABLES,
    DEFAULT_SCORING_TABLES,
    ClassifierTables,
    DifficultyTables,
    ScoringTables,
)

__all__ = [
    # Errors
    "PipelineError",
    "InvalidTransitionError",
    "DuplicateQueueEntryError",
    "UnsupportedFileTypeError",
    # Models
    "CandidateProblem",
    "CorpusEntry",
    "ProblemRecord",
    "SourceInfo",
    "parse_options",
    "encode_options",
    # Enums
    "ProblemType",
    "ProblemStatus",
    "ReviewStage",
    "ReviewOutcome",
    "QueueStatus",
    "RecommendedAction",
    "DifficultyLevel",
    "DifficultyTier",
    "SourceGrade",
    # Tables
    "ClassifierTables",
    "DifficultyTables",
    "ScoringTables",
    "DEFAULT_CLASSIFIER_TABLES",
    "DEFAULT_DIFFICULTY_TABLES",
    "DEFAULT_SCORING_TABLES",
]
