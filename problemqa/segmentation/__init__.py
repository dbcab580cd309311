"""Document text segmentation into candidate problems."""

from problemqa.segmentation.segmenter import (
    ExtractedText,
    ParseResult,
    TextSegmenter,
    ValidationReport,
    detect_problem_type,
    extract_text_from_file,
    normalize_text,
    parse_document,
    parse_problems_from_text,
    validate_problems,
)
from problemqa.segmentation.strategies import (
    ANSWER_STRATEGIES,
    EXPLANATION_STRATEGIES,
    OPTION_STRATEGIES,
    ExtractionStrategy,
    StrategyMatch,
    first_match,
)

__all__ = [
    "TextSegmenter",
    "ParseResult",
    "ExtractedText",
    "ValidationReport",
    "normalize_text",
    "detect_problem_type",
    "parse_problems_from_text",
    "parse_document",
    "extract_text_from_file",
    "validate_problems",
    "ExtractionStrategy",
    "StrategyMatch",
    "first_match",
    "OPTION_STRATEGIES",
    "ANSWER_STRATEGIES",
    "EXPLANATION_STRATEGIES",
]
