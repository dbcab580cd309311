"""
Text Segmenter.

Splits raw document text (possibly noisy from OCR or copy-paste) into
candidate problem blocks and pulls options, answer and explanation out of
each block. Parsing never raises past the public entry points: fragments that
fail are reported in the result's error list.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from loguru import logger

from problemqa.core.errors import UnsupportedFileTypeError
from problemqa.core.models import CandidateProblem, ProblemType
from problemqa.segmentation.strategies import (
    ANSWER_LINE_PATTERNS,
    ANSWER_STRATEGIES,
    EXPLANATION_STRATEGIES,
    EXPLANATION_TAIL_PATTERNS,
    OPTION_STRATEGIES,
    ExtractionStrategy,
    first_match,
)

# "1.", "1)", "[1]", "문1.", "문제 1:" or "【1】" at a line start
PROBLEM_START = re.compile(
    r"(?:^|\n)\s*(?:문제?\s*)?(?:\[?\d+\]?[.):]\s*|【\d+】)",
    re.MULTILINE,
)

MIN_FRAGMENT_LENGTH = 10

TRUE_FALSE_CUES = ("O/X", "O, X", "참/거짓", "맞으면", "틀리면")
ESSAY_CUES = ("서술하시오", "설명하시오", "논술", "기술하시오", "작성하시오")

SUPPORTED_MIME_TYPES = ("text/plain",)


@dataclass
class ParseResult:
    """Result of segmenting one document."""

    success: bool
    problems: list[CandidateProblem] = field(default_factory=list)
    raw_text: str = ""
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "problems": [p.to_dict() for p in self.problems],
            "rawText": self.raw_text,
            "errors": list(self.errors),
        }


@dataclass
class ExtractedText:
    """Text pulled out of an uploaded file; error is set instead of raising."""

    text: str
    error: str | None = None


@dataclass
class ValidationReport:
    """Candidates split into structurally valid and invalid ones."""

    valid: list[CandidateProblem] = field(default_factory=list)
    invalid: list[tuple[CandidateProblem, str]] = field(default_factory=list)


def normalize_text(text: str) -> str:
    """Normalize line endings and tabs."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " ").strip()


def detect_problem_type(text: str, options: Sequence[str]) -> ProblemType:
    """Classify a problem's type from keyword cues and option count."""
    if any(cue in text for cue in TRUE_FALSE_CUES):
        return ProblemType.TRUE_FALSE
    if any(cue in text for cue in ESSAY_CUES):
        return ProblemType.ESSAY
    if len(options) >= 2:
        return ProblemType.MULTIPLE_CHOICE
    return ProblemType.SHORT_ANSWER


class TextSegmenter:
    """
    Splits documents into candidate problems.

    Option, answer and explanation extraction are each an ordered list of
    strategies evaluated first-match-wins; pass custom lists to support new
    marker styles.
    """

    def __init__(
        self,
        option_strategies: Sequence[ExtractionStrategy] = OPTION_STRATEGIES,
        answer_strategies: Sequence[ExtractionStrategy] = ANSWER_STRATEGIES,
        explanation_strategies: Sequence[ExtractionStrategy] = EXPLANATION_STRATEGIES,
        min_fragment_length: int = MIN_FRAGMENT_LENGTH,
    ):
        self.option_strategies = tuple(option_strategies)
        self.answer_strategies = tuple(answer_strategies)
        self.explanation_strategies = tuple(explanation_strategies)
        self.min_fragment_length = min_fragment_length

    def parse(self, text: str) -> ParseResult:
        """
        Parse raw text into candidate problems.

        Returns:
            ParseResult; success is False when no candidate was produced.
        """
        normalized = normalize_text(text or "")
        problems: list[CandidateProblem] = []
        errors: list[str] = []

        for fragment in self.split(normalized):
            try:
                problem = self.parse_fragment(fragment)
            except Exception as e:
                logger.debug(f"Fragment parse failed: {e}")
                errors.append(f"Failed to parse: {fragment[:50]}...")
                continue
            if problem is not None:
                problems.append(problem)

        if not problems:
            logger.debug(f"No problems found in {len(normalized)} chars of text")

        return ParseResult(
            success=len(problems) > 0,
            problems=problems,
            raw_text=normalized,
            errors=errors,
        )

    def split(self, text: str) -> list[str]:
        """Split text on problem-start markers, dropping short fragments."""
        fragments = (f.strip() for f in PROBLEM_START.split(text))
        return [f for f in fragments if len(f) > self.min_fragment_length]

    def parse_fragment(self, text: str) -> CandidateProblem | None:
        """Parse a single problem block."""
        if len(text) < self.min_fragment_length:
            return None

        answer_match = first_match(self.answer_strategies, text)
        explanation_match = first_match(self.explanation_strategies, text)
        answer = answer_match.values[0] if answer_match else None
        explanation = explanation_match.values[0] if explanation_match else None

        # Options are only searched in the problem body so answer and
        # explanation lines never produce extra options.
        body = self._strip_solution(text, answer is not None, explanation is not None)
        option_match = first_match(self.option_strategies, body)
        options = option_match.values if option_match else []

        content = body
        if option_match:
            content = option_match.strategy.strip(content)
        content = re.sub(r"\n{3,}", "\n\n", content).strip()

        return CandidateProblem(
            content=content,
            type=detect_problem_type(text, options),
            raw_text=text,
            options=options or None,
            answer=answer,
            explanation=explanation or None,
        )

    @staticmethod
    def _strip_solution(text: str, has_answer: bool, has_explanation: bool) -> str:
        if has_explanation:
            for pattern in EXPLANATION_TAIL_PATTERNS:
                text = pattern.sub("", text)
        if has_answer:
            for pattern in ANSWER_LINE_PATTERNS:
                text = pattern.sub("", text)
        return text


_default_segmenter = TextSegmenter()


def parse_problems_from_text(text: str) -> ParseResult:
    """Parse raw text with the default strategies."""
    return _default_segmenter.parse(text)


def extract_text_from_file(content: bytes | str, mime_type: str) -> ExtractedText:
    """
    Extract text from an uploaded file.

    Only text/plain is handled here; other types must be converted to text by
    an external converter. Failures come back as an error string.

    Args:
        content: Raw bytes, or a base64-encoded string
        mime_type: Declared MIME type of the upload
    """
    try:
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFileTypeError(mime_type)
        raw = base64.b64decode(content, validate=True) if isinstance(content, str) else content
        return ExtractedText(text=raw.decode("utf-8"))
    except UnsupportedFileTypeError as e:
        return ExtractedText(text="", error=str(e))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        return ExtractedText(text="", error=f"Failed to extract text: {e}")


def parse_document(content: bytes | str, mime_type: str = "text/plain") -> ParseResult:
    """Extract text from a file and parse it; extraction errors land in errors."""
    extracted = extract_text_from_file(content, mime_type)
    if extracted.error:
        logger.warning(extracted.error)
        return ParseResult(success=False, raw_text="", errors=[extracted.error])
    return parse_problems_from_text(extracted.text)


def validate_problems(problems: Sequence[CandidateProblem]) -> ValidationReport:
    """Separate structurally valid candidates from invalid ones."""
    report = ValidationReport()

    for problem in problems:
        issues: list[str] = []

        if len(problem.content) < 10:
            issues.append("Content too short")

        if problem.type == ProblemType.MULTIPLE_CHOICE:
            if not problem.options or len(problem.options) < 2:
                issues.append("Multiple choice needs at least 2 options")

        if issues:
            report.invalid.append((problem, ", ".join(issues)))
        else:
            report.valid.append(problem)

    return report
