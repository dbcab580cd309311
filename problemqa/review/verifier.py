"""
Answer verification.

AnswerVerifier is the seam for a model-backed verifier. The shipped
FormatAnswerVerifier is deterministic and only checks that the answer has the
format the problem type expects; any replacement must keep the same
VerificationResult contract so the reviewer's decision policy is unaffected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from problemqa.core.models import ProblemRecord, ProblemType

_MC_ANSWER = re.compile(r"[①②③④⑤1-5A-E]")

TRUE_FALSE_ANSWERS = frozenset(
    {"O", "X", "o", "x", "TRUE", "FALSE", "true", "false", "참", "거짓"}
)


@dataclass(frozen=True)
class VerificationResult:
    is_correct: bool
    ai_answer: str
    confidence: float
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "isCorrect": self.is_correct,
            "aiAnswer": self.ai_answer,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


@runtime_checkable
class AnswerVerifier(Protocol):
    """Capability interface for answer verification."""

    def verify(self, problem: ProblemRecord) -> VerificationResult:
        ...


class FormatAnswerVerifier:
    """Format-only verification placeholder."""

    def verify(self, problem: ProblemRecord) -> VerificationResult:
        is_correct = True
        confidence = 0.5
        reasoning = "Format check only; model-backed verification not configured."
        answer = problem.answer or ""

        if problem.type == ProblemType.MULTIPLE_CHOICE:
            if _MC_ANSWER.search(answer):
                options, malformed = problem.option_list()
                if malformed:
                    confidence = 0.3
                    reasoning = "Options could not be parsed."
                elif options:
                    confidence = 0.7
                    reasoning = "Answer format matches the options."
            else:
                is_correct = False
                confidence = 0.8
                reasoning = "Answer is not in multiple-choice format."

        elif problem.type == ProblemType.TRUE_FALSE:
            if answer.strip() in TRUE_FALSE_ANSWERS:
                confidence = 0.8
                reasoning = "True/false answer format confirmed."

        return VerificationResult(
            is_correct=is_correct,
            ai_answer=answer,
            confidence=confidence,
            reasoning=reasoning,
        )
