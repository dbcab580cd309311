"""Exceptions raised by the problem quality pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline errors."""
    pass


class InvalidTransitionError(PipelineError):
    """Raised when a workflow event is not allowed from the current state."""

    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"Cannot apply '{event}' to content in state {state}")


class DuplicateQueueEntryError(PipelineError):
    """Raised when a problem already has a PENDING or IN_REVIEW queue entry."""

    def __init__(self, problem_id: str):
        self.problem_id = problem_id
        super().__init__(f"Problem {problem_id} is already in the review queue")


class UnsupportedFileTypeError(PipelineError):
    """Raised internally when a document cannot be converted to text."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(
            f"File type {mime_type} requires server-side parsing library. "
            "Please copy-paste text content directly or upload a text file."
        )
