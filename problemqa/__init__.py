"""
problemqa - Problem content quality and review pipeline.

Deterministic analyzers that turn raw problem text into graded, classified,
deduplicated, review-gated content records:

    raw text -> segmentation -> classification + difficulty + duplicates
             -> heuristic review -> workflow state -> quality scores
"""

__version__ = "1.0.0"
