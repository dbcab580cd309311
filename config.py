"""
Configuration settings for the problem quality pipeline.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database (optional storage adapter)
    # ========================================
    database_url: str = Field(
        default="sqlite:///problemqa.db",
        description="SQLAlchemy connection string for the problem store",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path",
    )

    # ========================================
    # Duplicate Detection
    # ========================================
    duplicate_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Jaccard similarity at or above which a problem is flagged as duplicate",
    )
    duplicate_corpus_limit: int = Field(
        default=500,
        ge=1,
        description="Max existing problems scanned per duplicate check",
    )
    similarity_duplicate_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Comprehensive similarity threshold for exact duplicates",
    )
    similarity_variant_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Comprehensive similarity threshold for variants",
    )
    similar_search_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum comprehensive similarity returned by similar-problem search",
    )

    # ========================================
    # Review
    # ========================================
    review_approve_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Verification confidence required before the reviewer recommends APPROVE",
    )
    batch_review_limit: int = Field(
        default=10,
        ge=1,
        description="Problems processed per batch AI review run",
    )

    def get_pipeline_config(self) -> dict[str, Any]:
        """Get pipeline tuning configuration as a dictionary."""
        return {
            "duplicates": {
                "threshold": self.duplicate_threshold,
                "corpus_limit": self.duplicate_corpus_limit,
            },
            "similarity": {
                "duplicate_threshold": self.similarity_duplicate_threshold,
                "variant_threshold": self.similarity_variant_threshold,
                "search_threshold": self.similar_search_threshold,
            },
            "review": {
                "approve_confidence": self.review_approve_confidence,
                "batch_limit": self.batch_review_limit,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
