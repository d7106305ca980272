"""Common patterns and thresholds shared across the pipeline."""

from __future__ import annotations

from .thresholds import (
    PARSING_THRESHOLDS,
    CHOICE_SHAPE_THRESHOLDS,
    SUBJECT_THRESHOLDS,
    KIND_THRESHOLDS,
    STREAMING_THRESHOLDS,
    SANITIZE_THRESHOLDS,
)

__all__ = [
    "PARSING_THRESHOLDS",
    "CHOICE_SHAPE_THRESHOLDS",
    "SUBJECT_THRESHOLDS",
    "KIND_THRESHOLDS",
    "STREAMING_THRESHOLDS",
    "SANITIZE_THRESHOLDS",
]
