"""
Module: errors

Purpose:
    Exception types raised by exam_ingest. Parsing and classification
    degrade to empty or low-confidence results instead of raising, so
    these cover only explicit validation and programming errors.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for exam_ingest errors."""


class SchemaValidationError(IngestError):
    """Raised when an answer object fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


class UnknownProfileError(IngestError, ValueError):
    """Raised when a sanitize profile name is not recognised."""
