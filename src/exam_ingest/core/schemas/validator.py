"""
Answer Schema Validation

Validates streamed answer objects against the packaged JSON Schema.

Validation is non-blocking by default: `answer_issues()` returns a
list of human-readable problems that the streaming extractor attaches
to its complete event. `validate_answer(..., strict=True)` raises
SchemaValidationError instead, for callers validating stored data.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import jsonschema

from exam_ingest.core.errors import SchemaValidationError

logger = logging.getLogger(__name__)

ANSWER_SCHEMA_NAME = "answer"


@lru_cache(maxsize=None)
def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    schema_path = Path(__file__).parent / f"{name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _format_error(error: jsonschema.ValidationError) -> str:
    path = ".".join(str(p) for p in error.absolute_path)
    return f"{path}: {error.message}" if path else error.message


def answer_issues(data: Any, *, position: int | None = None) -> list[str]:
    """
    Collect schema problems for one answer object.

    Args:
        data: Decoded answer element
        position: Index in the answer array, used to prefix messages

    Returns:
        Problems in schema order; empty when the object is valid.
    """
    validator = jsonschema.Draft7Validator(_load_schema(ANSWER_SCHEMA_NAME))
    prefix = f"[{position}] " if position is not None else ""
    issues = [
        prefix + _format_error(e)
        for e in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    ]
    if issues:
        logger.debug(f"Answer {prefix}failed schema: {issues}")
    return issues


def answers_issues(answers: Iterable[Any]) -> list[str]:
    """Collect schema problems for every element of an answer array."""
    issues: list[str] = []
    for i, answer in enumerate(answers):
        issues.extend(answer_issues(answer, position=i))
    return issues


def validate_answer(data: Any, *, strict: bool = False) -> list[str]:
    """
    Validate an answer object.

    Args:
        data: Decoded answer element
        strict: If True, raise on the first problem instead of returning

    Raises:
        SchemaValidationError: In strict mode when data is invalid
    """
    issues = answer_issues(data)
    if strict and issues:
        validator = jsonschema.Draft7Validator(_load_schema(ANSWER_SCHEMA_NAME))
        first = jsonschema.exceptions.best_match(validator.iter_errors(data))
        raise SchemaValidationError(
            f"Schema validation failed: {first.message}",
            path=".".join(str(p) for p in first.absolute_path),
            errors=issues,
        )
    return issues
