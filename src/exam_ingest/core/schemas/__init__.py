"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import answer_issues, answers_issues, validate_answer

__all__ = [
    "answer_issues",
    "answers_issues",
    "validate_answer",
]
