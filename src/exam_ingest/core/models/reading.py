"""
Module: reading

Purpose:
    Records for a parsed reading-comprehension group: one passage and
    its lettered-choice questions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .structure import Option


@dataclass(frozen=True, slots=True)
class ReadingQuestion:
    """
    A single question under a reading passage.

    Attributes:
        id: 1-based position within the group
        qid: Display id "Q<id>"
        stem: Question text without options
        options: A-D options
        answer: Answer key when the source text carried one
    """
    id: int
    qid: str
    stem: str
    options: Tuple[Option, ...] = ()
    answer: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "qid": self.qid,
            "stem": self.stem,
            "options": [o.to_dict() for o in self.options],
        }
        if self.answer is not None:
            data["answer"] = self.answer
        return data


@dataclass(frozen=True, slots=True)
class ParsedReading:
    """Passage, its questions and a deterministic group id."""
    passage: str
    questions: Tuple[ReadingQuestion, ...]
    group_id: str
    warnings: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.questions

    def to_dict(self) -> dict:
        return {
            "passage": self.passage,
            "questions": [q.to_dict() for q in self.questions],
            "groupId": self.group_id,
            "warnings": list(self.warnings),
        }
