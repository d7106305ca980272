"""
Module: events

Purpose:
    Events emitted by the streaming extractor. Each event serializes to
    {"type": ..., "data": {...}} for delivery over Server-Sent Events.

Ordering:
    question events arrive in increasing index order, each index at most
    once; a stream ends with exactly one complete or error event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class StatusEvent:
    type: ClassVar[str] = "status"
    stage: str
    message: str
    total_questions: Optional[int] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"stage": self.stage, "message": self.message}
        if self.total_questions is not None:
            data["totalQuestions"] = self.total_questions
        return {"type": self.type, "data": data}


@dataclass(frozen=True, slots=True)
class TextEvent:
    """Raw progress delta; never a finished structural unit."""
    type: ClassVar[str] = "text"
    chunk: str

    def to_dict(self) -> dict:
        return {"type": self.type, "data": {"chunk": self.chunk}}


@dataclass(frozen=True, slots=True)
class QuestionEvent:
    type: ClassVar[str] = "question"
    index: int
    question: Any

    def to_dict(self) -> dict:
        return {"type": self.type, "data": {"index": self.index, "question": self.question}}


@dataclass(frozen=True, slots=True)
class CompleteEvent:
    """Terminal success carrying the final answers plus caller context."""
    type: ClassVar[str] = "complete"
    answers: Tuple[Any, ...]
    passage: str = ""
    questions: Tuple[Any, ...] = ()
    group_id: str = ""
    issues: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "data": {
                "answers": list(self.answers),
                "passage": self.passage,
                "questions": list(self.questions),
                "groupId": self.group_id,
                "issues": list(self.issues),
            },
        }


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Terminal failure; buffer is a bounded preview, never the full buffer."""
    type: ClassVar[str] = "error"
    message: str
    buffer: str = ""

    def to_dict(self) -> dict:
        return {"type": self.type, "data": {"message": self.message, "buffer": self.buffer}}


StreamEvent = Union[StatusEvent, TextEvent, QuestionEvent, CompleteEvent, ErrorEvent]
