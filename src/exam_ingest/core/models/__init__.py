"""
Core Models Package

Immutable data models shared by every ingest stage.

All models are frozen dataclasses created fresh per request, so they
are safe to share between concurrent callers and never carry parsed
state from one classification to the next.
"""

from .structure import Blank, Option, OptionHint, OptionMarker, QuestionSegment, RawInput
from .classification import (
    CanonicalKind,
    ClassificationResult,
    KindClassification,
    LegacyKind,
    Subject,
    SubjectCandidate,
    SubjectDetection,
)
from .events import (
    CompleteEvent,
    ErrorEvent,
    QuestionEvent,
    StatusEvent,
    StreamEvent,
    TextEvent,
)
from .reading import ParsedReading, ReadingQuestion

__all__ = [
    "Blank",
    "Option",
    "OptionHint",
    "OptionMarker",
    "QuestionSegment",
    "RawInput",
    "CanonicalKind",
    "ClassificationResult",
    "KindClassification",
    "LegacyKind",
    "Subject",
    "SubjectCandidate",
    "SubjectDetection",
    "CompleteEvent",
    "ErrorEvent",
    "QuestionEvent",
    "StatusEvent",
    "StreamEvent",
    "TextEvent",
    "ParsedReading",
    "ReadingQuestion",
]
