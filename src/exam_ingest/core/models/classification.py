"""
Module: classification

Purpose:
    Subject and kind classification records, and the closed enums for
    subjects, canonical kinds and legacy kind tags.

Key Types:
    - Subject: math / english / chinese / unknown
    - CanonicalKind: the seven canonical question kinds
    - LegacyKind: historical E1..E8 tags plus unknown
    - SubjectDetection: keyword classifier verdict with runner-up
    - KindClassification: kind router verdict with reason and signals
    - ClassificationResult: full pipeline output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .structure import Blank, Option, QuestionSegment


class Subject(str, Enum):
    """Exam subject."""
    MATH = "math"
    ENGLISH = "english"
    CHINESE = "chinese"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class CanonicalKind(str, Enum):
    """Canonical question kind used internally after alias normalization."""
    VOCAB = "vocab"
    GRAMMAR = "grammar"
    CLOZE = "cloze"
    READING = "reading"
    DISCOURSE = "discourse"
    TRANSLATION = "translation"
    WRITING = "writing"

    def __str__(self) -> str:
        return self.value


class LegacyKind(str, Enum):
    """Historical kind tags kept for backward compatibility."""
    E1 = "E1"  # Vocabulary
    E2 = "E2"  # Grammar
    E3 = "E3"  # Cloze
    E4 = "E4"  # Reading
    E5 = "E5"  # Translation
    E6 = "E6"  # Paragraph reordering
    E7 = "E7"  # Contextual completion
    E8 = "E8"  # Writing
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SubjectCandidate:
    subject: Subject
    confidence: float

    def to_dict(self) -> dict:
        return {"subject": self.subject.value, "confidence": round(self.confidence, 4)}


@dataclass(frozen=True, slots=True)
class SubjectDetection:
    """
    Subject verdict.

    When the best and second-best candidates are closer than the
    ambiguity margin, subject is UNKNOWN regardless of the top score.
    """
    subject: Subject
    confidence: float
    second_best: Optional[SubjectCandidate] = None
    confidence_delta: Optional[float] = None
    candidates: Tuple[SubjectCandidate, ...] = ()

    def to_dict(self) -> dict:
        data = {"subject": self.subject.value, "confidence": round(self.confidence, 4)}
        if self.second_best is not None:
            data["secondBest"] = self.second_best.to_dict()
        if self.confidence_delta is not None:
            data["confidenceDelta"] = round(self.confidence_delta, 4)
        return data


@dataclass(frozen=True, slots=True)
class KindClassification:
    """
    Kind verdict.

    Attributes:
        kind: Canonical kind
        confidence: 0..1
        reason: Short human-readable justification (debugging only)
        signals: Literal checks that fired, e.g. "optionCount=4"
        legacy_kind: Historical tag for callers that still need it
    """
    kind: CanonicalKind
    confidence: float
    reason: str
    signals: Tuple[str, ...] = ()
    legacy_kind: LegacyKind = LegacyKind.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "confidence": self.confidence,
            "reason": self.reason,
            "signals": list(self.signals),
            "legacyKind": self.legacy_kind.value,
        }


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Output of the full classification pipeline."""
    subject: Subject
    subject_confidence: float
    kind: CanonicalKind
    kind_confidence: float
    reason: str
    blanks: Tuple[Blank, ...] = ()
    options: Tuple[Option, ...] = ()
    signals: Tuple[str, ...] = ()
    legacy_kind: LegacyKind = LegacyKind.UNKNOWN
    segments: Tuple[QuestionSegment, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "subject": self.subject.value,
            "subjectConfidence": round(self.subject_confidence, 4),
            "kind": self.kind.value,
            "kindConfidence": self.kind_confidence,
            "reason": self.reason,
            "blanks": [b.to_dict() for b in self.blanks],
            "options": [o.to_dict() for o in self.options],
            "signals": list(self.signals),
            "legacyKind": self.legacy_kind.value,
            "segments": [s.to_dict() for s in self.segments],
        }
