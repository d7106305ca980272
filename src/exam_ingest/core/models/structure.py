"""
Module: structure

Purpose:
    Structural records produced by the parser: numbered blanks, option
    markers, options, question segments and the raw input envelope.

Key Types:
    - RawInput: Caller-supplied question text plus optional hints
    - Blank: A parenthesized integer placeholder "(n)"
    - OptionMarker: A lettered marker as written in the source
    - Option: Normalized key and trimmed text
    - QuestionSegment: One question cut from a batched paste

Used By:
    - ingest.detection
    - ingest.segmentation
    - ingest.classification
    - ingest.pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from exam_ingest.common.patterns import normalize_option_key


@dataclass(frozen=True, slots=True)
class OptionHint:
    """Option supplied by a caller that already has structured data."""
    key: str
    text: str


@dataclass(frozen=True, slots=True)
class RawInput:
    """
    Raw question text as pasted or OCR'd.

    Attributes:
        text: The question text
        option_hints: Pre-extracted options; when present, option parsing is skipped
        subject_hint: Caller-supplied subject ("math", "english", ...)
    """
    text: str
    option_hints: Tuple[OptionHint, ...] = ()
    subject_hint: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Blank:
    """Numbered blank "(n)" with its 1-based index and [start, end) span."""
    index: int
    span: Tuple[int, int]

    def to_dict(self) -> dict:
        return {"index": self.index, "span": list(self.span)}


@dataclass(frozen=True, slots=True)
class OptionMarker:
    """
    Lettered option marker as written in the source.

    The key keeps its original case and width ("Ｂ", "c"); use
    normalized_key for comparisons.
    """
    key: str
    span: Tuple[int, int]

    @property
    def normalized_key(self) -> str:
        return normalize_option_key(self.key)


@dataclass(frozen=True, slots=True)
class Option:
    """Answer option with normalized key ("A".."E") and trimmed text."""
    key: str
    text: str

    def to_dict(self) -> dict:
        return {"key": self.key, "text": self.text}

    @classmethod
    def from_hint(cls, hint: OptionHint) -> "Option":
        return cls(key=normalize_option_key(hint.key.strip()), text=hint.text.strip())


@dataclass(frozen=True, slots=True)
class QuestionSegment:
    """
    One question cut from a batched input.

    Attributes:
        index: 1-based position in the batch
        text: Stem plus option text for this question
        options: The four options when segmented by option runs, else None
        has_explicit_number: True when the split came from "1." style numbering
    """
    index: int
    text: str
    options: Optional[Tuple[Option, ...]] = None
    has_explicit_number: bool = False

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "text": self.text,
            "options": [o.to_dict() for o in self.options] if self.options is not None else None,
            "hasExplicitNumber": self.has_explicit_number,
        }
