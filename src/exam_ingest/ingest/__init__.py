"""
Exam question ingestion pipeline.

Stages:
    detection       blanks, option markers and choice shape
    segmentation    batched pastes split into questions
    reading         passage plus question headers
    subject         keyword and density subject detection
    classification  structural kind routing
    kind_alias      canonical, legacy and free-form kind labels
    pipeline        the whole classification flow for one input
    streaming       incremental answer extraction from a completion stream
    sanitize        allow-list HTML sanitizer
    sse             Server-Sent Events framing
"""

from .classification import classify_kind, gather_signals
from .config import SanitizeConfig, StreamConfig
from .kind_alias import from_legacy, kind_label, normalize_kind, to_legacy
from .pipeline import classify_question
from .reading import parse_reading
from .sanitize import (
    SanitizeProfile,
    contains_dangerous_content,
    sanitize,
    sanitize_inline,
    sanitize_many,
    sanitize_passage,
    sanitize_with_logging,
    strip_html,
)
from .segmentation import detect_multiple_questions, segment_questions
from .sse import format_sse_event, sse_stream
from .streaming import StreamContext, build_reading_context, extract_stream
from .subject import classify_subject, detect_subject

__all__ = [
    "classify_kind",
    "gather_signals",
    "SanitizeConfig",
    "StreamConfig",
    "from_legacy",
    "kind_label",
    "normalize_kind",
    "to_legacy",
    "classify_question",
    "parse_reading",
    "SanitizeProfile",
    "contains_dangerous_content",
    "sanitize",
    "sanitize_inline",
    "sanitize_many",
    "sanitize_passage",
    "sanitize_with_logging",
    "strip_html",
    "detect_multiple_questions",
    "segment_questions",
    "format_sse_event",
    "sse_stream",
    "StreamContext",
    "build_reading_context",
    "extract_stream",
    "classify_subject",
    "detect_subject",
]
