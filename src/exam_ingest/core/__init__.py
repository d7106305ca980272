"""
Exam Ingest Core Package

Shared data models, errors and schemas used by every ingest stage.

**DESIGN NOTES:**

1. **Immutable Data Models**
   - Every record is a frozen dataclass, created fresh per request
   - Nothing parsed is cached between calls

2. **Closed Kind Space**
   - Canonical kinds are a closed `str` Enum
   - Free-form aliases are only accepted at the boundary (`ingest.kind_alias`)

3. **Wire Format**
   - `to_dict()` produces camelCase JSON-ready dicts
"""

from .errors import IngestError, SchemaValidationError, UnknownProfileError
from .models import (
    Blank,
    CanonicalKind,
    ClassificationResult,
    KindClassification,
    LegacyKind,
    Option,
    OptionMarker,
    QuestionSegment,
    RawInput,
    Subject,
    SubjectDetection,
)

__all__ = [
    "IngestError",
    "SchemaValidationError",
    "UnknownProfileError",
    "Blank",
    "CanonicalKind",
    "ClassificationResult",
    "KindClassification",
    "LegacyKind",
    "Option",
    "OptionMarker",
    "QuestionSegment",
    "RawInput",
    "Subject",
    "SubjectDetection",
]
