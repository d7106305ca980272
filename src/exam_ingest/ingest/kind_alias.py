"""
Module: ingest.kind_alias

Purpose:
    Boundary translation between free-form kind labels and the closed
    CanonicalKind enum. Stored data and older clients use many spellings
    ("E1", "vocabularyVM", "CONTEXTUAL_COMPLETION", ...); only this module
    accepts them. Core logic works with CanonicalKind and LegacyKind only.

Key Functions:
    - normalize_kind(): Label to CanonicalKind (strict) or "unknown" (lenient)
    - to_legacy() / from_legacy(): Fixed projections between the enums
    - kind_label(): Display label

Notes:
    E6 (paragraph reordering) and E7 (contextual completion) both map to
    DISCOURSE, so to_legacy(DISCOURSE) has to pick one tag. It returns E6.
    Callers that need to keep E7 must carry the legacy tag themselves
    (KindClassification.legacy_kind does).
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Literal, Mapping, Optional, Union

from exam_ingest.core.models import CanonicalKind, LegacyKind

logger = logging.getLogger(__name__)

UNKNOWN_KIND = "unknown"

_LEGACY_TO_CANONICAL: Mapping[LegacyKind, Optional[CanonicalKind]] = MappingProxyType({
    LegacyKind.E1: CanonicalKind.VOCAB,
    LegacyKind.E2: CanonicalKind.GRAMMAR,
    LegacyKind.E3: CanonicalKind.CLOZE,
    LegacyKind.E4: CanonicalKind.READING,
    LegacyKind.E5: CanonicalKind.TRANSLATION,
    LegacyKind.E6: CanonicalKind.DISCOURSE,
    LegacyKind.E7: CanonicalKind.DISCOURSE,
    LegacyKind.E8: CanonicalKind.WRITING,
    LegacyKind.UNKNOWN: None,
})

_CANONICAL_TO_LEGACY: Mapping[CanonicalKind, LegacyKind] = MappingProxyType({
    CanonicalKind.VOCAB: LegacyKind.E1,
    CanonicalKind.GRAMMAR: LegacyKind.E2,
    CanonicalKind.CLOZE: LegacyKind.E3,
    CanonicalKind.READING: LegacyKind.E4,
    CanonicalKind.TRANSLATION: LegacyKind.E5,
    CanonicalKind.DISCOURSE: LegacyKind.E6,
    CanonicalKind.WRITING: LegacyKind.E8,
})

_ALIAS_GROUPS = {
    LegacyKind.E1: ("e1", "vocab", "vocabulary", "e1_vocab", "e1_vocabulary", "vocabularyvm"),
    LegacyKind.E2: ("e2", "grammar", "e2_grammar", "grammarvm"),
    LegacyKind.E3: ("e3", "cloze", "e3_cloze", "clozevm"),
    LegacyKind.E4: ("e4", "reading", "e4_reading", "readingvm"),
    LegacyKind.E5: ("e5", "translation", "e5_translation", "translationvm"),
    LegacyKind.E6: (
        "e6", "discourse", "paragraph", "paragraphorganization", "paragraph_organization",
        "e6_discourse", "paragraphorganizationvm",
    ),
    LegacyKind.E7: (
        "e7", "contextual", "contextualcompletion", "contextual_completion",
        "e7_contextual", "contextualcompletionvm",
    ),
    LegacyKind.E8: ("e8", "writing", "e8_writing", "writingvm"),
    LegacyKind.UNKNOWN: ("unknown", "fallback", "generic"),
}

# Lower-cased alias -> legacy tag. Read-only.
ALIASES: Mapping[str, LegacyKind] = MappingProxyType({
    alias: legacy for legacy, aliases in _ALIAS_GROUPS.items() for alias in aliases
})

_LABELS: Mapping[CanonicalKind, str] = MappingProxyType({
    CanonicalKind.VOCAB: "字彙題",
    CanonicalKind.GRAMMAR: "語法題",
    CanonicalKind.CLOZE: "克漏字",
    CanonicalKind.READING: "閱讀理解",
    CanonicalKind.TRANSLATION: "翻譯",
    CanonicalKind.DISCOURSE: "篇章結構",
    CanonicalKind.WRITING: "寫作",
})
_UNKNOWN_LABEL = "題型未知"


def lookup_alias(label: Optional[str]) -> Optional[LegacyKind]:
    """Legacy tag for a label, or None when the label is not recognised."""
    if label is None:
        return None
    return ALIASES.get(str(label).strip().lower())


def from_legacy(tag: LegacyKind) -> Optional[CanonicalKind]:
    """Canonical kind for a legacy tag; LegacyKind.UNKNOWN has none."""
    return _LEGACY_TO_CANONICAL[tag]


def to_legacy(kind: CanonicalKind) -> LegacyKind:
    """Legacy tag for a canonical kind. DISCOURSE projects to E6."""
    return _CANONICAL_TO_LEGACY[kind]


def normalize_kind(
    label: Optional[str], strict: bool = True
) -> Union[CanonicalKind, None, Literal["unknown"]]:
    """
    Normalize a free-form kind label.

    Args:
        label: Any historically used label ("E3", "clozeVM", "Reading")
        strict: True for validating new data, False for display

    Returns:
        The CanonicalKind, or for unrecognised labels None (strict) or
        the string "unknown" (lenient). Never raises.
    """
    legacy = lookup_alias(label)
    if legacy is None:
        logger.warning(f"Unknown kind label: {label!r}")
        return None if strict else UNKNOWN_KIND

    canonical = from_legacy(legacy)
    if canonical is None:
        return None if strict else UNKNOWN_KIND
    return canonical


def kind_label(kind: Union[CanonicalKind, LegacyKind, str, None]) -> str:
    """Human-readable (zh-TW) label for a kind in any of its spellings."""
    if isinstance(kind, CanonicalKind):
        return _LABELS[kind]
    if isinstance(kind, LegacyKind):
        canonical = from_legacy(kind)
    else:
        canonical = normalize_kind(kind, strict=True) if kind else None
    return _LABELS[canonical] if canonical is not None else _UNKNOWN_LABEL
