"""
Module: ingest.pipeline

Purpose:
    Run the full classification flow for one raw input: structural
    parsing, subject detection, kind classification and, for batched
    pastes, segmentation.

Key Functions:
    - classify_question(): RawInput (or plain text) to ClassificationResult

Used By:
    - exam_ingest.cli
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from exam_ingest.common.thresholds import KIND_THRESHOLDS, SUBJECT_THRESHOLDS, KindThresholds, SubjectThresholds
from exam_ingest.core.models import (
    ClassificationResult,
    Option,
    RawInput,
    Subject,
)
from exam_ingest.ingest.classification import classify_kind
from exam_ingest.ingest.detection import extract_passage_blanks, parse_options
from exam_ingest.ingest.segmentation import detect_multiple_questions, segment_questions
from exam_ingest.ingest.subject import classify_subject, detect_subject, validate_subject

logger = logging.getLogger(__name__)

HINT_CONFIDENCE = 1.0


def _subject_from_hint(hint: Optional[str]) -> Optional[Subject]:
    if not hint:
        return None
    try:
        return Subject(hint.strip().lower())
    except ValueError:
        logger.warning(f"Ignoring unknown subject hint: {hint!r}")
        return None


def classify_question(
    raw: Union[RawInput, str],
    *,
    subject_thresholds: SubjectThresholds = SUBJECT_THRESHOLDS,
    kind_thresholds: KindThresholds = KIND_THRESHOLDS,
) -> ClassificationResult:
    """
    Classify one question (or a batch of questions).

    Option hints skip option parsing. A valid subject hint replaces
    keyword detection and is reported with full confidence.

    Args:
        raw: RawInput or plain question text

    Returns:
        ClassificationResult; segments are filled only for batched input.
    """
    if isinstance(raw, str):
        raw = RawInput(text=raw)
    text = raw.text or ""

    hinted_options: Optional[Tuple[Option, ...]] = None
    if raw.option_hints:
        hinted_options = tuple(Option.from_hint(h) for h in raw.option_hints)
    options = hinted_options if hinted_options is not None else tuple(parse_options(text))

    hinted_subject = _subject_from_hint(raw.subject_hint)
    if hinted_subject is not None:
        subject, subject_confidence = hinted_subject, HINT_CONFIDENCE
        routing_subject = hinted_subject
    else:
        detection = classify_subject(text, subject_thresholds)
        subject, subject_confidence = detection.subject, detection.confidence
        routing_subject = validate_subject(text, detect_subject(text, subject_thresholds))

    kind = classify_kind(text, hinted_options, routing_subject, kind_thresholds)

    segments = ()
    if detect_multiple_questions(text):
        segments = tuple(segment_questions(text))
        logger.info(f"Batched input split into {len(segments)} segments")

    return ClassificationResult(
        subject=subject,
        subject_confidence=subject_confidence,
        kind=kind.kind,
        kind_confidence=kind.confidence,
        reason=kind.reason,
        blanks=tuple(extract_passage_blanks(text)),
        options=options,
        signals=kind.signals,
        legacy_kind=kind.legacy_kind,
        segments=segments,
    )
