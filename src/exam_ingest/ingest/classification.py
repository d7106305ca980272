"""
Module: ingest.classification

Purpose:
    Route a question to one of the canonical kinds using structural
    signals. Signals are gathered once into a KindSignals record and
    each branch of the decision table is a named predicate over that
    record, so every branch can be tested on its own.

Decision order:
    1. grammar-form options (pronouns, conjunctions, verb forms) -> grammar
    2. four word/phrase options, short stem, no numbered blank -> vocab
    3. numbered blanks, long passage, sentence options -> discourse
    4. numbered blanks, word/phrase options -> cloze (legacy E7)
    5. numbered blanks matching neither -> low-confidence reading
    6. two or more "____" blanks -> cloze (legacy E3)
    7. dialog lines -> reading (low confidence)
    8. no option block and no question marker -> translation / writing / reading
    9. passage with parsed reading questions -> reading
    10. multi-sentence passage -> reading
    11. grammar markers in the stem -> grammar
    12. single sentence with single-word options -> vocab
    13. anything else -> low-confidence reading

Key Functions:
    - gather_signals(): Text and options to KindSignals
    - classify_kind(): Text to KindClassification
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from exam_ingest.common.patterns import (
    DIALOG_PATTERN,
    QUESTION_MARKER_PATTERN,
    normalize_blank_markers,
)
from exam_ingest.common.thresholds import KIND_THRESHOLDS, KindThresholds
from exam_ingest.core.models import (
    CanonicalKind,
    KindClassification,
    LegacyKind,
    Option,
    Subject,
)
from exam_ingest.ingest.detection import (
    ChoiceShape,
    all_single_words,
    count_single_parens_blanks,
    count_underscore_blanks,
    detect_choice_shape,
    extract_passage_blanks,
    sentence_ratio,
    split_stem_and_options,
    unique_blank_indices,
)
from exam_ingest.ingest.reading import parse_reading

logger = logging.getLogger(__name__)

GRAMMAR_KEYWORD_OPTION = re.compile(
    r"^(?:as|while|if|though|what|which|that|it|been|being|to\s+\w+|as\s+\w+|while\s+\w+)$",
    re.IGNORECASE,
)
VERB_FORM_OPTION = re.compile(
    r"^(?:to\s+\w+|as\s+to\s+\w+|as\s+\w+ing|while\s+\w+|have\s+\w+|has\s+\w+|had\s+\w+|been\s+\w+)$",
    re.IGNORECASE,
)
GRAMMAR_MARKERS = (
    re.compile(r"\b(?:have|has|had|will|would|should|could|may|might|must)\b"),
    re.compile(r"\b(?:is|are|was|were|be|been|being)\b"),
    re.compile(r"\b(?:if|unless|whether|although|though|despite|while)\b"),
    re.compile(r"\b(?:who|whom|whose|which|that|where|when)\b"),
)
TRANSLATION_CUE = re.compile(r"翻譯|中譯英|英譯中|譯成|\btranslat(?:e|ion)\b", re.IGNORECASE)
WRITING_CUE = re.compile(
    r"作文|寫作|\bwrite\b|\bessay\b|\bcomposition\b|\bin (?:about|at least) \d{2,3} words\b",
    re.IGNORECASE,
)
SENTENCE_SPLIT = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class KindSignals:
    """Structural facts about one question, gathered once."""
    stem: str
    passage_length: int
    sentence_count: int
    numbered_blanks: int  # occurrences
    unique_numbered_blanks: int
    parens_blanks: int
    underscore_blanks: int
    option_count: int
    choice_shape: ChoiceShape
    sentence_ratio: float
    all_single_words: bool
    grammar_keyword_options: int
    verb_form_options: int
    dialog_turns: int
    question_markers: int
    has_grammar_markers: bool
    has_translation_cue: bool
    has_writing_cue: bool
    subject: Optional[Subject] = None

    @property
    def has_numbered_blanks(self) -> bool:
        return self.unique_numbered_blanks >= 2 or self.numbered_blanks >= 2

    @property
    def is_word_shaped(self) -> bool:
        return self.choice_shape == "words/phrases"


def _count_sentences(text: str) -> int:
    return sum(1 for part in SENTENCE_SPLIT.split(text) if part.strip())


def _dialog_turns(text: str) -> int:
    speakers = [m.group(1) for m in DIALOG_PATTERN.finditer(text)]
    return len(speakers) if len(set(speakers)) >= 2 else 0


def gather_signals(
    text: str,
    options: Optional[Sequence[Option]] = None,
    subject: Optional[Subject] = None,
) -> KindSignals:
    """
    Gather structural signals.

    Args:
        text: Question text (stem plus options unless options are given)
        options: Pre-parsed options; parsed from text when None
        subject: Detected or hinted subject, recorded for reporting
    """
    text = normalize_blank_markers(text or "")
    stem, parsed = split_stem_and_options(text)
    if options is None:
        options = parsed
    else:
        options = list(options)
        if not parsed:
            stem = text.strip()

    compact_stem = re.sub(r"\s+", " ", stem)
    blanks = extract_passage_blanks(text)
    option_texts = [o.text.strip() for o in options]

    return KindSignals(
        stem=compact_stem,
        passage_length=len(compact_stem),
        sentence_count=_count_sentences(stem),
        numbered_blanks=len(blanks),
        unique_numbered_blanks=len(unique_blank_indices(blanks)),
        parens_blanks=count_single_parens_blanks(stem),
        underscore_blanks=count_underscore_blanks(stem),
        option_count=len(options),
        choice_shape=detect_choice_shape(option_texts),
        sentence_ratio=sentence_ratio(option_texts),
        all_single_words=all_single_words(option_texts),
        grammar_keyword_options=sum(1 for t in option_texts if GRAMMAR_KEYWORD_OPTION.match(t)),
        verb_form_options=sum(1 for t in option_texts if VERB_FORM_OPTION.match(t)),
        dialog_turns=_dialog_turns(text),
        question_markers=sum(1 for _ in QUESTION_MARKER_PATTERN.finditer(text)),
        has_grammar_markers=any(p.search(compact_stem.lower()) for p in GRAMMAR_MARKERS),
        has_translation_cue=TRANSLATION_CUE.search(text) is not None,
        has_writing_cue=WRITING_CUE.search(text) is not None,
        subject=subject,
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_grammar(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """Four options that are grammatical forms rather than content words."""
    if s.option_count != t.vocab_option_count or s.has_numbered_blanks:
        return False
    return (
        s.grammar_keyword_options >= t.grammar_min_keyword_options
        or s.verb_form_options >= t.grammar_min_verb_form_options
    )


def is_vocab(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """Four word/phrase options under a short stem with at most one "( )" blank."""
    return (
        s.option_count == t.vocab_option_count
        and s.is_word_shaped
        and not s.has_numbered_blanks
        and s.numbered_blanks == 0
        and s.parens_blanks <= 1
        and s.passage_length <= t.vocab_max_passage_chars
        and s.sentence_count <= t.vocab_max_sentences
    )


def is_discourse(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """Numbered gaps in a long passage filled with whole sentences."""
    return (
        s.has_numbered_blanks
        and s.passage_length >= t.discourse_min_passage_chars
        and t.discourse_min_options <= s.option_count <= t.discourse_max_options
        and s.choice_shape == "sentences"
        and s.sentence_ratio >= t.discourse_min_sentence_ratio
    )


def is_contextual_cloze(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """Numbered gaps filled with words or phrases."""
    return s.has_numbered_blanks and s.is_word_shaped


def is_underscore_cloze(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    return s.underscore_blanks >= t.cloze_min_underscore_blanks


def is_dialog(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    return s.dialog_turns >= t.dialog_min_turns


def is_open_ended(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """No option block and no question marker: a free-response prompt or bare passage."""
    if s.numbered_blanks or s.option_count >= t.vocab_option_count or s.question_markers:
        return False
    return open_ended_kind(s, t) is not None


def open_ended_kind(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> Optional[CanonicalKind]:
    if s.has_translation_cue:
        return CanonicalKind.TRANSLATION
    if s.has_writing_cue and s.passage_length >= t.writing_min_prompt_chars:
        return CanonicalKind.WRITING
    if s.passage_length >= t.reading_min_passage_chars and s.sentence_count >= t.reading_min_sentences:
        return CanonicalKind.READING
    return None


def is_multi_sentence_reading(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    return not s.numbered_blanks and s.sentence_count > t.reading_min_sentences


def is_grammar_marker(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    """Tense or clause cue in the stem with options that are not single words."""
    return s.has_grammar_markers and not s.all_single_words and not s.has_numbered_blanks


def is_single_word_vocab(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> bool:
    return s.sentence_count <= 1 and s.all_single_words and not s.has_numbered_blanks


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

def _base_signals(s: KindSignals) -> List[str]:
    signals = [f"optionCount={s.option_count}", f"numberedBlanks={s.unique_numbered_blanks}"]
    if s.subject is not None:
        signals.append(f"subject={s.subject.value}")
    return signals


def _result(
    s: KindSignals,
    kind: CanonicalKind,
    confidence: float,
    reason: str,
    legacy: LegacyKind,
    extra: Sequence[str] = (),
) -> KindClassification:
    signals = tuple(_base_signals(s) + list(extra))
    logger.debug(f"Kind {kind.value} ({legacy.value}) conf={confidence}: {reason} {list(signals)}")
    return KindClassification(kind=kind, confidence=confidence, reason=reason, signals=signals, legacy_kind=legacy)


def _reading_with_questions(text: str, s: KindSignals, t: KindThresholds) -> Optional[Tuple[int, str]]:
    """Number of parsed questions and group id when text is a reading group."""
    if s.passage_length <= t.reading_min_passage_chars or s.numbered_blanks:
        return None
    if s.question_markers < 2 and s.sentence_count <= 2:
        return None
    parsed = parse_reading(text)
    if len(parsed.passage) > t.reading_min_parsed_passage_chars and parsed.questions:
        return len(parsed.questions), parsed.group_id
    return None


def classify_kind(
    text: str,
    options: Optional[Sequence[Option]] = None,
    subject: Optional[Subject] = None,
    thresholds: KindThresholds = KIND_THRESHOLDS,
) -> KindClassification:
    """
    Classify a question into a canonical kind.

    Args:
        text: Question text
        options: Pre-parsed options, or None to parse them from text
        subject: Subject verdict, recorded in the signals
        thresholds: Routing thresholds and per-branch confidences

    Returns:
        KindClassification with the reason and the literal signals that
        fired. Never raises; unparseable input falls back to a
        low-confidence reading verdict.
    """
    t = thresholds
    s = gather_signals(text, options, subject)

    if is_grammar(s, t):
        return _result(
            s, CanonicalKind.GRAMMAR, t.grammar_confidence,
            "single sentence with grammatical-form options", LegacyKind.E2,
            [f"grammarForms={max(s.grammar_keyword_options, s.verb_form_options)}"],
        )

    if is_vocab(s, t):
        return _result(
            s, CanonicalKind.VOCAB, t.vocab_confidence,
            "short stem with four word/phrase options", LegacyKind.E1,
            [f"parensBlanks={s.parens_blanks}", "choiceShape=words/phrases",
             f"passageLength<={t.vocab_max_passage_chars}"],
        )

    if is_discourse(s, t):
        return _result(
            s, CanonicalKind.DISCOURSE, t.discourse_confidence,
            "numbered blanks in a long passage with sentence options", LegacyKind.E6,
            ["choiceShape=sentences", f"sentenceRatio>={t.discourse_min_sentence_ratio}",
             f"passageLength>={t.discourse_min_passage_chars}"],
        )

    # E7 is the historical contextual-completion tag; from_legacy(E7) reads
    # it back as discourse, so this result does not round-trip.
    if is_contextual_cloze(s, t):
        return _result(
            s, CanonicalKind.CLOZE, t.contextual_confidence,
            "numbered blanks with word/phrase options", LegacyKind.E7,
            ["choiceShape=words/phrases"],
        )

    if s.has_numbered_blanks:
        logger.warning(
            f"Numbered blanks matched neither discourse nor cloze "
            f"(shape={s.choice_shape}, options={s.option_count}, passage={s.passage_length})"
        )
        return _result(
            s, CanonicalKind.READING, t.numbered_fallback_confidence,
            "numbered blanks without a recognised option shape", LegacyKind.UNKNOWN,
            [f"choiceShape={s.choice_shape}", "fallback"],
        )

    if is_underscore_cloze(s, t):
        return _result(
            s, CanonicalKind.CLOZE, t.cloze_confidence,
            "multiple underscore blanks", LegacyKind.E3,
            [f"underscoreBlanks>={t.cloze_min_underscore_blanks}"],
        )

    if is_dialog(s, t):
        return _result(
            s, CanonicalKind.READING, t.dialog_confidence,
            "dialog exchange", LegacyKind.E4,
            [f"dialogTurns={s.dialog_turns}"],
        )

    if is_open_ended(s, t):
        kind = open_ended_kind(s, t)
        return _result(
            s, kind, t.open_ended_confidence,
            f"free-response prompt ({kind.value})", {
                CanonicalKind.TRANSLATION: LegacyKind.E5,
                CanonicalKind.WRITING: LegacyKind.E8,
                CanonicalKind.READING: LegacyKind.E4,
            }[kind],
            ["noOptionBlock", "questionMarkers=0"],
        )

    reading = _reading_with_questions(text, s, t)
    if reading is not None:
        count, group_id = reading
        return _result(
            s, CanonicalKind.READING, t.reading_confidence,
            "passage with shared questions", LegacyKind.E4,
            [f"questionMarkers={s.question_markers}", f"readingQuestions={count}", f"groupId={group_id}"],
        )

    if is_multi_sentence_reading(s, t):
        return _result(
            s, CanonicalKind.READING, t.reading_multi_sentence_confidence,
            "multi-sentence passage", LegacyKind.E4,
            [f"sentences>{t.reading_min_sentences}"],
        )

    if is_grammar_marker(s, t):
        return _result(
            s, CanonicalKind.GRAMMAR, t.grammar_marker_confidence,
            "grammatical marker in stem", LegacyKind.E2,
            ["grammarMarker"],
        )

    if is_single_word_vocab(s, t):
        return _result(
            s, CanonicalKind.VOCAB, t.single_word_vocab_confidence,
            "single sentence with single-word options", LegacyKind.E1,
            ["singleWordOptions"],
        )

    return _result(
        s, CanonicalKind.READING, t.fallback_confidence,
        "no specific pattern matched", LegacyKind.UNKNOWN,
        ["fallback"],
    )


PREDICATES: Tuple[Tuple[str, Callable[[KindSignals, KindThresholds], bool]], ...] = (
    ("grammar", is_grammar),
    ("vocab", is_vocab),
    ("discourse", is_discourse),
    ("contextual_cloze", is_contextual_cloze),
    ("underscore_cloze", is_underscore_cloze),
    ("dialog", is_dialog),
    ("open_ended", is_open_ended),
    ("multi_sentence_reading", is_multi_sentence_reading),
    ("grammar_marker", is_grammar_marker),
    ("single_word_vocab", is_single_word_vocab),
)


def matching_predicates(s: KindSignals, t: KindThresholds = KIND_THRESHOLDS) -> List[str]:
    """Names of every predicate that holds, for diagnostics."""
    return [name for name, predicate in PREDICATES if predicate(s, t)]
