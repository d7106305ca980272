"""Centralized threshold and magic number configuration.

This module contains the tuned thresholds, ratios, and caps used by the
parsing, classification, and streaming stages. Having these in one place
makes recalibration against a held-out corpus easier; pass a modified
instance to the component instead of editing call sites.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsingThresholds:
    """Limits for structural parsing of raw question text."""

    max_option_chars: int = 160  # Hard cap on a single option's text
    min_reconstructed_options: int = 2  # A single marker is never trusted
    reading_option_scan_chars: int = 500  # Max scan window after last option marker
    reading_last_option_chars: int = 200  # Max text kept for the final option
    reading_option_leak_chars: int = 150  # Option text longer than this may hold passage text


@dataclass(frozen=True)
class ChoiceShapeThresholds:
    """Thresholds for classifying option arrays as sentences or words."""

    shape_ratio: float = 0.6  # Share of options needed to call a shape
    sentence_min_tokens: int = 4  # Sentence-like options have at least this many tokens
    word_max_tokens: int = 5  # Word/phrase-like options have at most this many tokens


@dataclass(frozen=True)
class SubjectThresholds:
    """Scoring constants for the keyword subject classifier."""

    base_confidence: float = 0.4
    keyword_increment: float = 0.1
    max_confidence: float = 0.98
    english_sentence_boost: float = 0.3
    english_char_ratio: float = 0.6  # Latin-letter share for an "English sentence"
    ambiguity_margin: float = 0.03  # Top-two gap below this collapses to unknown
    empty_confidence: float = 0.3  # Confidence reported for blank input

    # Density detector
    reading_min_chars: int = 200
    reading_min_english_words: int = 50
    english_dominant_words: int = 10
    english_dominant_ratio: float = 0.6
    math_max_english_words: int = 3
    chinese_min_han_chars: int = 5


@dataclass(frozen=True)
class KindThresholds:
    """Thresholds for the structural kind router."""

    discourse_min_passage_chars: int = 200
    discourse_min_options: int = 4
    discourse_max_options: int = 6
    discourse_min_sentence_ratio: float = 0.5
    discourse_sentence_min_words: int = 8
    vocab_max_passage_chars: int = 300
    vocab_max_sentences: int = 3
    vocab_option_count: int = 4
    grammar_min_keyword_options: int = 3
    grammar_min_verb_form_options: int = 2
    cloze_min_underscore_blanks: int = 2
    reading_min_passage_chars: int = 100
    reading_min_sentences: int = 3
    writing_min_prompt_chars: int = 40  # Shorter writing prompts fall through to later branches
    reading_min_parsed_passage_chars: int = 50
    dialog_min_turns: int = 2

    # Confidence values reported per branch
    grammar_confidence: float = 0.85
    vocab_confidence: float = 0.9
    discourse_confidence: float = 0.9
    contextual_confidence: float = 0.9
    cloze_confidence: float = 0.88
    reading_confidence: float = 0.86
    reading_multi_sentence_confidence: float = 0.85
    dialog_confidence: float = 0.7
    open_ended_confidence: float = 0.8
    grammar_marker_confidence: float = 0.75
    single_word_vocab_confidence: float = 0.8
    numbered_fallback_confidence: float = 0.5
    fallback_confidence: float = 0.5


@dataclass(frozen=True)
class StreamingThresholds:
    """Limits for the streaming incremental extractor."""

    error_preview_chars: int = 200  # Max buffer characters carried on an error event


@dataclass(frozen=True)
class SanitizeThresholds:
    """Limits for sanitizer logging."""

    log_preview_chars: int = 100  # Characters of suspicious input written to the log


# Global instances for easy import
PARSING_THRESHOLDS = ParsingThresholds()
CHOICE_SHAPE_THRESHOLDS = ChoiceShapeThresholds()
SUBJECT_THRESHOLDS = SubjectThresholds()
KIND_THRESHOLDS = KindThresholds()
STREAMING_THRESHOLDS = StreamingThresholds()
SANITIZE_THRESHOLDS = SanitizeThresholds()
