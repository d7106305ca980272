"""
Structural detection for exam question text.

Finds numbered blanks, lettered options and the shape of an option
array. Every function degrades to an empty result instead of raising.
"""

from .blanks import (
    count_single_parens_blanks,
    count_underscore_blanks,
    extract_numbered_blanks,
    extract_passage_blanks,
    unique_blank_indices,
)
from .options import (
    extract_inline_options,
    extract_option_markers,
    extract_options,
    parse_options,
    reconstruct_options_from_text,
    split_stem_and_options,
)
from .shape import (
    ChoiceShape,
    all_single_words,
    detect_choice_shape,
    is_sentence_like,
    is_word_like,
    sentence_ratio,
)

__all__ = [
    "count_single_parens_blanks",
    "count_underscore_blanks",
    "extract_numbered_blanks",
    "extract_passage_blanks",
    "unique_blank_indices",
    "extract_inline_options",
    "extract_option_markers",
    "extract_options",
    "parse_options",
    "reconstruct_options_from_text",
    "split_stem_and_options",
    "ChoiceShape",
    "all_single_words",
    "detect_choice_shape",
    "is_sentence_like",
    "is_word_like",
    "sentence_ratio",
]
