"""
Tests for ingest.kind_alias

Test Coverage:
- normalize_kind(): aliases, strict vs. lenient, single warning per call
- to_legacy() / from_legacy(): exhaustive projections
- kind_label()
"""
import logging

import pytest

from exam_ingest.core.models import CanonicalKind, LegacyKind
from exam_ingest.ingest.kind_alias import (
    _CANONICAL_TO_LEGACY,
    _LEGACY_TO_CANONICAL,
    ALIASES,
    from_legacy,
    kind_label,
    lookup_alias,
    normalize_kind,
    to_legacy,
)

LOGGER = "exam_ingest.ingest.kind_alias"


@pytest.mark.parametrize("label,expected", [
    ("E1", CanonicalKind.VOCAB),
    ("vocabularyVM", CanonicalKind.VOCAB),
    ("GRAMMAR", CanonicalKind.GRAMMAR),
    ("clozeVM", CanonicalKind.CLOZE),
    ("  Reading ", CanonicalKind.READING),
    ("e5_translation", CanonicalKind.TRANSLATION),
    ("paragraphOrganization", CanonicalKind.DISCOURSE),
    ("CONTEXTUAL_COMPLETION", CanonicalKind.DISCOURSE),
    ("E7", CanonicalKind.DISCOURSE),
    ("writing", CanonicalKind.WRITING),
])
def test_normalize_known_labels(label, expected):
    assert normalize_kind(label) is expected
    assert normalize_kind(label, strict=False) is expected


class TestUnknownLabels:
    """Unrecognised labels never raise."""

    def test_strict_returns_none(self):
        assert normalize_kind("essayish") is None

    def test_lenient_returns_sentinel(self):
        assert normalize_kind("essayish", strict=False) == "unknown"

    @pytest.mark.parametrize("strict", [True, False])
    def test_logs_exactly_once(self, caplog, strict):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            normalize_kind("essayish", strict=strict)
        records = [r for r in caplog.records if r.name == LOGGER]
        assert len(records) == 1
        assert "essayish" in records[0].getMessage()

    def test_none_label(self):
        assert normalize_kind(None) is None
        assert normalize_kind(None, strict=False) == "unknown"

    def test_unknown_alias_has_no_canonical_kind(self):
        assert normalize_kind("fallback") is None
        assert normalize_kind("generic", strict=False) == "unknown"


def test_projection_tables_are_exhaustive():
    assert set(_LEGACY_TO_CANONICAL) == set(LegacyKind)
    assert set(_CANONICAL_TO_LEGACY) == set(CanonicalKind)


def test_to_legacy_covers_every_kind():
    assert {k: to_legacy(k) for k in CanonicalKind} == {
        CanonicalKind.VOCAB: LegacyKind.E1,
        CanonicalKind.GRAMMAR: LegacyKind.E2,
        CanonicalKind.CLOZE: LegacyKind.E3,
        CanonicalKind.READING: LegacyKind.E4,
        CanonicalKind.TRANSLATION: LegacyKind.E5,
        CanonicalKind.DISCOURSE: LegacyKind.E6,
        CanonicalKind.WRITING: LegacyKind.E8,
    }


def test_from_legacy_round_trips_except_e7():
    for tag in LegacyKind:
        kind = from_legacy(tag)
        if tag in (LegacyKind.E7, LegacyKind.UNKNOWN):
            continue
        assert to_legacy(kind) is tag
    assert from_legacy(LegacyKind.E7) is CanonicalKind.DISCOURSE
    assert from_legacy(LegacyKind.UNKNOWN) is None


def test_alias_table_is_read_only():
    with pytest.raises(TypeError):
        ALIASES["new"] = LegacyKind.E1


def test_lookup_alias():
    assert lookup_alias("Vocab") is LegacyKind.E1
    assert lookup_alias("nope") is None


def test_kind_label():
    assert kind_label(CanonicalKind.VOCAB) == "字彙題"
    assert kind_label("E7") == "篇章結構"
    assert kind_label(LegacyKind.UNKNOWN) == "題型未知"
    assert kind_label(None) == "題型未知"
