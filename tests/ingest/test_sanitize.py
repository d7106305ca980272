"""
Tests for ingest.sanitize

Test Coverage:
- sanitize_inline() / sanitize_passage(): allow-lists per profile
- Attribute filtering: on* handlers, javascript: URLs, data-*
- Fallback to regex stripping when the parser fails
- contains_dangerous_content(): detection only
"""
import importlib
import logging

import pytest

from exam_ingest.core.errors import UnknownProfileError
from exam_ingest.ingest.sanitize import (
    SanitizeProfile,
    contains_dangerous_content,
    sanitize,
    sanitize_inline,
    sanitize_many,
    sanitize_passage,
    sanitize_with_logging,
    strip_html,
)

sanitize_module = importlib.import_module("exam_ingest.ingest.sanitize")


class TestInlineProfile:
    """Emphasis, mark, span and code only."""

    def test_script_removed_with_content(self):
        result = sanitize_inline("<script>alert(1)</script>however")
        assert result == "however"
        assert "<script" not in result
        assert "alert" not in result

    def test_block_tags_unwrapped(self):
        result = sanitize_inline('<p>Hello <mark class="hl">world</mark></p>')
        assert result == 'Hello <mark class="hl">world</mark>'

    def test_anchor_not_allowed(self):
        assert sanitize_inline('<a href="https://example.com">x</a>') == "x"

    def test_only_class_and_data_attributes(self):
        assert sanitize_inline('<span data-idx="1" id="s">x</span>') == '<span data-idx="1">x</span>'

    def test_text_stays_escaped(self):
        assert sanitize_inline("1 &lt; 2") == "1 &lt; 2"


class TestPassageProfile:
    """Adds paragraphs, lists, headings, blockquotes and anchors."""

    def test_dangerous_parts_stripped_allowed_tags_kept(self):
        html = (
            '<p onclick="x()">Hi <strong>there</strong>'
            '<iframe src="https://evil.test"></iframe>'
            "<img src=x onerror=alert(1)>"
            '<a href="javascript:alert(1)">link</a></p>'
        )
        result = sanitize_passage(html)

        assert "<iframe" not in result
        assert "onerror" not in result
        assert "onclick" not in result
        assert "javascript:" not in result
        assert result.startswith("<p>")
        assert "<strong>there</strong>" in result
        assert "link" in result

    def test_safe_attributes_kept(self):
        result = sanitize_passage('<a href="https://example.com" title="t" style="color:red">x</a>')
        assert result == '<a href="https://example.com" title="t">x</a>'

    def test_obfuscated_javascript_url(self):
        assert sanitize_passage('<a href=" java\tscript:alert(1)">x</a>') == "<a>x</a>"

    def test_lists_and_headings(self):
        html = "<h2>Title</h2><ul><li>one</li></ul><blockquote>q</blockquote>"
        assert sanitize_passage(html) == html

    def test_comments_removed(self):
        assert sanitize_passage("a<!-- secret -->b") == "ab"

    def test_plain_text_not_wrapped(self):
        assert sanitize_passage("Just a sentence.") == "Just a sentence."

    def test_long_run_of_unclosed_tags(self):
        assert isinstance(sanitize_passage("<a " * 30000), str)


class TestProfiles:
    """Profile selection."""

    def test_string_and_enum_profiles(self):
        assert sanitize("<p>x</p>", "passage") == sanitize("<p>x</p>", SanitizeProfile.PASSAGE)

    def test_unknown_profile_raises(self):
        with pytest.raises(UnknownProfileError):
            sanitize("x", "strict")

    def test_unknown_profile_is_value_error(self):
        with pytest.raises(ValueError):
            sanitize_many(["x"], "bogus")

    def test_empty_input(self):
        assert sanitize("") == ""


def test_parser_failure_falls_back_to_tag_stripping(monkeypatch, caplog):
    def broken(text, allow):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(sanitize_module, "_clean", broken)
    with caplog.at_level(logging.ERROR):
        result = sanitize("<b>x</b> 1 < 2")

    assert result == "x 1 &lt; 2"
    assert "parser exploded" in caplog.text


def test_strip_html():
    assert strip_html("<p>Hello <b>world</b></p><script>x()</script>") == "Hello world"
    assert strip_html("") == ""


def test_sanitize_many():
    assert sanitize_many(["<b>a</b>", "<script>x</script>b"]) == ["<b>a</b>", "b"]


def test_sanitize_with_logging_warns_with_source(caplog):
    with caplog.at_level(logging.WARNING):
        result = sanitize_with_logging("<img src=x onerror=alert(1)>hi", "model-output")

    assert result == "hi"
    assert "model-output" in caplog.text


def test_sanitize_with_logging_quiet_for_safe_text(caplog):
    with caplog.at_level(logging.WARNING):
        sanitize_with_logging("<b>fine</b>", "model-output")
    assert caplog.text == ""


class TestContainsDangerousContent:
    """Detection never mutates and is case-insensitive."""

    @pytest.mark.parametrize("text", [
        "<script>x</script>",
        "<SCRIPT>",
        '<a href="JavaScript:x">',
        '<img onerror="x">',
        "<div onClick = 'x'>",
        "<iframe src=x>",
        "<OBJECT>",
        "<embed src=x>",
        "actionable=1",
    ])
    def test_dangerous(self, text):
        assert contains_dangerous_content(text)

    @pytest.mark.parametrize("text", [
        "",
        "Plain text about a school trip.",
        '<p class="x"><strong>hi</strong> <em>there</em></p>',
        '<a href="https://example.com">x</a>',
    ])
    def test_safe(self, text):
        assert not contains_dangerous_content(text)
