"""
Module: ingest.sanitize

Purpose:
    Make model- and user-derived strings safe to render. Every string
    goes through exactly one of two allow-list profiles:

    - inline: emphasis, mark, span and code only (short fragments)
    - passage: adds paragraphs, lists, headings, blockquotes and anchors

    Script-like elements are removed together with their content; other
    disallowed tags are unwrapped so their text survives. Event-handler
    attributes and javascript: URLs are always removed. If the HTML
    parser itself fails, all tags are stripped instead.

Key Functions:
    - sanitize(text, profile)
    - sanitize_inline() / sanitize_passage()
    - strip_html(): Plain text only
    - sanitize_many() / sanitize_with_logging()
    - contains_dangerous_content(): Detection only, never mutates
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Union

from bs4 import BeautifulSoup, CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag

from exam_ingest.common.patterns import DANGEROUS_PATTERNS, HTML_TAG_PATTERN
from exam_ingest.core.errors import UnknownProfileError
from exam_ingest.ingest.config import SanitizeConfig

logger = logging.getLogger(__name__)

PARSER = "lxml"

# Keeps the parser from wrapping leading text in an implied <p>
_FRAGMENT_WRAPPER = "<div>{}</div>"

# Removed together with everything inside them
DROP_WITH_CONTENT = ("script", "style", "iframe", "object", "embed", "link", "meta", "noscript")

_NON_CONTENT = (Comment, CData, Declaration, Doctype, ProcessingInstruction)
_URL_ATTRIBUTES = frozenset({"href", "src"})
_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")
_URL_NOISE = re.compile(r"[\x00-\x20]")


class SanitizeProfile(str, Enum):
    """Named allow-list."""
    INLINE = "inline"
    PASSAGE = "passage"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AllowList:
    tags: frozenset
    attributes: frozenset
    data_attributes: bool = True


_INLINE_TAGS = frozenset({"mark", "em", "strong", "b", "i", "u", "span", "code"})

PROFILES: Mapping[SanitizeProfile, AllowList] = MappingProxyType({
    SanitizeProfile.INLINE: AllowList(
        tags=_INLINE_TAGS,
        attributes=frozenset({"class"}),
    ),
    SanitizeProfile.PASSAGE: AllowList(
        tags=_INLINE_TAGS | frozenset({
            "p", "br", "div", "a", "ul", "ol", "li",
            "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre",
        }),
        attributes=frozenset({"class", "id", "href", "title", "aria-label", "aria-describedby"}),
    ),
})


def _resolve_profile(profile: Union[SanitizeProfile, str]) -> SanitizeProfile:
    try:
        return SanitizeProfile(profile)
    except ValueError:
        raise UnknownProfileError(f"Unknown sanitize profile: {profile!r}") from None


def contains_dangerous_content(text: str) -> bool:
    """True when text holds script tags, javascript: URLs, on*= handlers or embedded frames."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in DANGEROUS_PATTERNS)


def _is_unsafe_url(value: str) -> bool:
    return _URL_NOISE.sub("", value).lower().startswith(_UNSAFE_SCHEMES)


def _attribute_allowed(name: str, value, allow: AllowList) -> bool:
    name = name.lower()
    if name.startswith("on"):
        return False
    if name in _URL_ATTRIBUTES and isinstance(value, str) and _is_unsafe_url(value):
        return False
    if name.startswith("data-"):
        return allow.data_attributes
    return name in allow.attributes


def _drop_unsafe(soup: BeautifulSoup) -> None:
    for node in soup.find_all(string=lambda s: isinstance(s, _NON_CONTENT)):
        node.extract()
    for tag in soup.find_all(DROP_WITH_CONTENT):
        if not tag.decomposed:
            tag.decompose()


def _parse_fragment(text: str) -> Tag:
    """Parse an HTML fragment with unsafe nodes removed; returns the element holding it."""
    soup = BeautifulSoup(_FRAGMENT_WRAPPER.format(text), PARSER)
    _drop_unsafe(soup)
    root = soup.body if soup.body is not None else soup
    wrapper = root.contents[0] if root.contents else None
    if isinstance(wrapper, Tag) and wrapper.name == "div":
        wrapper.unwrap()
    return root


def _clean(text: str, allow: AllowList) -> str:
    root = _parse_fragment(text)
    for tag in root.find_all(True):
        if tag.name not in allow.tags:
            tag.unwrap()
            continue
        for name in list(tag.attrs):
            if not _attribute_allowed(name, tag.attrs[name], allow):
                del tag.attrs[name]
    return root.decode_contents()


def _strip_tags_fallback(text: str) -> str:
    """Regex tag strip; leftover angle brackets are escaped."""
    stripped = HTML_TAG_PATTERN.sub("", text)
    return stripped.replace("<", "&lt;").replace(">", "&gt;")


def sanitize(text: str, profile: Union[SanitizeProfile, str] = SanitizeProfile.INLINE) -> str:
    """
    Sanitize text with a named profile.

    Args:
        text: Untrusted HTML or plain text
        profile: "inline" or "passage"

    Returns:
        Render-ready string. Never raises for bad input; a parser failure
        degrades to tag-stripped text.

    Raises:
        UnknownProfileError: If profile is not a known profile name
    """
    allow = PROFILES[_resolve_profile(profile)]
    if not text:
        return ""
    try:
        return _clean(text, allow)
    except Exception as exc:
        logger.error(f"Sanitizer failed, falling back to tag stripping: {exc}")
        return _strip_tags_fallback(text)


def sanitize_inline(text: str) -> str:
    return sanitize(text, SanitizeProfile.INLINE)


def sanitize_passage(text: str) -> str:
    return sanitize(text, SanitizeProfile.PASSAGE)


def strip_html(text: str) -> str:
    """Plain text content with every tag removed (not HTML-escaped)."""
    if not text:
        return ""
    try:
        return _parse_fragment(text).get_text()
    except Exception as exc:
        logger.error(f"HTML strip failed, falling back to regex: {exc}")
        return HTML_TAG_PATTERN.sub("", text)


def sanitize_many(
    items: Iterable[str], profile: Union[SanitizeProfile, str] = SanitizeProfile.INLINE
) -> List[str]:
    """Sanitize each string with the same profile."""
    resolved = _resolve_profile(profile)
    return [sanitize(item, resolved) for item in items]


def sanitize_with_logging(
    text: str,
    source: str,
    profile: Union[SanitizeProfile, str] = SanitizeProfile.INLINE,
    config: SanitizeConfig = SanitizeConfig(),
) -> str:
    """Sanitize, logging a warning first when dangerous content is present."""
    if config.log_dangerous and contains_dangerous_content(text):
        preview = text[: config.thresholds.log_preview_chars]
        logger.warning(f"Dangerous content from {source}: {preview!r}")
    return sanitize(text, profile)
