"""Reduce raw page markup to a bounded prose excerpt for the prompt."""

import re

from bs4 import BeautifulSoup, Comment

from models.website import SanitizedContent
from pipeline.errors import InsufficientContent

DEFAULT_EXCERPT_BUDGET = 8000
DEFAULT_MIN_EXCERPT_CHARS = 100

# Removed in this order before text extraction
NOISE_TAGS = ("script", "style", "svg", "noscript", "iframe")

_WHITESPACE_RE = re.compile(r"\s+")


def decode_body(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def parse_html(raw_html: str) -> BeautifulSoup:
    return BeautifulSoup(raw_html, "html.parser")


def sanitize(page: str | BeautifulSoup, budget: int = DEFAULT_EXCERPT_BUDGET) -> SanitizedContent:
    """
    Strip non-prose markup and cut the text to ``budget`` characters.

    A parsed document is modified in place; read anything else you need from
    it (images) first. The cut is a hard prefix, not a summary; ``truncated``
    tells whether anything was dropped.
    """
    if budget < 0:
        raise ValueError("budget must be non-negative")

    soup = page if isinstance(page, BeautifulSoup) else parse_html(page)

    for name in NOISE_TAGS:
        for tag in soup.find_all(name):
            tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    # get_text decodes entities; the separator keeps adjacent elements apart
    text = _WHITESPACE_RE.sub(" ", soup.get_text(" ")).strip()

    if len(text) <= budget:
        return SanitizedContent(excerpt=text, truncated=False)
    return SanitizedContent(excerpt=text[:budget].rstrip(), truncated=True)


def ensure_sufficient(
    content: SanitizedContent, minimum: int = DEFAULT_MIN_EXCERPT_CHARS
) -> SanitizedContent:
    """Thin text almost always means a JavaScript-rendered or blocked page."""
    if len(content.excerpt) < minimum:
        raise InsufficientContent(
            f"excerpt has {len(content.excerpt)} chars, minimum is {minimum}"
        )
    return content
