from dataclasses import dataclass


@dataclass(frozen=True)
class FetchResult:
    """Raw page as returned by the fetcher. The body is only ever read as text."""

    final_url: str
    body: bytes
    status_code: int


@dataclass(frozen=True)
class SanitizedContent:
    excerpt: str
    truncated: bool = False


@dataclass(frozen=True)
class ImageCandidate:
    absolute_url: str
