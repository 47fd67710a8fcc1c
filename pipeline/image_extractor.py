from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from models.website import ImageCandidate
from pipeline.sanitizer import parse_html

DEFAULT_MAX_CANDIDATES = 20
DEFAULT_DISPLAY_CAP = 10

NON_CONTENT_MARKERS = ("favicon", "pixel", "tracking", "1x1")
VECTOR_SUFFIXES = (".svg", ".svgz")


def _origin(base_url: str) -> tuple[str, str]:
    parts = urlsplit(base_url)
    return parts.scheme, f"{parts.scheme}://{parts.netloc}"


def resolve_image_url(ref: str, base_url: str) -> str:
    """
    Make an image reference absolute.

    Root-relative and bare relative references both resolve against the
    origin root, not the current path segment.
    """
    scheme, origin = _origin(base_url)
    if ref.lower().startswith(("http://", "https://")):
        return ref
    if ref.startswith("//"):
        return f"{scheme}:{ref}"
    if ref.startswith("/"):
        return f"{origin}{ref}"
    return f"{origin}/{ref}"


def is_content_image(url: str) -> bool:
    path = urlsplit(url).path.lower()
    if any(marker in path for marker in NON_CONTENT_MARKERS):
        return False
    return not path.endswith(VECTOR_SUFFIXES)


def extract_images(
    page: str | BeautifulSoup, base_url: str, max_candidates: int = DEFAULT_MAX_CANDIDATES
) -> list[ImageCandidate]:
    """Collect up to ``max_candidates`` distinct content images referenced by ``<img src>``."""
    soup = page if isinstance(page, BeautifulSoup) else parse_html(page)
    candidates: list[ImageCandidate] = []
    seen: set[str] = set()

    for img in soup.find_all("img", src=True):
        if len(candidates) >= max_candidates:
            break

        ref = img["src"].strip()
        if not ref or ref.lower().startswith("data:"):
            continue

        url = resolve_image_url(ref, base_url)
        if url in seen or not is_content_image(url):
            continue

        seen.add(url)
        candidates.append(ImageCandidate(absolute_url=url))

    return candidates


def display_images(candidates: list[ImageCandidate], cap: int = DEFAULT_DISPLAY_CAP) -> list[str]:
    return [candidate.absolute_url for candidate in candidates[:cap]]
