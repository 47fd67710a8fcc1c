import pytest

from models.website import SanitizedContent
from pipeline.errors import InsufficientContent
from pipeline.image_extractor import extract_images
from pipeline.sanitizer import decode_body, ensure_sufficient, parse_html, sanitize

pytestmark = pytest.mark.unit


def test_script_is_removed_and_prose_kept():
    content = sanitize("<script>alert(1)</script><p>Pizza $10</p>")
    assert content == SanitizedContent(excerpt="Pizza $10", truncated=False)


def test_removes_style_svg_noscript_iframe_and_comments(sample_page):
    excerpt = sanitize(sample_page).excerpt

    assert "color: red" not in excerpt
    assert "analytics" not in excerpt
    assert "logo" not in excerpt
    assert "header" not in excerpt
    assert "<" not in excerpt
    assert "Family-owned wood-fired pizza in Austin" in excerpt


def test_tags_become_word_boundaries():
    assert sanitize("<li>Pasta</li><li>Salad</li>").excerpt == "Pasta Salad"


def test_unterminated_script_does_not_leak():
    excerpt = sanitize("<p>Open daily</p><script>var secret = 'x';").excerpt
    assert excerpt == "Open daily"


def test_case_insensitive_blocks():
    assert sanitize("<SCRIPT type='x'>bad()</SCRIPT>ok").excerpt == "ok"


def test_whitespace_collapsed_and_entities_decoded():
    excerpt = sanitize("<p>Fish &amp;   Chips\n\n\t$12</p>").excerpt
    assert excerpt == "Fish & Chips $12"


def test_markup_inside_comment_is_dropped():
    assert sanitize("<!-- <p>hidden promo</p> --><p>shown</p>").excerpt == "shown"


def test_parsed_document_is_sanitized_in_place(sample_page):
    soup = parse_html(sample_page)
    images = extract_images(soup, "https://luigis.example/")
    excerpt = sanitize(soup).excerpt

    assert [c.absolute_url for c in images][0] == "https://luigis.example/images/margherita.jpg"
    assert "Family-owned wood-fired pizza" in excerpt
    assert soup.find("script") is None
    assert soup.find("svg") is None


def test_budget_is_a_hard_cut():
    body = "<p>" + ("word " * 5000) + "</p>"
    content = sanitize(body, budget=8000)
    assert len(content.excerpt) <= 8000
    assert content.truncated is True


def test_adversarial_markup_respects_budget():
    body = "<div>" * 10000 + "A" * 20000 + "<!--" * 500
    content = sanitize(body, budget=100)
    assert len(content.excerpt) <= 100
    assert content.truncated is True


def test_short_text_not_truncated():
    assert sanitize("<p>short</p>", budget=8000).truncated is False


def test_sanitize_is_deterministic(sample_page):
    assert sanitize(sample_page) == sanitize(sample_page)


def test_negative_budget_rejected():
    with pytest.raises(ValueError):
        sanitize("<p>x</p>", budget=-1)


def test_decode_body_replaces_invalid_bytes():
    assert decode_body(b"caf\xc3\xa9 \xff") == "caf\u00e9 \ufffd"


def test_ensure_sufficient_rejects_thin_page():
    thin = sanitize("<html><body><div id='root'></div><p>Loading</p></body></html>")
    with pytest.raises(InsufficientContent):
        ensure_sufficient(thin, minimum=100)


def test_ensure_sufficient_passes_content_through():
    content = SanitizedContent(excerpt="x" * 100)
    assert ensure_sufficient(content, minimum=100) is content
