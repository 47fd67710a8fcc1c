import pytest

from models.website import ImageCandidate
from pipeline.image_extractor import (
    display_images,
    extract_images,
    is_content_image,
    resolve_image_url,
)

pytestmark = pytest.mark.unit

BASE = "https://luigis.example/menu/today"


def test_extracts_and_filters_sample_page(sample_page):
    urls = [c.absolute_url for c in extract_images(sample_page, "https://luigis.example/")]
    assert urls == [
        "https://luigis.example/images/margherita.jpg",
        "https://cdn.example.com/oven.png",
    ]


@pytest.mark.parametrize(
    "ref,expected",
    [
        ("https://cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg"),
        ("//cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg"),
        ("/img/a.jpg", "https://luigis.example/img/a.jpg"),
        ("img/a.jpg", "https://luigis.example/img/a.jpg"),
    ],
)
def test_resolve_image_url(ref, expected):
    assert resolve_image_url(ref, BASE) == expected


@pytest.mark.parametrize(
    "url",
    [
        "https://luigis.example/favicon.ico",
        "https://luigis.example/t/pixel.gif",
        "https://ads.example/tracking/x.png",
        "https://luigis.example/spacer-1x1.gif",
        "https://luigis.example/logo.svg",
    ],
)
def test_non_content_images_rejected(url):
    assert not is_content_image(url)


def test_marker_in_hostname_does_not_reject():
    assert is_content_image("https://pixel-perfect-photos.example/pizza.jpg")


def test_data_uri_skipped():
    html = '<img src="data:image/gif;base64,R0lGOD"><img src="/a.jpg">'
    assert extract_images(html, BASE) == [ImageCandidate("https://luigis.example/a.jpg")]


def test_duplicates_removed_preserving_order():
    html = '<img src="/b.jpg"><img src="/a.jpg"><img src="/b.jpg">'
    urls = [c.absolute_url for c in extract_images(html, BASE)]
    assert urls == ["https://luigis.example/b.jpg", "https://luigis.example/a.jpg"]


def test_single_quotes_and_other_attributes():
    html = "<IMG class='hero' alt=\"x\" SRC='/hero.jpg'>"
    assert extract_images(html, BASE) == [ImageCandidate("https://luigis.example/hero.jpg")]


def test_entity_encoded_src_is_unescaped():
    html = '<img src="/photo.jpg?w=800&amp;h=600">'
    assert extract_images(html, BASE)[0].absolute_url == "https://luigis.example/photo.jpg?w=800&h=600"


def test_candidate_cap():
    html = "".join(f'<img src="/p{i}.jpg">' for i in range(50))
    assert len(extract_images(html, BASE, max_candidates=20)) == 20


def test_display_cap():
    candidates = [ImageCandidate(f"https://luigis.example/p{i}.jpg") for i in range(20)]
    shown = display_images(candidates, cap=10)
    assert len(shown) == 10
    assert shown[0] == "https://luigis.example/p0.jpg"


def test_img_markup_inside_script_is_not_an_image():
    html = '<script>var tpl = "<img src=\'/tpl.jpg\'>";</script><img src="/real.jpg">'
    assert extract_images(html, BASE) == [ImageCandidate("https://luigis.example/real.jpg")]


def test_img_without_src_is_ignored():
    html = '<img data-src="/lazy.jpg"><img src="">'
    assert extract_images(html, BASE) == []
