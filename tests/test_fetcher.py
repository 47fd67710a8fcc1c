"""
Tests for the resilient website fetcher.

All traffic goes through httpx.MockTransport; no test touches the network.
"""

import asyncio

import httpx
import pytest

from config.config import FetcherSettings
from pipeline.errors import (
    DNSOrConnectFailure,
    InvalidInput,
    RemoteHTTPError,
    StageTimeout,
    TooManyRedirects,
)
from pipeline.fetcher import (
    RedirectState,
    WebsiteFetcher,
    next_redirect_state,
    normalize_url,
    resolve_location,
)

pytestmark = pytest.mark.unit

PAGE = b"<html><body><p>Hello from a small business website.</p></body></html>"


def _fetcher(handler, **settings) -> WebsiteFetcher:
    return WebsiteFetcher(FetcherSettings(**settings), transport=httpx.MockTransport(handler))


class TestNormalizeUrl:
    def test_adds_https_when_scheme_missing(self):
        assert normalize_url("luigis.example") == "https://luigis.example"

    def test_keeps_explicit_http(self):
        assert normalize_url("http://luigis.example/menu?x=1") == "http://luigis.example/menu?x=1"

    def test_strips_surrounding_whitespace(self):
        assert normalize_url("  https://luigis.example  ") == "https://luigis.example"

    def test_empty_url_has_required_message(self):
        with pytest.raises(InvalidInput) as exc_info:
            normalize_url("   ")
        assert exc_info.value.public_message == "Website URL is required"

    @pytest.mark.parametrize(
        "raw",
        [
            "ftp://luigis.example/file",
            "https://",
            "http://luigis example.com",
            "javascript:alert(1)",
            "https://luigis.example:notaport/",
            "https://xn--.com",
            "https://exa\u00admple..com",
        ],
    )
    def test_rejects_non_http_or_hostless(self, raw):
        with pytest.raises(InvalidInput):
            normalize_url(raw)


class TestRedirectStateMachine:
    def test_non_redirect_is_final(self):
        state = RedirectState(url="https://a.example/", hops_remaining=5)
        assert next_redirect_state(state, 200, None) is None

    def test_redirect_without_location_is_final(self):
        state = RedirectState(url="https://a.example/", hops_remaining=5)
        assert next_redirect_state(state, 302, None) is None

    def test_relative_location_resolves_against_previous_url(self):
        state = RedirectState(url="https://a.example/dir/page", hops_remaining=5)
        nxt = next_redirect_state(state, 301, "next")
        assert nxt == RedirectState(url="https://a.example/dir/next", hops_remaining=4)

    def test_root_relative_location(self):
        assert resolve_location("https://a.example/dir/page", "/home") == "https://a.example/home"

    def test_exhausted_budget_raises(self):
        state = RedirectState(url="https://a.example/", hops_remaining=0)
        with pytest.raises(TooManyRedirects):
            next_redirect_state(state, 302, "/again")

    def test_redirect_to_undecodable_host_is_rejected(self):
        with pytest.raises(DNSOrConnectFailure):
            resolve_location("https://a.example/", "https://xn--.com/")

    def test_redirect_to_other_scheme_is_rejected(self):
        with pytest.raises(DNSOrConnectFailure):
            resolve_location("https://a.example/", "mailto:owner@a.example")


class TestWebsiteFetcher:
    def test_success_returns_body_and_sends_browser_headers(self):
        seen = {}

        async def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers.get("user-agent")
            seen["accept"] = request.headers.get("accept")
            return httpx.Response(200, content=PAGE)

        result = asyncio.run(_fetcher(handler).fetch("luigis.example"))

        assert result.status_code == 200
        assert result.body == PAGE
        assert result.final_url == "https://luigis.example"
        assert "Mozilla/5.0" in seen["ua"]
        assert seen["accept"].startswith("text/html")

    def test_follows_relative_redirect_and_reports_final_url(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old/page":
                return httpx.Response(302, headers={"Location": "landing"})
            return httpx.Response(200, content=PAGE)

        result = asyncio.run(_fetcher(handler).fetch("https://luigis.example/old/page"))
        assert result.final_url == "https://luigis.example/old/landing"

    def test_five_redirects_are_allowed(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            hop = int(request.url.path.strip("/") or 0)
            if hop < 5:
                return httpx.Response(302, headers={"Location": f"/{hop + 1}"})
            return httpx.Response(200, content=PAGE)

        result = asyncio.run(_fetcher(handler).fetch("https://luigis.example/0"))
        assert result.final_url == "https://luigis.example/5"

    def test_six_redirects_raise(self):
        calls = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(302, headers={"Location": f"/hop{len(calls)}"})

        with pytest.raises(TooManyRedirects):
            asyncio.run(_fetcher(handler).fetch("https://luigis.example/"))
        assert len(calls) == 6

    def test_http_error_status_is_not_read(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"not found")

        with pytest.raises(RemoteHTTPError) as exc_info:
            asyncio.run(_fetcher(handler).fetch("https://luigis.example/missing"))
        assert exc_info.value.status_code == 404

    def test_hung_server_hits_deadline(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, content=PAGE)

        with pytest.raises(StageTimeout) as exc_info:
            asyncio.run(_fetcher(handler, timeout_s=0.2).fetch("https://slow.example/"))
        assert exc_info.value.stage == "fetch"

    def test_connect_error_maps_to_connect_failure(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        with pytest.raises(DNSOrConnectFailure):
            asyncio.run(_fetcher(handler).fetch("https://nowhere.invalid/"))

    def test_body_is_capped(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * 5000)

        result = asyncio.run(_fetcher(handler, max_body_bytes=1024).fetch("https://big.example/"))
        assert len(result.body) == 1024

    def test_invalid_url_never_reaches_transport(self):
        calls = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, content=PAGE)

        with pytest.raises(InvalidInput):
            asyncio.run(_fetcher(handler).fetch("ftp://luigis.example"))
        assert calls == []

    @pytest.mark.parametrize("url", ["https://xn--.com", "https://exa\u00admple..com"])
    def test_undecodable_host_is_invalid_input_before_io(self, url):
        calls = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, content=PAGE)

        with pytest.raises(InvalidInput):
            asyncio.run(_fetcher(handler).fetch(url))
        assert calls == []

    def test_redirect_to_undecodable_host_is_classified(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(301, headers={"Location": "https://xn--.com/"})

        with pytest.raises(DNSOrConnectFailure):
            asyncio.run(_fetcher(handler).fetch("https://luigis.example/"))
