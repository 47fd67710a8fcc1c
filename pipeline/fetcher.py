"""
Resilient single-page fetcher.

Redirects are followed by hand so the hop count is capped and relative
``Location`` headers resolve against the previous request. One wall-clock
deadline covers every hop and the body read. The HTTP transport is injectable
so the redirect/timeout logic can be exercised without a network.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

import httpx

from config.config import FetcherSettings
from models.website import FetchResult
from pipeline.errors import (
    DNSOrConnectFailure,
    InvalidInput,
    RemoteHTTPError,
    StageTimeout,
    TooManyRedirects,
)
from utils.logger import get_logger

logger = get_logger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
ALLOWED_SCHEMES = {"http", "https"}


def check_host(url: str) -> None:
    """
    Raise the errors httpx would raise lazily, mid-request, for a host it
    cannot IDNA-encode or decode.
    """
    httpx.URL(url).host


def normalize_url(raw: str) -> str:
    """
    Prefix ``https://`` when no scheme is given and reject anything that is not
    an absolute http(s) URL with a host. Never touches the network.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidInput("empty url", public_message="Website URL is required")

    candidate = raw.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        parts.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise InvalidInput(f"unparseable url: {exc}") from exc

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidInput(f"unsupported scheme {parts.scheme!r}")
    if not parts.hostname or any(ch.isspace() for ch in parts.netloc):
        raise InvalidInput("url has no usable host")

    try:
        check_host(candidate)
    except (httpx.InvalidURL, UnicodeError) as exc:
        raise InvalidInput(f"invalid hostname: {exc}") from exc

    return candidate


def browser_headers(user_agent: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }


@dataclass(frozen=True)
class RedirectState:
    url: str
    hops_remaining: int


def resolve_location(current_url: str, location: str) -> str:
    """Resolve a possibly relative Location header against the request that produced it."""
    resolved = urljoin(current_url, location.strip())
    if urlsplit(resolved).scheme.lower() not in ALLOWED_SCHEMES:
        raise DNSOrConnectFailure(f"redirect to unsupported location {location!r}")
    try:
        check_host(resolved)
    except (httpx.InvalidURL, UnicodeError) as exc:
        raise DNSOrConnectFailure(f"redirect to invalid location {location!r}: {exc}") from exc
    return resolved


def next_redirect_state(
    state: RedirectState, status_code: int, location: str | None
) -> RedirectState | None:
    """
    One transition of the redirect state machine.

    Returns None when the response is final, the next state when it is a
    redirect, and raises TooManyRedirects once the hop budget is spent.
    """
    if not (300 <= status_code < 400) or not location:
        return None
    if state.hops_remaining <= 0:
        raise TooManyRedirects(f"redirect cap reached at {state.url}")
    return RedirectState(
        url=resolve_location(state.url, location),
        hops_remaining=state.hops_remaining - 1,
    )


class WebsiteFetcher:
    """Fetch one page with browser-like headers, capped redirects and a single deadline."""

    def __init__(
        self,
        settings: FetcherSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or FetcherSettings()
        self._transport = transport

        if not self.settings.verify_tls:
            logger.warning(
                "TLS certificate verification is disabled for website fetches",
                extra={"extra_fields": {"setting": "FETCH_VERIFY_TLS", "verify_tls": False}},
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=browser_headers(self.settings.user_agent),
            verify=self.settings.verify_tls,
            follow_redirects=False,
            timeout=httpx.Timeout(self.settings.timeout_s),
            transport=self._transport,
        )

    async def fetch(self, url: str) -> FetchResult:
        target = normalize_url(url)
        start = time.monotonic()

        try:
            result = await asyncio.wait_for(
                self._fetch_with_redirects(target), timeout=self.settings.timeout_s
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning(
                "Website fetch timed out",
                extra={"extra_fields": {"url": target, "timeout_s": self.settings.timeout_s}},
            )
            raise StageTimeout("fetch", f"fetch exceeded {self.settings.timeout_s}s") from exc
        except httpx.ConnectError as exc:
            logger.warning(
                "Website fetch could not connect",
                extra={"extra_fields": {"url": target, "error": str(exc)}},
            )
            raise DNSOrConnectFailure(str(exc)) from exc
        except (httpx.InvalidURL, UnicodeError) as exc:
            logger.warning(
                "Website fetch rejected an unusable URL",
                extra={"extra_fields": {"url": target, "error_type": type(exc).__name__, "error": str(exc)}},
            )
            raise DNSOrConnectFailure(str(exc)) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Website fetch failed",
                extra={"extra_fields": {"url": target, "error_type": type(exc).__name__, "error": str(exc)}},
            )
            raise DNSOrConnectFailure(str(exc)) from exc

        logger.info(
            "Website fetched",
            extra={
                "extra_fields": {
                    "url": target,
                    "final_url": result.final_url,
                    "status_code": result.status_code,
                    "body_bytes": len(result.body),
                    "elapsed_ms": int((time.monotonic() - start) * 1000),
                }
            },
        )
        return result

    async def _fetch_with_redirects(self, url: str) -> FetchResult:
        state = RedirectState(url=url, hops_remaining=self.settings.max_redirects)

        async with self._client() as client:
            while True:
                async with client.stream("GET", state.url) as response:
                    next_state = next_redirect_state(
                        state, response.status_code, response.headers.get("location")
                    )
                    if next_state is not None:
                        logger.debug(
                            "Following redirect",
                            extra={
                                "extra_fields": {
                                    "from": state.url,
                                    "to": next_state.url,
                                    "status_code": response.status_code,
                                    "hops_remaining": next_state.hops_remaining,
                                }
                            },
                        )
                        state = next_state
                        continue

                    if response.status_code >= 400:
                        raise RemoteHTTPError(response.status_code)

                    body = await self._read_capped(response, state.url)
                    return FetchResult(
                        final_url=state.url, body=body, status_code=response.status_code
                    )

    async def _read_capped(self, response: httpx.Response, url: str) -> bytes:
        cap = self.settings.max_body_bytes
        chunks: list[bytes] = []
        total = 0

        async for chunk in response.aiter_bytes():
            if total + len(chunk) > cap:
                chunks.append(chunk[: cap - total])
                total = cap
                logger.warning(
                    "Website body exceeded byte cap; keeping the first bytes only",
                    extra={"extra_fields": {"url": url, "max_body_bytes": cap}},
                )
                break
            chunks.append(chunk)
            total += len(chunk)

        return b"".join(chunks)
