"""Shared utilities for FastAPI routes."""

from collections.abc import Mapping

from fastapi.responses import JSONResponse

from pipeline.response_mapper import MappedError

SENSITIVE_HEADERS = {"x-api-key", "authorization", "cookie"}


def redact_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Redact auth-bearing headers before logging.
    """
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS and value:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def error_response(mapped: MappedError, request_id: str | None = None) -> JSONResponse:
    """Render a MappedError as the public error body, with Retry-After when rate limited."""
    headers: dict[str, str] = {}
    if mapped.retry_after is not None:
        headers["Retry-After"] = str(mapped.retry_after)
    if request_id:
        headers["X-Request-ID"] = request_id
    return JSONResponse(status_code=mapped.status_code, content=mapped.to_dict(), headers=headers)
