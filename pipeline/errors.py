"""
Failure taxonomy for the website import pipeline.

Each stage raises the narrowest ``PipelineError`` subclass it can; the
response mapper turns it into the caller-facing status and message. ``detail``
is for logs only and is never shown to the caller. ``public_message`` is an
optional override chosen by our own code, never library text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    INVALID_INPUT = "invalid_input"
    TIMEOUT = "timeout"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    REMOTE_HTTP_ERROR = "remote_http_error"
    DNS_OR_CONNECT_FAILURE = "dns_or_connect_failure"
    INSUFFICIENT_CONTENT = "insufficient_content"
    MALFORMED_GENERATION_OUTPUT = "malformed_generation_output"
    EMPTY_PROPOSAL = "empty_proposal"
    GENERATION_FAILED = "generation_failed"
    SERVICE_NOT_CONFIGURED = "service_not_configured"
    INTERNAL = "internal"


class PipelineError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, detail: str = "", *, public_message: str | None = None):
        super().__init__(detail or self.kind.value)
        self.detail = detail
        self.public_message = public_message


class Unauthorized(PipelineError):
    kind = ErrorKind.UNAUTHORIZED


class Forbidden(PipelineError):
    kind = ErrorKind.FORBIDDEN


class RateLimited(PipelineError):
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int, detail: str = ""):
        super().__init__(detail or f"retry after {retry_after}s")
        self.retry_after = retry_after


class InvalidInput(PipelineError):
    kind = ErrorKind.INVALID_INPUT


class StageTimeout(PipelineError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, stage: str, detail: str = ""):
        super().__init__(detail or f"{stage} timed out")
        self.stage = stage


class TooManyRedirects(PipelineError):
    kind = ErrorKind.TOO_MANY_REDIRECTS


class RemoteHTTPError(PipelineError):
    kind = ErrorKind.REMOTE_HTTP_ERROR

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(detail or f"HTTP {status_code}")
        self.status_code = status_code


class DNSOrConnectFailure(PipelineError):
    kind = ErrorKind.DNS_OR_CONNECT_FAILURE


class InsufficientContent(PipelineError):
    kind = ErrorKind.INSUFFICIENT_CONTENT


class MalformedGenerationOutput(PipelineError):
    kind = ErrorKind.MALFORMED_GENERATION_OUTPUT


class EmptyProposal(PipelineError):
    kind = ErrorKind.EMPTY_PROPOSAL


class GenerationFailed(PipelineError):
    kind = ErrorKind.GENERATION_FAILED

    def __init__(self, detail: str = "", *, code: str = "unknown"):
        super().__init__(detail)
        self.code = code


class ServiceNotConfigured(PipelineError):
    kind = ErrorKind.SERVICE_NOT_CONFIGURED
