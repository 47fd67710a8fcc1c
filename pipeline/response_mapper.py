from dataclasses import dataclass

from pipeline.errors import ErrorKind, PipelineError, RateLimited, RemoteHTTPError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MappedError:
    kind: ErrorKind
    status_code: int
    message: str
    retryable: bool = False
    retry_after: int | None = None

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.kind.value, "retryable": self.retryable}


# kind -> (HTTP status, default message, retryable)
ERROR_TABLE: dict[ErrorKind, tuple[int, str, bool]] = {
    ErrorKind.UNAUTHORIZED: (401, "Unauthorized", False),
    ErrorKind.FORBIDDEN: (
        403,
        "Website Import requires a Business plan or higher. Upgrade at /vendor/subscription.",
        False,
    ),
    ErrorKind.RATE_LIMITED: (429, "Too many requests. Please try again later.", True),
    ErrorKind.INVALID_INPUT: (400, "Invalid URL format", False),
    ErrorKind.TIMEOUT: (
        408,
        "The website took too long to respond. Try again or check the URL.",
        True,
    ),
    ErrorKind.TOO_MANY_REDIRECTS: (
        422,
        "The website redirected too many times. Check the URL and try again.",
        False,
    ),
    ErrorKind.REMOTE_HTTP_ERROR: (
        422,
        "Could not reach the website. Check the URL and try again.",
        False,
    ),
    ErrorKind.DNS_OR_CONNECT_FAILURE: (
        422,
        "Could not find that website. Check the URL and try again.",
        False,
    ),
    ErrorKind.INSUFFICIENT_CONTENT: (
        422,
        "The website returned very little content. It may be blocked or require "
        "JavaScript. Try a different page URL.",
        False,
    ),
    ErrorKind.MALFORMED_GENERATION_OUTPUT: (500, "Failed to analyze website. Please try again.", True),
    ErrorKind.EMPTY_PROPOSAL: (500, "Failed to analyze website. Please try again.", True),
    ErrorKind.GENERATION_FAILED: (500, "Failed to analyze website. Please try again.", True),
    ErrorKind.SERVICE_NOT_CONFIGURED: (500, "AI service not configured", False),
    ErrorKind.INTERNAL: (500, "Failed to analyze website. Please try again.", True),
}

GENERATION_TIMEOUT_MESSAGE = "Analyzing the website took too long. Please try again."


def map_error(exc: BaseException) -> MappedError:
    """
    Classify any exception into a caller-facing error.

    Unknown exception types become ``internal``; their text is logged, not returned.
    """
    if not isinstance(exc, PipelineError):
        logger.error(
            "Unclassified failure in website import pipeline",
            exc_info=exc,
            extra={"extra_fields": {"error_type": type(exc).__name__}},
        )
        status_code, message, retryable = ERROR_TABLE[ErrorKind.INTERNAL]
        return MappedError(ErrorKind.INTERNAL, status_code, message, retryable)

    status_code, message, retryable = ERROR_TABLE[exc.kind]

    if exc.public_message:
        message = exc.public_message
    elif isinstance(exc, RemoteHTTPError):
        message = f"Could not reach the website (HTTP {exc.status_code}). Check the URL and try again."
    elif exc.kind is ErrorKind.TIMEOUT and getattr(exc, "stage", None) == "generation":
        message = GENERATION_TIMEOUT_MESSAGE

    retry_after = exc.retry_after if isinstance(exc, RateLimited) else None

    return MappedError(
        kind=exc.kind,
        status_code=status_code,
        message=message,
        retryable=retryable,
        retry_after=retry_after,
    )
