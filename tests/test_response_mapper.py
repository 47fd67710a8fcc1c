import pytest

from pipeline.errors import (
    DNSOrConnectFailure,
    EmptyProposal,
    ErrorKind,
    Forbidden,
    GenerationFailed,
    InsufficientContent,
    InvalidInput,
    MalformedGenerationOutput,
    RateLimited,
    RemoteHTTPError,
    ServiceNotConfigured,
    StageTimeout,
    TooManyRedirects,
    Unauthorized,
)
from pipeline.response_mapper import ERROR_TABLE, GENERATION_TIMEOUT_MESSAGE, map_error

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "exc,status,retryable",
    [
        (Unauthorized(), 401, False),
        (Forbidden(), 403, False),
        (RateLimited(120), 429, True),
        (InvalidInput("bad"), 400, False),
        (StageTimeout("fetch"), 408, True),
        (TooManyRedirects(), 422, False),
        (RemoteHTTPError(503), 422, False),
        (DNSOrConnectFailure("nxdomain"), 422, False),
        (InsufficientContent(), 422, False),
        (MalformedGenerationOutput(), 500, True),
        (EmptyProposal(), 500, True),
        (GenerationFailed("boom"), 500, True),
        (ServiceNotConfigured(), 500, False),
    ],
)
def test_status_and_retryable(exc, status, retryable):
    mapped = map_error(exc)
    assert mapped.status_code == status
    assert mapped.retryable is retryable
    assert mapped.kind is exc.kind


def test_every_kind_has_a_table_entry():
    assert set(ERROR_TABLE) == set(ErrorKind)


def test_unknown_exception_is_internal_and_hides_text():
    mapped = map_error(KeyError("secret internal detail"))
    assert mapped.kind is ErrorKind.INTERNAL
    assert mapped.status_code == 500
    assert "secret" not in mapped.message


def test_detail_never_reaches_message():
    mapped = map_error(DNSOrConnectFailure("getaddrinfo failed for 10.0.0.5"))
    assert "10.0.0.5" not in mapped.message


def test_remote_status_folded_into_message():
    assert "HTTP 404" in map_error(RemoteHTTPError(404)).message


def test_public_message_override():
    mapped = map_error(Forbidden("role customer", public_message="Only vendors can use this feature"))
    assert mapped.message == "Only vendors can use this feature"


def test_generation_timeout_has_own_message():
    assert map_error(StageTimeout("generation")).message == GENERATION_TIMEOUT_MESSAGE
    assert map_error(StageTimeout("fetch")).message != GENERATION_TIMEOUT_MESSAGE


def test_rate_limited_carries_retry_after():
    mapped = map_error(RateLimited(42))
    assert mapped.retry_after == 42
    assert mapped.to_dict() == {
        "error": "Too many requests. Please try again later.",
        "code": "rate_limited",
        "retryable": True,
    }
