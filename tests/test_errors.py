import pytest

from deputy.clients.errors import (
    ClientError,
    DecodeError,
    JsonError,
    RequestError,
    ResponseError,
    UrlParseError,
)


def test_not_found_is_detected():
    err = ResponseError.from_status_and_string(404, "missing")
    assert err.is_not_found_error() is True
    assert err.status == 404
    assert err.body == b"missing"


def test_other_statuses_are_not_not_found():
    assert ResponseError.from_status_and_string(500, "boom").is_not_found_error() is False
    assert ClientError("offline").is_not_found_error() is False


def test_too_many_requests_is_rate_limit():
    assert ResponseError.from_status_and_string(429, "").is_rate_limit_error() is True


@pytest.mark.parametrize(
    "message",
    ["API Rate Limit Exceeded for you", "you need a Higher Rate Limit", "see docs#rate-limiting"],
)
def test_rate_limit_messages(message):
    assert ResponseError.from_status_and_string(403, message).is_rate_limit_error() is True


def test_plain_forbidden_is_not_rate_limit():
    assert ResponseError.from_status_and_string(403, "forbidden").is_rate_limit_error() is False
    assert JsonError("bad").is_rate_limit_error() is False


def test_messages_carry_labels():
    assert str(ClientError("boom")) == "client error - boom"
    assert str(JsonError("boom")) == "json error - boom"
    assert str(UrlParseError("boom")) == "failed to parse url - boom"
    assert str(DecodeError("boom")) == "utf8 error - boom"
    assert str(RequestError()) == "unknown error"


def test_response_error_message():
    err = ResponseError.from_status_and_string(404, "missing")
    assert str(err) == "request failed - 404 Not Found - missing"


def test_response_error_with_binary_body():
    err = ResponseError(500, b"\xff\xfe")
    assert str(err).endswith(" - N/A")
    assert err.body == b"\xff\xfe"


def test_subclasses_behave_as_request_errors():
    err = JsonError("broken")
    assert isinstance(err, RequestError)
    assert err.detail == "broken"
    assert str(err) == "json error - broken"
    assert err.is_not_found_error() is False
    assert err.is_rate_limit_error() is False