"""Errors raised by the registry clients."""

from __future__ import annotations

from http import HTTPStatus

_RATE_LIMIT_MARKERS = ("rate limit exceeded", "higher rate limit", "#rate-limiting")


def _status_text(status: int) -> str:
    try:
        return f"{status} {HTTPStatus(status).phrase}"
    except ValueError:
        return f"{status} <unknown status code>"


class RequestError(Exception):
    """Base class for every failure of a registry request."""

    label = ""

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        if not self.label:
            return "unknown error"
        return f"{self.label} - {self.detail}"

    def is_not_found_error(self) -> bool:
        """Tell whether the server answered 404 Not Found."""
        return isinstance(self, ResponseError) and self.status == HTTPStatus.NOT_FOUND

    def is_rate_limit_error(self) -> bool:
        """Tell whether the server refused the request for exceeding a rate limit."""
        if not isinstance(self, ResponseError):
            return False
        if self.status == HTTPStatus.TOO_MANY_REQUESTS:
            return True
        message = self.body.decode("utf-8", errors="replace").lower()
        return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class ResponseError(RequestError):
    """The server answered with a client or server error status."""

    label = "request failed"

    def __init__(self, status: int, body: bytes = b"") -> None:
        self.status = int(status)
        self.body = bytes(body)
        try:
            text = self.body.decode("utf-8")
        except UnicodeDecodeError:
            text = "N/A"
        super().__init__(f"{_status_text(self.status)} - {text}")

    @classmethod
    def from_status_and_string(cls, status: int, string: str) -> ResponseError:
        """Build an error from a status code and a text body."""
        return cls(status, string.encode("utf-8"))


class DecodeError(RequestError):
    """A response body was not valid UTF-8."""

    label = "utf8 error"


class UrlParseError(RequestError):
    """A request URL could not be parsed."""

    label = "failed to parse url"


class ClientError(RequestError):
    """The HTTP client failed before a response arrived."""

    label = "client error"


class JsonError(RequestError):
    """A response body did not have the expected JSON shape."""

    label = "json error"