"""A small immutable HTTP request builder."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Union

import httpx

from .errors import ClientError, ResponseError, UrlParseError

USER_AGENT = "deputy@0.6.0"

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Request:
    """An HTTP request; the ``with_*`` methods return modified copies."""

    method: str
    url: str
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def get(cls, url: str) -> Request:
        """Start a GET request."""
        return cls("GET", url)

    def with_body(self, body: Union[bytes, str]) -> Request:
        """Return a copy carrying ``body``."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return replace(self, body=bytes(body))

    def with_header(self, name: str, value: str) -> Request:
        """Return a copy with a header set; the name is lower-cased."""
        return replace(self, headers={**self.headers, name.lower(): value})

    def with_header_opt(self, name: str, value: Optional[str]) -> Request:
        """Like ``with_header``, but a None value leaves the request unchanged."""
        if value is None:
            return self
        return self.with_header(name, value)

    def with_headers(self, pairs: Iterable[tuple[str, str]]) -> Request:
        """Return a copy with several headers set, names kept as given."""
        return replace(self, headers={**self.headers, **dict(pairs)})

    async def send(self) -> bytes:
        """Send the request and return the response body.

        Raises UrlParseError for a bad URL, ClientError when no response
        arrives, and ResponseError for a 4xx or 5xx status.
        """
        if not _SCHEME.match(self.url):
            raise UrlParseError("relative URL without a base")
        try:
            url = httpx.URL(self.url)
        except httpx.InvalidURL as exc:
            raise UrlParseError(str(exc)) from exc

        headers = httpx.Headers(self.headers)
        headers["user-agent"] = USER_AGENT

        _log.debug("Sending request: %s %s", self.method, self.url)
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    self.method, url, content=self.body or None, headers=headers
                )
        except httpx.HTTPError as exc:
            raise ClientError(str(exc)) from exc
        _log.debug("Got response: %s for %s", response.status_code, self.url)

        if 400 <= response.status_code < 600:
            raise ResponseError(response.status_code, response.content)
        return response.content