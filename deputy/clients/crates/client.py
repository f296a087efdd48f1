"""Client for the crates.io API and the crates.io sparse index."""

from __future__ import annotations

import asyncio
import logging
import string
from typing import Awaitable, Callable, Optional, TypeVar

from ..cache_map import RequestCacheMap
from ..errors import DecodeError, RequestError
from ..request import Request
from .models import CrateDataMulti, CrateDataSingle, IndexMetadata

BASE_URL_INDEX = "https://index.crates.io"
BASE_URL_CRATES = "https://crates.io/api/v1/crates"

QUERY_STRING_CRATE_SINGLE = "?include=downloads,versions"
QUERY_STRING_CRATE_MULTI = "?page=1&per_page=32"

# The crates.io policy allows one request per second; stay a little below that.
CRAWL_MAX_INTERVAL_SECONDS = 1.25

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_T = TypeVar("_T")

_log = logging.getLogger(__name__)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def _decode(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(str(exc)) from exc


def _lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def sparse_index_url(name: str) -> str:
    """Return the sparse index URL that lists every version of crate ``name``."""
    name_low = _ascii_lower(name)
    if len(name_low) <= 2:
        return f"{BASE_URL_INDEX}/{len(name_low)}/{name_low}"
    if len(name_low) == 3:
        return f"{BASE_URL_INDEX}/3/{name_low[:1]}/{name_low}"
    return f"{BASE_URL_INDEX}/{name_low[:2]}/{name_low[2:4]}/{name_low}"


class CratesClient:
    """Fetches crate data, with caching and the crates.io crawl limit."""

    def __init__(self, *, crawl_interval: float = CRAWL_MAX_INTERVAL_SECONDS) -> None:
        self._index_metadatas: RequestCacheMap[list[IndexMetadata]] = RequestCacheMap(60, 15)
        self._crate_datas: RequestCacheMap[CrateDataSingle] = RequestCacheMap(240, 120)
        self._crate_search: RequestCacheMap[CrateDataMulti] = RequestCacheMap(480, 240)
        self._crawl_interval = crawl_interval
        self._crawl_limited = False
        self._crawl_released = asyncio.Event()
        self._crawl_timer: Optional[asyncio.Task[None]] = None

    async def _request_get(self, url: str) -> bytes:
        return await Request.get(url).send()

    def _set_crawl_limited(self) -> None:
        if not self._crawl_limited:
            self._crawl_limited = True
            self._crawl_timer = asyncio.get_running_loop().create_task(self._release_crawl_limit())

    async def _release_crawl_limit(self) -> None:
        await asyncio.sleep(self._crawl_interval)
        self._crawl_limited = False
        released, self._crawl_released = self._crawl_released, asyncio.Event()
        released.set()

    async def _wait_for_crawl_limit(self) -> None:
        if self._crawl_limited:
            await self._crawl_released.wait()

    @staticmethod
    async def _logged(fetch: Callable[[], Awaitable[_T]], *, quiet_not_found: bool) -> _T:
        try:
            return await fetch()
        except RequestError as exc:
            if not (quiet_not_found and exc.is_not_found_error()):
                _log.error("Crates error: %s", exc)
            raise

    async def get_sparse_index_crate_metadatas(self, name: str) -> list[IndexMetadata]:
        """Return every version of a crate from the sparse index, newest first."""
        index_url = sparse_index_url(name)

        async def fetch() -> list[IndexMetadata]:
            _log.debug("Fetching crates index metadatas for '%s'", name)
            body = await self._request_get(index_url)
            metas = IndexMetadata.try_from_lines(_lines(_decode(body)))
            metas.reverse()
            return metas

        return await self._index_metadatas.with_caching(
            index_url, lambda: self._logged(fetch, quiet_not_found=True)
        )

    async def get_crate_data(self, name: str) -> CrateDataSingle:
        """Return a crate's description, links, download counts and versions.

        Requests to crates.io are spaced out by the crawl interval.
        """
        crates_name = _ascii_lower(name.strip())
        crates_url = f"{BASE_URL_CRATES}/{crates_name}{QUERY_STRING_CRATE_SINGLE}"

        async def fetch() -> CrateDataSingle:
            await self._wait_for_crawl_limit()
            self._set_crawl_limited()
            _log.debug("Fetching crate data for '%s'", name)
            body = await self._request_get(crates_url)
            return CrateDataSingle.from_json(body)

        return await self._crate_datas.with_caching(
            crates_url, lambda: self._logged(fetch, quiet_not_found=True)
        )

    async def search_crates(self, query: str) -> CrateDataMulti:
        """Return the first page of crates matching ``query``."""
        crates_query = _ascii_lower(query.strip())
        crates_url = f"{BASE_URL_CRATES}{QUERY_STRING_CRATE_MULTI}&q={crates_query}"

        async def fetch() -> CrateDataMulti:
            await self._wait_for_crawl_limit()
            self._set_crawl_limited()
            _log.debug("Searching crate datas for '%s'", crates_query)
            body = await self._request_get(crates_url)
            return CrateDataMulti.from_json(body)

        return await self._crate_search.with_caching(
            crates_url, lambda: self._logged(fetch, quiet_not_found=False)
        )