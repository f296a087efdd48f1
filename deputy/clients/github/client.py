"""Client for the GitHub REST API."""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from ..cache_map import RequestCacheMap
from ..errors import RequestError
from ..request import Request
from .models import GitTreeRoot, RepositoryMetrics, RepositoryRelease

GITHUB_API_BASE_URL = "https://api.github.com"

GITHUB_API_VERSION_NAME = "X-GitHub-Api-Version"
GITHUB_API_VERSION_VALUE = "2022-11-28"

GITHUB_API_CONTENT_TYPE = "application/vnd.github.v3+json"
GITHUB_API_CONTENT_TYPE_RAW = "application/vnd.github.raw"

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_T = TypeVar("_T")

_log = logging.getLogger(__name__)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


@dataclass
class GithubCache:
    """Caches for each kind of GitHub request."""

    repository_metrics: RequestCacheMap[RepositoryMetrics] = field(
        default_factory=lambda: RequestCacheMap(60, 15)
    )
    repository_releases: RequestCacheMap[list[RepositoryRelease]] = field(
        default_factory=lambda: RequestCacheMap(30, 5)
    )
    repository_trees: RequestCacheMap[GitTreeRoot] = field(
        default_factory=lambda: RequestCacheMap(45, 10)
    )
    repository_files: RequestCacheMap[bytes] = field(
        default_factory=lambda: RequestCacheMap(10, 5)
    )

    def invalidate(self) -> None:
        """Drop everything cached so that the next requests fetch afresh."""
        self.repository_metrics.invalidate()
        self.repository_releases.invalidate()
        self.repository_trees.invalidate()
        self.repository_files.invalidate()


class GithubClient:
    """Fetches repository data from GitHub, with caching.

    ``auth_token`` is sent as the Authorization header when it is set.
    """

    def __init__(self, auth_token: Optional[str] = None) -> None:
        self.auth_token = auth_token
        self.cache = GithubCache()

    async def _request_get(self, url: str) -> bytes:
        request = (
            Request.get(url)
            .with_header("Accept", GITHUB_API_CONTENT_TYPE)
            .with_header(GITHUB_API_VERSION_NAME, GITHUB_API_VERSION_VALUE)
            .with_header_opt("Authorization", self.auth_token)
        )
        return await request.send()

    @staticmethod
    async def _logged(fetch: Callable[[], Awaitable[_T]]) -> _T:
        try:
            return await fetch()
        except RequestError as exc:
            _log.error("GitHub error: %s", exc)
            raise

    async def get_repository_metrics(self, owner: str, repository: str) -> RepositoryMetrics:
        """Return the community profile of a repository."""
        owner_low = _ascii_lower(owner)
        repository_low = _ascii_lower(repository)
        url = f"{GITHUB_API_BASE_URL}/repos/{owner_low}/{repository_low}/community/profile"

        async def fetch() -> RepositoryMetrics:
            _log.debug("Fetching GitHub metrics for %s/%s", owner, repository)
            return RepositoryMetrics.from_json(await self._request_get(url))

        return await self.cache.repository_metrics.with_caching(
            f"{owner_low}/{repository_low}", lambda: self._logged(fetch)
        )

    async def get_repository_releases(
        self, owner: str, repository: str
    ) -> list[RepositoryRelease]:
        """Return the releases of a repository."""
        owner_low = _ascii_lower(owner)
        repository_low = _ascii_lower(repository)
        url = f"{GITHUB_API_BASE_URL}/repos/{owner_low}/{repository_low}/releases"

        async def fetch() -> list[RepositoryRelease]:
            _log.debug("Fetching GitHub releases for %s/%s", owner, repository)
            return RepositoryRelease.list_from_json(await self._request_get(url))

        return await self.cache.repository_releases.with_caching(
            f"{owner_low}/{repository_low}", lambda: self._logged(fetch)
        )

    async def get_repository_tree(self, owner: str, repository: str, sha: str) -> GitTreeRoot:
        """Return the git tree of a repository at ``sha`` (a commit, branch or tree)."""
        owner_low = _ascii_lower(owner)
        repository_low = _ascii_lower(repository)
        sha_low = _ascii_lower(sha)
        url = f"{GITHUB_API_BASE_URL}/repos/{owner_low}/{repository_low}/git/trees/{sha_low}"

        async def fetch() -> GitTreeRoot:
            _log.debug("Fetching GitHub tree for %s/%s/%s", owner, repository, sha)
            return GitTreeRoot.from_json(await self._request_get(url))

        return await self.cache.repository_trees.with_caching(
            f"{owner_low}/{repository_low}/{sha_low}", lambda: self._logged(fetch)
        )

    async def get_repository_file(self, owner: str, repository: str, path: str) -> bytes:
        """Return the raw contents of a file in a repository."""
        owner_low = _ascii_lower(owner)
        repository_low = _ascii_lower(repository)
        url = f"{GITHUB_API_BASE_URL}/repos/{owner_low}/{repository_low}/contents/{path}"
        authorization = self.auth_token

        async def fetch() -> bytes:
            _log.debug("Fetching GitHub file for %s/%s at %s", owner, repository, path)
            request = (
                Request.get(url)
                .with_header("Accept", GITHUB_API_CONTENT_TYPE_RAW)
                .with_header(GITHUB_API_VERSION_NAME, GITHUB_API_VERSION_VALUE)
                .with_header_opt("Authorization", authorization)
            )
            return await request.send()

        return await self.cache.repository_files.with_caching(
            f"{owner_low}/{repository_low}/{path}", lambda: self._logged(fetch)
        )