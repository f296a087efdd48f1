"""Client for Wally package indexes hosted on GitHub."""

from __future__ import annotations

import logging
import re
import string
from collections import deque
from urllib.parse import urlsplit, urlunsplit

from ..cache_map import RequestCacheMap
from ..errors import ClientError, DecodeError, RequestError, ResponseError, UrlParseError
from ..github.client import GithubClient
from .models import IndexConfig, Metadata

DEFAULT_INDEX_BRANCH = "main"

_GITHUB_PREFIX = "https://github.com/"
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_log = logging.getLogger(__name__)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def _normalize_url(url: str) -> str:
    if not _SCHEME.match(url):
        raise UrlParseError("relative URL without a base")
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise UrlParseError(str(exc)) from exc
    if parts.scheme in _SPECIAL_SCHEMES:
        if not parts.netloc:
            raise UrlParseError("empty host")
        if not parts.path:
            parts = parts._replace(path="/")
    return urlunsplit(parts)


def _lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_index_url(index_url: str) -> tuple[str, str]:
    """Return the GitHub owner and repository of an index URL, lower-cased."""
    url = _normalize_url(_ascii_lower(index_url))
    stripped = url
    while stripped.endswith(".git"):
        stripped = stripped[: -len(".git")]
    if stripped.startswith(_GITHUB_PREFIX):
        owner, sep, repo = stripped[len(_GITHUB_PREFIX) :].partition("/")
        if sep:
            return owner, repo
    raise ClientError(f"malformed index url - failed to parse github owner & repo from `{url}`")


class WallyClient:
    """Reads scopes, packages and metadata from Wally indexes and their fallbacks."""

    def __init__(self, github: GithubClient) -> None:
        self.github = github
        # Index configs hardly ever change: keep them for a month, a week idle.
        self._index_configs: RequestCacheMap[IndexConfig] = RequestCacheMap(
            60 * 24 * 30, 60 * 24 * 7
        )

    async def _get_index_config(self, index_url: str) -> IndexConfig:
        owner, repo = parse_index_url(index_url)

        async def fetch() -> IndexConfig:
            body = await self.github.get_repository_file(owner, repo, "config.json")
            config = IndexConfig.from_json(body)
            _log.info("Wally registry config found: %r", config)
            return config

        return await self._index_configs.with_caching(f"{owner}/{repo}", fetch)

    async def _get_index_urls_following_fallbacks(self, index_url: str) -> list[str]:
        pending = deque([_ascii_lower(index_url)])
        visited: set[str] = set()
        results: list[str] = []
        while pending:
            pending_url = pending.popleft()
            config = await self._get_index_config(pending_url)
            for fallback_url in config.fallback_registries:
                fallback_low = _ascii_lower(fallback_url)
                if fallback_low not in visited:
                    visited.add(fallback_low)
                    pending.append(fallback_low)
            visited.add(pending_url)
            results.append(pending_url)
        return results

    async def get_index_scopes(self, index_url: str) -> list[str]:
        """Return every scope of an index and of its fallback indexes."""
        scopes: dict[str, None] = {}
        for url in await self._get_index_urls_following_fallbacks(index_url):
            owner, repo = parse_index_url(url)
            root = await self.github.get_repository_tree(owner, repo, DEFAULT_INDEX_BRANCH)
            scopes.update(dict.fromkeys(root.get_directory_paths()))
        return list(scopes)

    async def get_index_packages(self, index_url: str, scope: str) -> list[str]:
        """Return the package names in ``scope`` across an index and its fallbacks.

        Raises a 404 ResponseError if no index has the scope.
        """
        scope_low = _ascii_lower(scope)
        scope_exists = False
        paths: list[str] = []
        for url in await self._get_index_urls_following_fallbacks(index_url):
            owner, repo = parse_index_url(url)
            try:
                root = await self.github.get_repository_tree(owner, repo, DEFAULT_INDEX_BRANCH)
            except RequestError:
                continue
            scope_node = root.find_node_by_path(scope_low)
            if scope_node is None:
                continue
            scope_root = await self.github.get_repository_tree(owner, repo, scope_node.sha)
            scope_exists = True
            paths.extend(scope_root.get_file_paths_excluding_json())
        if not scope_exists:
            raise ResponseError.from_status_and_string(
                404, f"No packages were found for scope `{scope_low}`"
            )
        return paths

    async def get_index_metadatas(self, index_url: str, scope: str, name: str) -> list[Metadata]:
        """Return every published version of a package, newest first.

        The first index that has the package wins; raises a 404 ResponseError
        if none has it.
        """
        scope_low = _ascii_lower(scope)
        name_low = _ascii_lower(name)
        for url in await self._get_index_urls_following_fallbacks(index_url):
            owner, repo = parse_index_url(url)
            try:
                body = await self.github.get_repository_file(
                    owner, repo, f"{scope_low}/{name_low}"
                )
            except RequestError:
                continue
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DecodeError(str(exc)) from exc
            metas = Metadata.try_from_lines(_lines(text))
            metas.reverse()
            return metas
        raise ResponseError.from_status_and_string(
            404, f"No metadatas were found for package `{scope_low}`{scope_low}'"
        )