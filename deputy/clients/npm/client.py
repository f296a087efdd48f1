"""Client for the npm package registry."""

from __future__ import annotations

import dataclasses
import logging
import string

from ..cache_map import RequestCacheMap
from ..errors import DecodeError, RequestError
from ..request import Request
from .models import RegistryMetadata

BASE_URL_REGISTRY = "https://registry.npmjs.org/"

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_log = logging.getLogger(__name__)


class NpmClient:
    """Fetches package documents from the npm registry, with caching."""

    def __init__(self) -> None:
        self._registry_metadatas: RequestCacheMap[RegistryMetadata] = RequestCacheMap(60, 15)

    async def _request_get(self, url: str) -> bytes:
        return await Request.get(url).send()

    async def get_registry_metadata(self, name: str) -> RegistryMetadata:
        """Return the registry document of a package.

        Every entry of ``versions`` carries its key as its version.
        """
        name_low = name.translate(_ASCII_LOWER)
        registry_url = f"{BASE_URL_REGISTRY}/{name_low}"

        async def fetch() -> RegistryMetadata:
            _log.debug("Fetching npm package registry metadatas for '%s'", name)
            try:
                body = await self._request_get(registry_url)
                try:
                    text = body.decode("utf-8")
                except UnicodeDecodeError as exc:
                    raise DecodeError(str(exc)) from exc
                meta = RegistryMetadata.try_from_json(text)
            except RequestError as exc:
                _log.error("NPM error: %s", exc)
                raise
            versions = {
                key: dataclasses.replace(value, version=key) for key, value in meta.versions.items()
            }
            return dataclasses.replace(meta, versions=versions)

        return await self._registry_metadatas.with_caching(registry_url, fetch)