"""Data stored in a Wally package index."""

from __future__ import annotations

import copy
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..errors import JsonError

_MISSING = object()


def _load(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray, str)):
        try:
            return json.loads(data)
        except ValueError as exc:
            raise JsonError(str(exc)) from exc
    return data


def _object(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise JsonError(f"expected an object for {what}")
    return data


def _field(
    data: dict, key: str, kind: type, *, default: Any = _MISSING, nullable: bool = False
) -> Any:
    if key not in data:
        if default is not _MISSING:
            return copy.copy(default)
        if nullable:
            return None
        raise JsonError(f"missing field `{key}`")
    value = data[key]
    if value is None and nullable:
        return None
    if isinstance(value, bool) and kind is not bool or not isinstance(value, kind):
        raise JsonError(f"invalid type for field `{key}`")
    return value


def _strings(data: dict, key: str) -> list[str]:
    values = _field(data, key, list, default=[])
    if not all(isinstance(item, str) for item in values):
        raise JsonError(f"invalid type for field `{key}`: expected strings")
    return list(values)


def _string_map(data: dict, key: str) -> dict[str, str]:
    values = _field(data, key, dict, default={})
    if not all(isinstance(item, str) for item in values.values()):
        raise JsonError(f"invalid type for field `{key}`: expected strings")
    return dict(values)


@dataclass(frozen=True)
class IndexConfig:
    """The ``config.json`` at the root of an index repository."""

    api_url: str
    fallback_registries: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Any) -> IndexConfig:
        """Parse JSON text or bytes, or take an already decoded object."""
        data = _object(_load(data), "index config")
        return cls(
            api_url=_field(data, "api", str),
            fallback_registries=tuple(_strings(data, "fallback_registries")),
        )


@dataclass(frozen=True)
class IndexOwners:
    """The ``owners.json`` of a scope: the GitHub user ids that own it."""

    github_user_ids: tuple[int, ...]

    @classmethod
    def from_json(cls, data: Any) -> IndexOwners:
        """Parse a JSON array of user ids."""
        ids = _load(data)
        if not isinstance(ids, list):
            raise JsonError("expected an array of user ids")
        for item in ids:
            if isinstance(item, bool) or not isinstance(item, int) or item < 0:
                raise JsonError("invalid user id: expected an unsigned integer")
        return cls(github_user_ids=tuple(ids))


class MetadataRealm(enum.Enum):
    """Where a package is meant to run."""

    DEV = "dev"
    SERVER = "server"
    SHARED = "shared"

    def section_name(self) -> str:
        """Return the manifest table that holds dependencies of this realm."""
        return _SECTION_NAMES[self]

    def get_suggested_realm(self, found_realm: MetadataRealm) -> Optional[MetadataRealm]:
        """Suggest a better realm for a dependency of ``found_realm`` placed in this one."""
        if found_realm is MetadataRealm.SERVER and self is MetadataRealm.SHARED:
            return MetadataRealm.SERVER
        if found_realm is MetadataRealm.DEV and self in (MetadataRealm.SERVER, MetadataRealm.SHARED):
            return MetadataRealm.DEV
        return None


_SECTION_NAMES = {
    MetadataRealm.DEV: "dev-dependencies",
    MetadataRealm.SERVER: "server-dependencies",
    MetadataRealm.SHARED: "dependencies",
}


@dataclass(frozen=True)
class MetadataPackage:
    """The ``[package]`` section of a published package."""

    name: str
    version: str
    registry: str
    realm: MetadataRealm
    description: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None
    license: Optional[str] = None
    authors: list[str] = field(default_factory=list)
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    private: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> MetadataPackage:
        """Build from a decoded JSON object."""
        data = _object(data, "package")
        raw_realm = _field(data, "realm", str)
        try:
            realm = MetadataRealm(raw_realm)
        except ValueError:
            raise JsonError(f"unknown variant `{raw_realm}` for field `realm`") from None
        return cls(
            name=_field(data, "name", str),
            version=_field(data, "version", str),
            registry=_field(data, "registry", str),
            realm=realm,
            description=_field(data, "description", str, nullable=True),
            repository=_field(data, "repository", str, nullable=True),
            homepage=_field(data, "homepage", str, nullable=True),
            license=_field(data, "license", str, nullable=True),
            authors=_strings(data, "authors"),
            include=_strings(data, "include"),
            exclude=_strings(data, "exclude"),
            private=_field(data, "private", bool, default=False),
        )

    def raw_version_string(self) -> str:
        """Return the version as published."""
        return self.version


@dataclass(frozen=True)
class MetadataDependencies:
    """Dependencies of a published package, per realm."""

    shared: dict[str, str] = field(default_factory=dict)
    server: dict[str, str] = field(default_factory=dict)
    dev: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> MetadataDependencies:
        """Build from a decoded JSON object."""
        data = _object(data, "dependencies")
        return cls(
            shared=_string_map(data, "dependencies"),
            server=_string_map(data, "server-dependencies"),
            dev=_string_map(data, "dev-dependencies"),
        )


@dataclass(frozen=True)
class Metadata:
    """One published version of a package, as listed in the index."""

    package: MetadataPackage
    dependencies: MetadataDependencies

    @classmethod
    def from_dict(cls, data: Any) -> Metadata:
        """Build from a decoded JSON object."""
        data = _object(data, "metadata")
        if "package" not in data:
            raise JsonError("missing field `package`")
        return cls(
            package=MetadataPackage.from_dict(data["package"]),
            dependencies=MetadataDependencies.from_dict(data),
        )

    @classmethod
    def try_from_lines(cls, lines: Iterable[str]) -> list[Metadata]:
        """Parse one JSON object per line; raises JsonError on the first bad line."""
        return [cls.from_dict(_load(line)) for line in lines]

    def raw_version_string(self) -> str:
        """Return the version as published."""
        return self.package.version