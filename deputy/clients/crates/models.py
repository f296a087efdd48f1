"""Data returned by the crates.io API and its sparse index."""

from __future__ import annotations

import copy
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
    data: dict,
    key: str,
    kind: type,
    *,
    aliases: tuple[str, ...] = (),
    default: Any = _MISSING,
    nullable: bool = False,
) -> Any:
    for name in (key, *aliases):
        if name in data:
            value = data[name]
            break
    else:
        if default is not _MISSING:
            return copy.copy(default)
        if nullable:
            return None
        raise JsonError(f"missing field `{key}`")
    if value is None and nullable:
        return None
    if isinstance(value, bool) and kind is not bool or not isinstance(value, kind):
        raise JsonError(f"invalid type for field `{key}`")
    return value


def _unsigned(data: dict, key: str, **kwargs: Any) -> int:
    value = _field(data, key, int, **kwargs)
    if value < 0:
        raise JsonError(f"invalid value for field `{key}`: expected an unsigned integer")
    return value


def _strings(value: list, key: str) -> list[str]:
    if not all(isinstance(item, str) for item in value):
        raise JsonError(f"invalid type for field `{key}`: expected strings")
    return list(value)


def _feature_map(data: dict, key: str, aliases: tuple[str, ...] = ()) -> dict[str, list[str]]:
    raw = _field(data, key, dict, aliases=aliases, default={})
    result: dict[str, list[str]] = {}
    for name, enables in raw.items():
        if not isinstance(enables, list):
            raise JsonError(f"invalid type for field `{key}`: expected lists")
        result[name] = _strings(enables, key)
    return result


@dataclass(frozen=True)
class CrateDataLinks:
    """Links published for a crate."""

    documentation: Optional[str] = None
    repository: Optional[str] = None
    homepage: Optional[str] = None

    @classmethod
    def _from_dict(cls, data: dict) -> CrateDataLinks:
        return cls(
            documentation=_field(data, "documentation", str, nullable=True),
            repository=_field(data, "repository", str, nullable=True),
            homepage=_field(data, "homepage", str, nullable=True),
        )


@dataclass(frozen=True)
class CrateDataDownloads:
    """Download counters for a crate."""

    total_count: int
    recent_count: int

    @classmethod
    def _from_dict(cls, data: dict) -> CrateDataDownloads:
        return cls(
            total_count=_unsigned(data, "downloads"),
            recent_count=_unsigned(data, "recent_downloads"),
        )


@dataclass(frozen=True)
class CrateData:
    """Summary of a crate."""

    name: str
    description: str
    created_at: str
    updated_at: str
    links: CrateDataLinks
    downloads: CrateDataDownloads

    @classmethod
    def from_dict(cls, data: Any) -> CrateData:
        """Build from a decoded JSON object."""
        data = _object(data, "crate")
        return cls(
            name=_field(data, "name", str),
            description=_field(data, "description", str),
            created_at=_field(data, "created_at", str),
            updated_at=_field(data, "updated_at", str),
            links=CrateDataLinks._from_dict(data),
            downloads=CrateDataDownloads._from_dict(data),
        )


@dataclass(frozen=True)
class CrateDataVersion:
    """One published version of a crate."""

    id: int
    name: str
    version: str
    created_at: str
    updated_at: str
    downloads: int
    features: dict[str, list[str]]

    @classmethod
    def from_dict(cls, data: Any) -> CrateDataVersion:
        """Build from a decoded JSON object."""
        data = _object(data, "version")
        if "features" not in data:
            raise JsonError("missing field `features`")
        return cls(
            id=_unsigned(data, "id"),
            name=_field(data, "name", str, aliases=("crate",)),
            version=_field(data, "version", str, aliases=("num",)),
            created_at=_field(data, "created_at", str),
            updated_at=_field(data, "updated_at", str),
            downloads=_unsigned(data, "downloads"),
            features=_feature_map(data, "features"),
        )

    def raw_version_string(self) -> str:
        """Return the version as published."""
        return self.version


@dataclass(frozen=True)
class CrateDataSingle:
    """A crate together with its versions."""

    inner: CrateData
    versions: list[CrateDataVersion] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> CrateDataSingle:
        """Parse JSON text or bytes, or take an already decoded object."""
        data = _object(_load(data), "crate response")
        if "crate" not in data:
            raise JsonError("missing field `crate`")
        versions = _field(data, "versions", list, default=[])
        return cls(
            inner=CrateData.from_dict(data["crate"]),
            versions=[CrateDataVersion.from_dict(item) for item in versions],
        )


@dataclass(frozen=True)
class CrateDataMulti:
    """A page of crate search results."""

    inner: list[CrateData]

    @classmethod
    def from_json(cls, data: Any) -> CrateDataMulti:
        """Parse JSON text or bytes, or take an already decoded object."""
        data = _object(_load(data), "search response")
        crates = _field(data, "crates", list)
        return cls(inner=[CrateData.from_dict(item) for item in crates])


@dataclass(frozen=True)
class IndexMetadataDependency:
    """A dependency as listed in the sparse index."""

    name: str
    version_requirement: str
    features: list[str]
    optional: bool
    default_features: bool

    @classmethod
    def from_dict(cls, data: Any) -> IndexMetadataDependency:
        """Build from a decoded JSON object."""
        data = _object(data, "dependency")
        return cls(
            name=_field(data, "name", str),
            version_requirement=_field(data, "version_requirement", str, aliases=("req",)),
            features=_strings(_field(data, "features", list), "features"),
            optional=_field(data, "optional", bool),
            default_features=_field(data, "default_features", bool),
        )


def _mentions_dep(features: dict[str, list[str]], name: str) -> bool:
    spec = f"dep:{name}"
    return any(spec in enables for enables in features.values())


@dataclass(frozen=True)
class IndexMetadata:
    """One version of a crate as listed in the sparse index."""

    name: str
    version: str
    dependencies: list[IndexMetadataDependency] = field(default_factory=list)
    features: dict[str, list[str]] = field(default_factory=dict)
    features2: dict[str, list[str]] = field(default_factory=dict)
    yanked: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> IndexMetadata:
        """Build from a decoded JSON object."""
        data = _object(data, "index entry")
        deps = _field(data, "dependencies", list, aliases=("deps",), default=[])
        return cls(
            name=_field(data, "name", str),
            version=_field(data, "version", str, aliases=("vers",)),
            dependencies=[IndexMetadataDependency.from_dict(dep) for dep in deps],
            features=_feature_map(data, "features", ("feats",)),
            features2=_feature_map(data, "features2", ("feats2",)),
            yanked=_field(data, "yanked", bool, default=False),
        )

    @classmethod
    def try_from_lines(cls, lines: Iterable[str]) -> list[IndexMetadata]:
        """Parse one JSON object per line; raises JsonError on the first bad line."""
        return [cls.from_dict(_load(line)) for line in lines]

    def all_features(self) -> list[str]:
        """Return all feature names, sorted, including those implied by optional deps."""
        implicit = (
            dep.name
            for dep in self.dependencies
            if dep.optional
            and not _mentions_dep(self.features, dep.name)
            and not _mentions_dep(self.features2, dep.name)
        )
        return sorted({*implicit, *self.features, *self.features2})

    def raw_version_string(self) -> str:
        """Return the version as published."""
        return self.version