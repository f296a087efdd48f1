"""Data returned by the npm registry."""

from __future__ import annotations

import copy
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar, Union

from ..errors import JsonError

_MISSING = object()
_T = TypeVar("_T")


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


def _variant(value: Any, build: Callable[[dict], _T], what: str) -> Union[str, _T]:
    """Accept either a plain string or an object that ``build`` understands."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        try:
            return build(value)
        except JsonError:
            pass
    raise JsonError(f"data did not match any variant of untagged enum {what}")


def _optional_variant(
    data: dict, key: str, build: Callable[[dict], _T], what: str
) -> Optional[Union[str, _T]]:
    value = data.get(key)
    if value is None:
        return None
    return _variant(value, build, what)


@dataclass(frozen=True)
class RegistryMetadataLicense:
    """A license given as an object with a type and an optional URL."""

    kind: str
    url: Optional[str] = None

    @classmethod
    def _from_dict(cls, data: dict) -> RegistryMetadataLicense:
        return cls(kind=_field(data, "type", str), url=_field(data, "url", str, nullable=True))


@dataclass(frozen=True)
class RegistryMetadataHuman:
    """An author or maintainer given as an object."""

    name: str
    email: Optional[str] = None

    @classmethod
    def _from_dict(cls, data: dict) -> RegistryMetadataHuman:
        return cls(name=_field(data, "name", str), email=_field(data, "email", str, nullable=True))


class RegistryMetadataRepositoryKind(enum.Enum):
    """Version control systems a repository may use."""

    GIT = "git"


@dataclass(frozen=True)
class RegistryMetadataRepository:
    """A repository given as an object."""

    kind: RegistryMetadataRepositoryKind
    url: str
    dir: Optional[str] = None

    @classmethod
    def _from_dict(cls, data: dict) -> RegistryMetadataRepository:
        raw_kind = _field(data, "type", str)
        try:
            kind = RegistryMetadataRepositoryKind(raw_kind)
        except ValueError:
            raise JsonError(f"unknown variant `{raw_kind}` for field `type`") from None
        return cls(
            kind=kind,
            url=_field(data, "url", str),
            dir=_field(data, "dir", str, aliases=("directory",), nullable=True),
        )


License = Union[str, RegistryMetadataLicense]
Human = Union[str, RegistryMetadataHuman]
Repository = Union[str, RegistryMetadataRepository]


def human_name(human: Human) -> str:
    """Return the name of a person given either as a string or an object."""
    if isinstance(human, RegistryMetadataHuman):
        return human.name
    return human


_SHORTHAND_HOSTS = (
    ("github:", "https://github.com/", ""),
    ("gitlab:", "https://gitlab.com/", ""),
    ("bitbucket:", "https://bitbucket.org/", "/overview"),
)


def repository_url(repository: Repository) -> Optional[str]:
    """Return a browsable URL for a repository.

    Plain strings are understood only in the ``host:user/repo`` shorthand.
    """
    if isinstance(repository, RegistryMetadataRepository):
        return repository.url
    text = repository.strip()
    for prefix, base_url, suffix in _SHORTHAND_HOSTS:
        if not text.startswith(prefix):
            continue
        while text.startswith(prefix):
            text = text[len(prefix) :]
        user, sep, repo = text.partition("/")
        if not sep:
            return None
        return f"{base_url}{user}/{repo}{suffix}"
    return None


@dataclass(frozen=True)
class RegistryMetadataVersion:
    """The metadata of one version of a package."""

    name: str
    version: str = ""
    description: Optional[str] = None
    license: Optional[License] = None
    homepage: Optional[str] = None
    repository: Optional[Repository] = None
    author: Optional[Human] = None
    maintainers: list[Human] = field(default_factory=list)
    deprecated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> RegistryMetadataVersion:
        """Build from a decoded JSON object."""
        data = _object(data, "package version")
        maintainers = _field(data, "maintainers", list, default=[])
        return cls(
            name=_field(data, "name", str),
            version=_field(data, "version", str, default=""),
            description=_field(data, "description", str, nullable=True),
            license=_optional_variant(
                data, "license", RegistryMetadataLicense._from_dict, "RegistryMetadataLicenseVariant"
            ),
            homepage=_field(data, "homepage", str, nullable=True),
            repository=_optional_variant(
                data,
                "repository",
                RegistryMetadataRepository._from_dict,
                "RegistryMetadataRepositoryVariant",
            ),
            author=_optional_variant(
                data, "author", RegistryMetadataHuman._from_dict, "RegistryMetadataHumanVariant"
            ),
            maintainers=[
                _variant(item, RegistryMetadataHuman._from_dict, "RegistryMetadataHumanVariant")
                for item in maintainers
            ],
            deprecated=_field(data, "deprecated", str, nullable=True),
        )

    def raw_version_string(self) -> str:
        """Return the version as published."""
        return self.version

    def is_deprecated(self) -> bool:
        """Tell whether the version carries a deprecation message."""
        return self.deprecated is not None


@dataclass(frozen=True)
class RegistryMetadata:
    """A package document from the registry."""

    current_version: RegistryMetadataVersion
    timestamps: dict[str, str] = field(default_factory=dict)
    versions: dict[str, RegistryMetadataVersion] = field(default_factory=dict)

    @classmethod
    def try_from_json(cls, text: Any) -> RegistryMetadata:
        """Parse a registry document; raises JsonError if it is malformed."""
        data = _object(_load(text), "registry metadata")
        timestamps = _field(data, "time", dict, default={})
        if not all(isinstance(value, str) for value in timestamps.values()):
            raise JsonError("invalid type for field `time`: expected strings")
        versions = _field(data, "versions", dict, default={})
        return cls(
            current_version=RegistryMetadataVersion.from_dict(data),
            timestamps=dict(timestamps),
            versions={key: RegistryMetadataVersion.from_dict(value) for key, value in versions.items()},
        )