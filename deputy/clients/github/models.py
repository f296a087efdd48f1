"""Data returned by the GitHub REST API."""

from __future__ import annotations

import copy
import enum
import json
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Optional

from ..errors import JsonError

_MISSING = object()
_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


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


class GitNodeKind(enum.Enum):
    """What a git tree entry points at."""

    BLOB = "blob"
    TREE = "tree"


@dataclass(frozen=True)
class GitTreeNode:
    """One entry of a git tree."""

    sha: str
    url: str
    kind: GitNodeKind
    size: Optional[int]
    path: str

    @classmethod
    def from_dict(cls, data: Any) -> GitTreeNode:
        """Build from a decoded JSON object."""
        data = _object(data, "tree node")
        raw_kind = _field(data, "type", str)
        try:
            kind = GitNodeKind(raw_kind)
        except ValueError:
            raise JsonError(f"unknown variant `{raw_kind}` for field `type`") from None
        size = _field(data, "size", int, nullable=True)
        if size is not None and size < 0:
            raise JsonError("invalid value for field `size`")
        return cls(
            sha=_field(data, "sha", str),
            url=_field(data, "url", str),
            kind=kind,
            size=size,
            path=_field(data, "path", str),
        )

    def is_blob(self) -> bool:
        """Tell whether the entry is a file."""
        return self.kind is GitNodeKind.BLOB

    def is_tree(self) -> bool:
        """Tell whether the entry is a directory."""
        return self.kind is GitNodeKind.TREE


@dataclass(frozen=True)
class GitTreeRoot:
    """A git tree listing, one level deep."""

    sha: str
    url: str
    tree: list[GitTreeNode]

    @classmethod
    def from_json(cls, data: Any) -> GitTreeRoot:
        """Parse JSON text or bytes, or take an already decoded object."""
        data = _object(_load(data), "tree")
        return cls(
            sha=_field(data, "sha", str),
            url=_field(data, "url", str),
            tree=[GitTreeNode.from_dict(node) for node in _field(data, "tree", list)],
        )

    def find_node_by_path(self, path: str) -> Optional[GitTreeNode]:
        """Return the first entry whose path matches, ignoring ASCII case."""
        wanted = _ascii_lower(path)
        return next((node for node in self.tree if _ascii_lower(node.path) == wanted), None)

    def get_directory_paths(self) -> list[str]:
        """Return the paths of all directory entries."""
        return [node.path for node in self.tree if node.is_tree()]

    def get_file_paths_excluding_json(self) -> list[str]:
        """Return the paths of all file entries without a ``.json`` extension."""
        return [
            node.path
            for node in self.tree
            if node.is_blob() and _ascii_lower(PurePosixPath(node.path).suffix) != ".json"
        ]


@dataclass(frozen=True)
class RepositoryMetrics:
    """Community profile of a repository."""

    description: Optional[str] = None
    documentation: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> RepositoryMetrics:
        """Parse JSON text or bytes, or take an already decoded object."""
        data = _object(_load(data), "repository metrics")
        return cls(
            description=_field(data, "description", str, nullable=True),
            documentation=_field(data, "documentation", str, nullable=True),
        )


@dataclass(frozen=True)
class RepositoryReleaseAsset:
    """A file attached to a release."""

    name: str
    label: Optional[str]
    content_type: str
    size: int
    download_count: int
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_dict(cls, data: Any) -> RepositoryReleaseAsset:
        """Build from a decoded JSON object."""
        data = _object(data, "release asset")
        return cls(
            name=_field(data, "name", str),
            label=_field(data, "label", str, nullable=True),
            content_type=_field(data, "content_type", str),
            size=_field(data, "size", int),
            download_count=_field(data, "download_count", int),
            created_at=_field(data, "created_at", str, nullable=True),
            updated_at=_field(data, "updated_at", str, nullable=True),
        )


@dataclass(frozen=True)
class RepositoryRelease:
    """A published release of a repository."""

    tag_name: str
    name: Optional[str]
    body: Optional[str]
    draft: bool
    prerelease: bool
    created_at: Optional[str]
    published_at: Optional[str]
    assets: list[RepositoryReleaseAsset]

    @classmethod
    def from_dict(cls, data: Any) -> RepositoryRelease:
        """Build from a decoded JSON object."""
        data = _object(data, "release")
        return cls(
            tag_name=_field(data, "tag_name", str),
            name=_field(data, "name", str, nullable=True),
            body=_field(data, "body", str, nullable=True),
            draft=_field(data, "draft", bool),
            prerelease=_field(data, "prerelease", bool),
            created_at=_field(data, "created_at", str, nullable=True),
            published_at=_field(data, "published_at", str, nullable=True),
            assets=[RepositoryReleaseAsset.from_dict(a) for a in _field(data, "assets", list)],
        )

    @classmethod
    def list_from_json(cls, data: Any) -> list[RepositoryRelease]:
        """Parse a JSON array of releases."""
        items = _load(data)
        if not isinstance(items, list):
            raise JsonError("expected an array of releases")
        return [cls.from_dict(item) for item in items]

    def raw_version_string(self) -> str:
        """Return the tag name without its leading ``v`` characters."""
        return self.tag_name.lstrip("v")