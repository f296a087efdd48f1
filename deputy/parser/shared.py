"""Dependency lookup for manifests whose specs read ``owner/repository@version``."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .syntax import Document, Node, Point, Position, Range, find_ancestor, find_child


class TableNames(enum.Enum):
    """Which top-level tables hold dependencies, per manifest flavour."""

    ROKIT = frozenset({"tools"})
    WALLY = frozenset({"dependencies", "dev-dependencies", "server-dependencies"})

    def accepts(self, key: str) -> bool:
        """Tell whether a table named ``key`` holds dependencies."""
        return key in self.value


def _is_bare_key(node: Node) -> bool:
    return node.kind == "bare_key"


def find_all_dependencies(doc: Document, table_names: TableNames) -> list[Node]:
    """Return every dependency pair in the tables that ``table_names`` accepts."""
    root = doc.node_at_root()
    if root is None:
        return []
    deps: list[Node] = []
    for top_level in root.children:
        key = find_child(top_level, _is_bare_key)
        if key is None or not table_names.accepts(doc.node_text(key)):
            continue
        deps.extend(child for child in top_level.children if child.kind == "pair")
    return deps


def find_dependency_at(
    doc: Document, pos: Position, table_names: TableNames
) -> Optional[Node]:
    """Return the dependency pair under ``pos``, if there is one."""
    node = doc.node_at_position(pos)
    if node is None:
        return None
    pair = find_ancestor(node, lambda a: a.kind == "pair")
    if pair is None:
        return None
    table = find_ancestor(node, lambda a: a.kind == "table")
    if table is None:
        return None
    key = find_child(table, _is_bare_key)
    if key is None or not table_names.accepts(doc.node_text(key)):
        return None
    return pair


def parse_dependency(pair: Node) -> Optional[TriDependency]:
    """Split a ``alias = "spec"`` pair into its alias and spec nodes."""
    alias = find_child(pair, _is_bare_key)
    spec = find_child(pair, lambda c: c.kind == "string")
    if alias is None or spec is None:
        return None
    return TriDependency(alias=alias, spec=spec)


def _sub_range(range_: Range, start: int, end: int) -> Range:
    row = range_.start_point.row
    column = range_.start_point.column
    return Range(
        range_.start_byte + start,
        range_.start_byte + end,
        Point(row, column + start),
        Point(row, column + end),
    )


def sub_delimited_tri(
    range_: Range, text: str, delimiter: str, version_delimiter: str
) -> tuple[Optional[Range], Optional[Range], Optional[Range]]:
    """Split the single-line ``range_`` holding ``text`` into three sub-ranges.

    ``owner<delimiter>repository<version_delimiter>version``: the owner is
    always present, the repository only after ``delimiter`` and the version
    only after ``version_delimiter`` following the repository.
    """
    head, sep, tail = text.partition(delimiter)
    owner_end = len(head.encode("utf-8"))
    if not sep:
        return _sub_range(range_, 0, owner_end), None, None
    owner = _sub_range(range_, 0, owner_end)

    repo_start = owner_end + len(delimiter.encode("utf-8"))
    repo_text, version_sep, version_text = tail.partition(version_delimiter)
    repo_end = repo_start + len(repo_text.encode("utf-8"))
    repository = _sub_range(range_, repo_start, repo_end)
    if not version_sep:
        return owner, repository, None

    version_start = repo_end + len(version_delimiter.encode("utf-8"))
    version_end = version_start + len(version_text.encode("utf-8"))
    return owner, repository, _sub_range(range_, version_start, version_end)


@dataclass(frozen=True)
class TriDependencySpecRanges:
    """Where the owner, repository and version of a spec sit in the document."""

    owner: Optional[Range]
    repository: Optional[Range]
    version: Optional[Range]

    def text(self, doc: Document) -> tuple[Optional[str], Optional[str], Optional[str]]:
        """Return the document text of each part that is present."""

        def slice_of(range_: Optional[Range]) -> Optional[str]:
            if range_ is None:
                return None
            return doc.byte_slice(range_.start_byte, range_.end_byte)

        return slice_of(self.owner), slice_of(self.repository), slice_of(self.version)


@dataclass(frozen=True)
class TriDependency:
    """A dependency written as ``alias = "owner/repository@version"``."""

    alias: Node
    spec: Node

    def spec_ranges(self, doc: Document) -> TriDependencySpecRanges:
        """Locate the parts of the spec, excluding its quotes."""
        text = doc.node_text(self.spec)
        range_ = self.spec.range()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
            text = text[1:-1]
            range_ = Range(
                range_.start_byte + 1,
                range_.end_byte - 1,
                Point(range_.start_point.row, range_.start_point.column + 1),
                Point(range_.end_point.row, range_.end_point.column - 1),
            )
        owner, repository, version = sub_delimited_tri(range_, text, "/", "@")
        return TriDependencySpecRanges(owner=owner, repository=repository, version=version)