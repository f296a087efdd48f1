"""Dependency lookup for Cargo manifests."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .syntax import Document, Node, Position, find_ancestor, find_child, range_contains_position
from .utils import table_key_parts, unquote


class DependencyKind(enum.Enum):
    """The kind of dependency table an entry lives in."""

    DEPENDENCY = "dependency"
    DEV_DEPENDENCY = "dev-dependency"
    BUILD_DEPENDENCY = "build-dependency"

    @classmethod
    def from_key(cls, key: str) -> Optional[DependencyKind]:
        """Return the kind for a table key, or None if it is not a dependency table."""
        return _KIND_KEYS.get(key)


_KIND_KEYS = {
    "dependencies": DependencyKind.DEPENDENCY,
    "dev-dependencies": DependencyKind.DEV_DEPENDENCY,
    "dev_dependencies": DependencyKind.DEV_DEPENDENCY,
    "build-dependencies": DependencyKind.BUILD_DEPENDENCY,
    "build_dependencies": DependencyKind.BUILD_DEPENDENCY,
}


def _check_table_multi(doc: Document, node: Node) -> Optional[DependencyKind]:
    """Match ``[dependencies]``, ``[workspace.dependencies]`` and ``[target.x.dependencies]``."""
    parts = table_key_parts(doc, node)
    if not parts:
        return None
    if parts[0] == "workspace":
        if len(parts) != 2:
            return None
        part = parts[1]
    elif parts[0] == "target":
        if len(parts) != 3:
            return None
        part = parts[2]
    else:
        if len(parts) != 1:
            return None
        part = parts[0]
    return DependencyKind.from_key(part)


def _check_table_single(doc: Document, node: Node) -> Optional[tuple[DependencyKind, str]]:
    """Match ``[dependencies.name]`` and its workspace and target forms."""
    parts = table_key_parts(doc, node)
    if not parts:
        return None
    if parts[0] == "workspace":
        if len(parts) != 3:
            return None
        section, name = parts[1], parts[2]
    elif parts[0] == "target":
        if len(parts) != 4:
            return None
        section, name = parts[2], parts[3]
    else:
        if len(parts) != 2:
            return None
        section, name = parts[0], parts[1]
    kind = DependencyKind.from_key(section)
    return None if kind is None else (kind, name)


def find_all_dependencies(doc: Document) -> list[Node]:
    """Return every dependency pair and every single-dependency table."""
    root = doc.node_at_root()
    if root is None:
        return []
    deps: list[Node] = []
    for top_level in root.children:
        if _check_table_multi(doc, top_level) is not None:
            deps.extend(child for child in top_level.children if child.kind == "pair")
        elif _check_table_single(doc, top_level) is not None:
            deps.append(top_level)
    return deps


def find_dependency_at(doc: Document, pos: Position) -> Optional[Node]:
    """Return the dependency pair or table under ``pos``, if there is one."""
    node = doc.node_at_position(pos)
    if node is None:
        return None
    table = find_ancestor(node, lambda a: _check_table_single(doc, a) is not None)
    if table is not None:
        return table
    table = find_ancestor(node, lambda a: _check_table_multi(doc, a) is not None)
    if table is None:
        return None
    return find_child(
        table, lambda c: c.kind == "pair" and range_contains_position(c.range(), pos)
    )


def _collect_pairs(doc: Document, container: Node) -> Optional[dict[str, Node]]:
    pairs: dict[str, Node] = {}
    for child in container.children:
        if child.kind != "pair":
            continue
        key = child.named_child(0)
        value = child.named_child(1)
        if key is None or value is None:
            return None
        pairs[doc.node_text(key)] = value
    return pairs


def parse_dependency(doc: Document, pair_or_table: Node) -> Optional[CargoDependency]:
    """Pick out the name, version and features of a dependency entry.

    Entries without a version give None; a ``package`` key replaces the name.
    """
    if pair_or_table.kind == "pair":
        name = pair_or_table.named_child(0)
        value = pair_or_table.named_child(1)
        if name is None or value is None:
            return None
        version = features = package = None
        if value.kind == "string":
            version = value
        elif value.kind == "inline_table":
            pairs = _collect_pairs(doc, value)
            if pairs is None:
                return None
            version = pairs.get("version")
            features = pairs.get("features")
            package = pairs.get("package")
    elif pair_or_table.kind == "table":
        key = pair_or_table.named_child(0)
        if key is None:
            return None
        key_parts = key.named_children()
        if not key_parts:
            return None
        name = key_parts[-1]
        pairs = _collect_pairs(doc, pair_or_table)
        if pairs is None:
            return None
        version = pairs.get("version")
        features = pairs.get("features")
        package = pairs.get("package")
    else:
        return None

    if package is not None:
        name = package
    if version is None:
        return None
    return CargoDependency(name=name, version=version, features=features)


@dataclass(frozen=True)
class CargoDependency:
    """Nodes of a Cargo dependency entry."""

    name: Node
    version: Node
    features: Optional[Node] = None

    def text(self, doc: Document) -> tuple[str, str]:
        """Return the unquoted name and version."""
        return unquote(doc.node_text(self.name)), unquote(doc.node_text(self.version))

    def feature_nodes(self) -> list[Node]:
        """Return the string nodes of the ``features`` array."""
        if self.features is None:
            return []
        return [child for child in self.features.children if child.kind == "string"]