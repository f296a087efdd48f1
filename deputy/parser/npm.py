"""Dependency lookup for npm ``package.json`` manifests."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .syntax import Document, Node, Position, find_ancestor
from .utils import unquote


class DependencyKind(enum.Enum):
    """The kind of dependency object an entry lives in."""

    DEPENDENCY = "dependencies"
    DEV_DEPENDENCY = "devDependencies"
    PEER_DEPENDENCY = "peerDependencies"
    OPTIONAL_DEPENDENCY = "optionalDependencies"

    @classmethod
    def from_key(cls, key: str) -> Optional[DependencyKind]:
        """Return the kind for an object key, or None if it holds no dependencies."""
        try:
            return cls(key)
        except ValueError:
            return None


def _key_kind(doc: Document, pair: Node) -> Optional[DependencyKind]:
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    return DependencyKind.from_key(unquote(doc.node_text(key)))


def find_all_dependencies(doc: Document) -> list[Node]:
    """Return every ``"name": "spec"`` pair in the dependency objects."""
    root = doc.node_at_root()
    if root is None:
        return []
    root = root.named_child(0)
    if root is None:
        return []
    deps: list[Node] = []
    for top_level in root.children:
        if top_level.kind != "pair" or _key_kind(doc, top_level) is None:
            continue
        value = top_level.child_by_field_name("value")
        if value is None:
            continue
        deps.extend(child for child in value.children if child.kind == "pair")
    return deps


def find_dependency_at(doc: Document, pos: Position) -> Optional[Node]:
    """Return the dependency pair under ``pos``, if there is one."""
    node = doc.node_at_position(pos)
    if node is None:
        return None
    pair = find_ancestor(node, lambda a: a.kind == "pair")
    if pair is None:
        return None
    deps_obj = find_ancestor(pair, lambda a: a.kind == "object")
    if deps_obj is None:
        return None
    deps_pair = find_ancestor(deps_obj, lambda a: a.kind == "pair")
    if deps_pair is None or _key_kind(doc, deps_pair) is None:
        return None
    return pair


def parse_dependency(pair: Node) -> Optional[NpmDependency]:
    """Split a dependency pair into its name and spec nodes."""
    name = pair.child_by_field_name("key")
    spec = pair.child_by_field_name("value")
    if name is None or spec is None:
        return None
    return NpmDependency(name=name, spec=spec)


@dataclass(frozen=True)
class NpmDependency:
    """Nodes of an npm dependency entry."""

    name: Node
    spec: Node

    def text(self, doc: Document) -> tuple[str, str]:
        """Return the unquoted name and spec."""
        return unquote(doc.node_text(self.name)), unquote(doc.node_text(self.spec))