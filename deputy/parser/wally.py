"""Dependency lookup for Wally package manifests."""

from __future__ import annotations

from typing import Optional

from .shared import TableNames
from .shared import TriDependency as WallyDependency
from .shared import TriDependencySpecRanges as WallyDependencySpecRanges
from .shared import find_all_dependencies as _find_all
from .shared import find_dependency_at as _find_at
from .shared import parse_dependency
from .syntax import Document, Node, Position

__all__ = [
    "WallyDependency",
    "WallyDependencySpecRanges",
    "find_all_dependencies",
    "find_dependency_at",
    "parse_dependency",
]


def find_all_dependencies(doc: Document) -> list[Node]:
    """Return every dependency pair in the Wally dependency tables."""
    return _find_all(doc, TableNames.WALLY)


def find_dependency_at(doc: Document, pos: Position) -> Optional[Node]:
    """Return the dependency pair under ``pos``, if there is one."""
    return _find_at(doc, pos, TableNames.WALLY)