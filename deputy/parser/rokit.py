"""Dependency lookup for Rokit tool manifests."""

from __future__ import annotations

from typing import Optional

from .shared import TableNames
from .shared import TriDependency as RokitDependency
from .shared import TriDependencySpecRanges as RokitDependencySpecRanges
from .shared import find_all_dependencies as _find_all
from .shared import find_dependency_at as _find_at
from .shared import parse_dependency
from .syntax import Document, Node, Position

__all__ = [
    "RokitDependency",
    "RokitDependencySpecRanges",
    "find_all_dependencies",
    "find_dependency_at",
    "parse_dependency",
]


def find_all_dependencies(doc: Document) -> list[Node]:
    """Return every tool pair in the ``[tools]`` table."""
    return _find_all(doc, TableNames.ROKIT)


def find_dependency_at(doc: Document, pos: Position) -> Optional[Node]:
    """Return the tool pair under ``pos``, if there is one."""
    return _find_at(doc, pos, TableNames.ROKIT)