"""Helpers shared by the manifest parsers."""

from __future__ import annotations

from .syntax import Document, Node

_KEY_KINDS = ("bare_key", "quoted_key")


def unquote(text: str) -> str:
    """Strip one pair of matching single or double quotes, if present."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def _key_text(doc: Document, key: Node) -> str:
    text = doc.node_text(key)
    return unquote(text) if key.kind == "quoted_key" else text


def table_key_parts(doc: Document, node: Node) -> list[str]:
    """Return the unquoted parts of a ``[table]`` header key.

    Anything that is not a table yields an empty list.
    """
    if node.kind != "table":
        return []
    key = node.named_child(0)
    if key is None:
        return []
    if key.kind in _KEY_KINDS:
        return [_key_text(doc, key)]
    if key.kind == "dotted_key":
        return [_key_text(doc, part) for part in key.children if part.kind in _KEY_KINDS]
    return []