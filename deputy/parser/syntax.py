"""Concrete syntax trees for TOML and JSON documents.

Nodes keep byte offsets and row/column points, with columns counted in
bytes, so that ranges can be narrowed and sliced back out of the source.
"""

from __future__ import annotations

import bisect
import enum
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional


class Language(enum.Enum):
    """Languages that a document can be parsed as."""

    TOML = "toml"
    JSON = "json"


@dataclass(frozen=True, order=True)
class Point:
    """A zero-based row and byte column in a document."""

    row: int
    column: int


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based line and character, as an editor reports it."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """A span of a document in both bytes and points."""

    start_byte: int
    end_byte: int
    start_point: Point
    end_point: Point


class Node:
    """One node of a syntax tree.

    Named nodes are the syntactic constructs (keys, values, tables, ...);
    unnamed nodes are punctuation such as brackets, commas and ``=``.
    """

    __slots__ = (
        "kind",
        "start_byte",
        "end_byte",
        "start_point",
        "end_point",
        "is_named",
        "children",
        "parent",
        "_fields",
    )

    def __init__(
        self,
        kind: str,
        start_byte: int,
        end_byte: int,
        start_point: Point,
        end_point: Point,
        children: Iterable[Node] = (),
        *,
        is_named: bool = True,
        fields: Optional[dict[str, Node]] = None,
    ) -> None:
        self.kind = kind
        self.start_byte = start_byte
        self.end_byte = end_byte
        self.start_point = start_point
        self.end_point = end_point
        self.is_named = is_named
        self.children: list[Node] = list(children)
        self.parent: Optional[Node] = None
        self._fields = dict(fields or {})
        for child in self.children:
            child.parent = self

    def named_children(self) -> list[Node]:
        """Return the named children, in order."""
        return [child for child in self.children if child.is_named]

    def named_child(self, index: int) -> Optional[Node]:
        """Return the named child at ``index``, or None if there is none."""
        named = self.named_children()
        if 0 <= index < len(named):
            return named[index]
        return None

    def child_by_field_name(self, name: str) -> Optional[Node]:
        """Return the child stored under a field such as ``key`` or ``value``."""
        return self._fields.get(name)

    def range(self) -> Range:
        """Return the span this node covers."""
        return Range(self.start_byte, self.end_byte, self.start_point, self.end_point)

    def __repr__(self) -> str:
        return (
            f"Node({self.kind!r}, {self.start_point.row}:{self.start_point.column}"
            f"-{self.end_point.row}:{self.end_point.column})"
        )


def find_ancestor(node: Node, predicate: Callable[[Node], bool]) -> Optional[Node]:
    """Return the nearest proper ancestor of ``node`` matching ``predicate``."""
    current = node.parent
    while current is not None:
        if predicate(current):
            return current
        current = current.parent
    return None


def find_child(node: Node, predicate: Callable[[Node], bool]) -> Optional[Node]:
    """Return the first direct child of ``node`` matching ``predicate``."""
    return next((child for child in node.children if predicate(child)), None)


def range_contains_position(range_: Range, position: Position) -> bool:
    """Tell whether ``position`` lies within ``range_``, both ends included."""
    point = Point(position.line, position.character)
    return range_.start_point <= point <= range_.end_point


_BLANK = b" \t"
_SPACE = b" \t\r\n"


class _Scanner:
    """Byte cursor with helpers common to both grammars."""

    def __init__(self, text: str) -> None:
        self.data = text.encode("utf-8")
        self.pos = 0
        self._line_starts = [0] + [m.end() for m in re.finditer(rb"\n", self.data)]

    def point(self, offset: int) -> Point:
        row = bisect.bisect_right(self._line_starts, offset) - 1
        return Point(row, offset - self._line_starts[row])

    def error(self, message: str, offset: Optional[int] = None) -> ValueError:
        point = self.point(self.pos if offset is None else offset)
        return ValueError(f"{message} at line {point.row + 1}, column {point.column + 1}")

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def peek(self, size: int = 1) -> bytes:
        return self.data[self.pos : self.pos + size]

    def skip(self, chars: bytes) -> None:
        while self.pos < len(self.data) and self.data[self.pos] in chars:
            self.pos += 1

    def node(
        self,
        kind: str,
        start: int,
        end: int,
        children: Iterable[Node] = (),
        *,
        is_named: bool = True,
        fields: Optional[dict[str, Node]] = None,
    ) -> Node:
        return Node(
            kind,
            start,
            end,
            self.point(start),
            self.point(end),
            children,
            is_named=is_named,
            fields=fields,
        )

    def token(self, literal: bytes) -> Node:
        if not self.data.startswith(literal, self.pos):
            raise self.error(f"expected {literal.decode('ascii')!r}")
        start = self.pos
        self.pos += len(literal)
        return self.node(literal.decode("ascii"), start, self.pos, is_named=False)

    def scan_quoted(self, quote: bytes, *, escapes: bool, multiline: bool) -> int:
        """Move past a quoted string at the cursor and return where it began."""
        start = self.pos
        data = self.data
        self.pos += len(quote)
        while self.pos < len(data):
            if data.startswith(quote, self.pos):
                self.pos += len(quote)
                if multiline:
                    extra = 0
                    while extra < 2 and data.startswith(quote[:1], self.pos):
                        self.pos += 1
                        extra += 1
                return start
            byte = data[self.pos]
            if escapes and byte == 0x5C:
                self.pos += 2
                continue
            if byte == 0x0A and not multiline:
                break
            self.pos += 1
        raise self.error("unterminated string", start)

    def delimited(
        self,
        kind: str,
        open_: bytes,
        close: bytes,
        item: Callable[[], Node],
        space: bytes,
    ) -> Node:
        start = self.pos
        children = [self.token(open_)]
        self.skip(space)
        if self.peek(len(close)) != close:
            while True:
                children.append(item())
                self.skip(space)
                if self.peek() != b",":
                    break
                children.append(self.token(b","))
                self.skip(space)
        children.append(self.token(close))
        return self.node(kind, start, self.pos, children)


_BARE_KEY = re.compile(rb"[A-Za-z0-9_-]+")
_DATE_TIME = re.compile(
    rb"\d{4}-\d{2}-\d{2}"
    rb"(?:[Tt ](?P<time>\d{2}:\d{2}:\d{2}(?:\.\d+)?)(?P<offset>[Zz]|[+-]\d{2}:\d{2})?)?"
)
_TIME = re.compile(rb"\d{2}:\d{2}:\d{2}(?:\.\d+)?")
_FLOAT = re.compile(
    rb"[+-]?(?:inf|nan|(?:0|[1-9](?:_?\d)*)(?:\.\d(?:_?\d)*)?(?:[eE][+-]?\d(?:_?\d)*)?)"
)
_INTEGER = re.compile(
    rb"0x[0-9A-Fa-f](?:_?[0-9A-Fa-f])*|0o[0-7](?:_?[0-7])*|0b[01](?:_?[01])*"
    rb"|[+-]?(?:0|[1-9](?:_?\d)*)"
)
_VALUE_END = b" \t\r\n,]}#"


class _TomlParser(_Scanner):
    def parse(self) -> Node:
        top: list[Node] = []
        table: Optional[tuple[str, int, list[Node]]] = None
        while True:
            self.skip(_SPACE)
            if self.at_end():
                break
            body = top if table is None else table[2]
            char = self.peek()
            if char == b"#":
                body.append(self.comment())
            elif char == b"[":
                if table is not None:
                    top.append(self.close_table(*table))
                table = self.table_header()
                self.line_end(table[2])
            else:
                body.append(self.pair())
                self.line_end(body)
        if table is not None:
            top.append(self.close_table(*table))
        return self.node("document", 0, len(self.data), top)

    def close_table(self, kind: str, start: int, children: list[Node]) -> Node:
        return self.node(kind, start, children[-1].end_byte, children)

    def table_header(self) -> tuple[str, int, list[Node]]:
        start = self.pos
        if self.peek(2) == b"[[":
            kind, open_, close = "table_array_element", b"[[", b"]]"
        else:
            kind, open_, close = "table", b"[", b"]"
        children = [self.token(open_)]
        self.skip(_BLANK)
        children.append(self.key())
        self.skip(_BLANK)
        children.append(self.token(close))
        return kind, start, children

    def line_end(self, body: list[Node]) -> None:
        self.skip(_BLANK)
        if self.peek() == b"#":
            body.append(self.comment())
        if self.at_end() or self.peek() == b"\n" or self.peek(2) == b"\r\n":
            return
        raise self.error("expected a newline")

    def comment(self) -> Node:
        start = self.pos
        end = self.data.find(b"\n", start)
        if end == -1:
            end = len(self.data)
        if end > start and self.data[end - 1 : end] == b"\r":
            end -= 1
        self.pos = end
        return self.node("comment", start, end)

    def key(self) -> Node:
        parts = [self.simple_key()]
        while True:
            saved = self.pos
            self.skip(_BLANK)
            if self.peek() != b".":
                self.pos = saved
                break
            parts.append(self.token(b"."))
            self.skip(_BLANK)
            parts.append(self.simple_key())
        if len(parts) == 1:
            return parts[0]
        return self.node("dotted_key", parts[0].start_byte, parts[-1].end_byte, parts)

    def simple_key(self) -> Node:
        char = self.peek()
        if char in (b'"', b"'"):
            start = self.scan_quoted(char, escapes=char == b'"', multiline=False)
            return self.node("quoted_key", start, self.pos)
        match = _BARE_KEY.match(self.data, self.pos)
        if match is None:
            raise self.error("expected a key")
        self.pos = match.end()
        return self.node("bare_key", match.start(), match.end())

    def pair(self) -> Node:
        key = self.key()
        self.skip(_BLANK)
        equals = self.token(b"=")
        self.skip(_BLANK)
        value = self.value()
        return self.node(
            "pair",
            key.start_byte,
            value.end_byte,
            [key, equals, value],
            fields={"key": key, "value": value},
        )

    def value(self) -> Node:
        char = self.peek()
        if char in (b'"', b"'"):
            triple = char * 3
            quote = triple if self.peek(3) == triple else char
            start = self.scan_quoted(quote, escapes=char == b'"', multiline=len(quote) == 3)
            return self.node("string", start, self.pos)
        if char == b"[":
            return self.array()
        if char == b"{":
            return self.delimited("inline_table", b"{", b"}", self.pair, _BLANK)
        return self.scalar()

    def array(self) -> Node:
        start = self.pos
        children = [self.token(b"[")]
        while True:
            self.skip_array_space(children)
            if self.peek() == b"]":
                break
            children.append(self.value())
            self.skip_array_space(children)
            if self.peek() != b",":
                break
            children.append(self.token(b","))
        children.append(self.token(b"]"))
        return self.node("array", start, self.pos, children)

    def skip_array_space(self, children: list[Node]) -> None:
        while True:
            self.skip(_SPACE)
            if self.peek() != b"#":
                return
            children.append(self.comment())

    def scalar(self) -> Node:
        start = self.pos
        kind, end = self.match_scalar()
        if end < len(self.data) and self.data[end] not in _VALUE_END:
            raise self.error("invalid value", start)
        self.pos = end
        return self.node(kind, start, end)

    def match_scalar(self) -> tuple[str, int]:
        data, pos = self.data, self.pos
        for literal in (b"true", b"false"):
            if data.startswith(literal, pos):
                return "boolean", pos + len(literal)
        match = _DATE_TIME.match(data, pos)
        if match:
            if match.group("time") is None:
                return "local_date", match.end()
            if match.group("offset") is None:
                return "local_date_time", match.end()
            return "offset_date_time", match.end()
        match = _TIME.match(data, pos)
        if match:
            return "local_time", match.end()
        match = _FLOAT.match(data, pos)
        if match:
            text = match.group()
            if b"." in text or b"e" in text.lower() or text.lstrip(b"+-") in (b"inf", b"nan"):
                return "float", match.end()
        match = _INTEGER.match(data, pos)
        if match:
            return "integer", match.end()
        raise self.error("expected a value")


_NUMBER = re.compile(rb"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")


class _JsonParser(_Scanner):
    def parse(self) -> Node:
        self.skip(_SPACE)
        value = self.value()
        self.skip(_SPACE)
        if not self.at_end():
            raise self.error("unexpected trailing content")
        return self.node("document", 0, len(self.data), [value])

    def value(self) -> Node:
        char = self.peek()
        if char == b"{":
            return self.delimited("object", b"{", b"}", self.pair, _SPACE)
        if char == b"[":
            return self.delimited("array", b"[", b"]", self.value, _SPACE)
        if char == b'"':
            return self.string()
        for literal in (b"true", b"false", b"null"):
            if self.data.startswith(literal, self.pos):
                start = self.pos
                self.pos += len(literal)
                return self.node(literal.decode("ascii"), start, self.pos)
        match = _NUMBER.match(self.data, self.pos)
        if match is None:
            raise self.error("expected a value")
        self.pos = match.end()
        return self.node("number", match.start(), match.end())

    def string(self) -> Node:
        start = self.scan_quoted(b'"', escapes=True, multiline=False)
        return self.node("string", start, self.pos)

    def pair(self) -> Node:
        if self.peek() != b'"':
            raise self.error("expected a string key")
        key = self.string()
        self.skip(_SPACE)
        colon = self.token(b":")
        self.skip(_SPACE)
        value = self.value()
        return self.node(
            "pair",
            key.start_byte,
            value.end_byte,
            [key, colon, value],
            fields={"key": key, "value": value},
        )


def parse_toml(text: str) -> Node:
    """Parse TOML text into a tree rooted at a ``document`` node.

    Raises ValueError on malformed input.
    """
    return _TomlParser(text).parse()


def parse_json(text: str) -> Node:
    """Parse JSON text into a tree rooted at a ``document`` node.

    Raises ValueError on malformed input.
    """
    return _JsonParser(text).parse()


class Document:
    """A parsed text document."""

    def __init__(self, text: str, language: Language) -> None:
        self.text = text
        self.language = language
        self._data = text.encode("utf-8")
        parse = parse_toml if language is Language.TOML else parse_json
        self._root = parse(text)

    def node_at_root(self) -> Optional[Node]:
        """Return the root node of the tree."""
        return self._root

    def node_at_position(self, position: Position) -> Optional[Node]:
        """Return the deepest named node containing ``position``, if any."""
        node = self._root
        if not range_contains_position(node.range(), position):
            return None
        while True:
            child = find_child(
                node,
                lambda c: c.is_named and range_contains_position(c.range(), position),
            )
            if child is None:
                return node
            node = child

    def node_text(self, node: Node) -> str:
        """Return the source text that ``node`` covers."""
        return self._data[node.start_byte : node.end_byte].decode("utf-8")

    def byte_slice(self, start: int, end: int) -> Optional[str]:
        """Return the text between two byte offsets, or None if they are not valid."""
        if not 0 <= start <= end <= len(self._data):
            return None
        try:
            return self._data[start:end].decode("utf-8")
        except UnicodeDecodeError:
            return None