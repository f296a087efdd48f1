from deputy.parser.shared import (
    TableNames,
    TriDependency,
    find_all_dependencies,
    find_dependency_at,
    parse_dependency,
    sub_delimited_tri,
)
from deputy.parser.syntax import Document, Language, Point, Position, Range

MANIFEST = """[package]
name = "demo/demo"

[tools]
rojo = "rojo-rbx/rojo@7.4.0"
wally = 'UpliftGames/wally@0.3.2'

[dependencies]
roact = "roblox/roact@1.4.4"
"""


def _position(text, needle, offset=0):
    for line_no, line in enumerate(text.splitlines()):
        column = line.find(needle)
        if column != -1:
            return Position(line_no, column + offset)
    raise AssertionError(needle)


def _doc(text=MANIFEST):
    return Document(text, Language.TOML)


def test_table_names_accept():
    assert TableNames.ROKIT.accepts("tools")
    assert not TableNames.ROKIT.accepts("dependencies")
    assert TableNames.WALLY.accepts("server-dependencies")
    assert not TableNames.WALLY.accepts("tools")


def test_find_all_dependencies_rokit():
    doc = _doc()
    deps = find_all_dependencies(doc, TableNames.ROKIT)
    aliases = [doc.node_text(parse_dependency(dep).alias) for dep in deps]
    assert aliases == ["rojo", "wally"]


def test_find_all_dependencies_wally():
    doc = _doc()
    deps = find_all_dependencies(doc, TableNames.WALLY)
    assert [doc.node_text(parse_dependency(dep).alias) for dep in deps] == ["roact"]


def test_spec_ranges_text():
    doc = _doc()
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[0])
    assert dep.spec_ranges(doc).text(doc) == ("rojo-rbx", "rojo", "7.4.0")


def test_spec_ranges_single_quotes():
    doc = _doc()
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[1])
    assert dep.spec_ranges(doc).text(doc) == ("UpliftGames", "wally", "0.3.2")


def test_spec_ranges_skip_opening_quote():
    doc = _doc()
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[0])
    ranges = dep.spec_ranges(doc)
    assert ranges.owner.start_byte == dep.spec.start_byte + 1
    assert ranges.owner.start_point.column == dep.spec.start_point.column + 1
    assert ranges.version.end_byte == dep.spec.end_byte - 1


def test_spec_without_version():
    doc = _doc('[tools]\nrojo = "rojo-rbx/rojo"\n')
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[0])
    ranges = dep.spec_ranges(doc)
    assert ranges.version is None
    assert ranges.text(doc) == ("rojo-rbx", "rojo", None)


def test_spec_owner_only():
    doc = _doc('[tools]\nrojo = "rojo-rbx"\n')
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[0])
    assert dep.spec_ranges(doc).text(doc) == ("rojo-rbx", None, None)


def test_sub_delimited_tri_slices_back():
    text = "ab/cd@1.0"
    base = 10
    range_ = Range(base, base + len(text), Point(2, 5), Point(2, 5 + len(text)))
    parts = sub_delimited_tri(range_, text, "/", "@")
    sliced = [text[r.start_byte - base : r.end_byte - base] for r in parts]
    assert sliced == ["ab", "cd", "1.0"]
    for part in parts:
        assert part.end_point.column - part.start_point.column == part.end_byte - part.start_byte
        assert part.start_point.row == 2


def test_find_dependency_at_inside_spec():
    doc = _doc()
    pos = _position(MANIFEST, "rojo-rbx", 3)
    pair = find_dependency_at(doc, pos, TableNames.ROKIT)
    assert doc.node_text(pair) == 'rojo = "rojo-rbx/rojo@7.4.0"'


def test_find_dependency_at_wrong_table():
    doc = _doc()
    pos = _position(MANIFEST, "roblox/roact", 2)
    assert find_dependency_at(doc, pos, TableNames.ROKIT) is None
    pair = find_dependency_at(doc, pos, TableNames.WALLY)
    assert doc.node_text(pair).startswith("roact")


def test_find_dependency_at_package_table():
    doc = _doc()
    pos = _position(MANIFEST, "demo/demo", 1)
    assert find_dependency_at(doc, pos, TableNames.WALLY) is None


def test_parse_dependency_requires_string():
    doc = _doc("[tools]\nrojo = 1\n")
    pair = find_all_dependencies(doc, TableNames.ROKIT)[0]
    assert parse_dependency(pair) is None


def test_parse_dependency_returns_tri_dependency():
    doc = _doc()
    dep = parse_dependency(find_all_dependencies(doc, TableNames.ROKIT)[0])
    assert isinstance(dep, TriDependency)
    assert doc.node_text(dep.spec) == '"rojo-rbx/rojo@7.4.0"'