from deputy.parser.syntax import Document, Language, Position
from deputy.parser.wally import find_all_dependencies, find_dependency_at, parse_dependency

MANIFEST = """[package]
name = "scope/demo"
realm = "shared"

[dependencies]
roact = "roblox/roact@1.4.4"

[server-dependencies]
profile = "etheroit/profileservice@1.0.0"

[dev-dependencies]
testez = "roblox/testez@0.4.1"

[tools]
rojo = "rojo-rbx/rojo@7.4.0"
"""


def _position(text, needle, offset=0):
    for line_no, line in enumerate(text.splitlines()):
        column = line.find(needle)
        if column != -1:
            return Position(line_no, column + offset)
    raise AssertionError(needle)


def test_find_all_dependency_tables():
    doc = Document(MANIFEST, Language.TOML)
    deps = [parse_dependency(node) for node in find_all_dependencies(doc)]
    assert [doc.node_text(dep.alias) for dep in deps] == ["roact", "profile", "testez"]


def test_spec_text():
    doc = Document(MANIFEST, Language.TOML)
    dep = parse_dependency(find_all_dependencies(doc)[2])
    assert dep.spec_ranges(doc).text(doc) == ("roblox", "testez", "0.4.1")


def test_find_dependency_at_server_dependency():
    doc = Document(MANIFEST, Language.TOML)
    pair = find_dependency_at(doc, _position(MANIFEST, "etheroit", 1))
    assert doc.node_text(pair) == 'profile = "etheroit/profileservice@1.0.0"'


def test_find_dependency_at_ignores_package_and_tools():
    doc = Document(MANIFEST, Language.TOML)
    assert find_dependency_at(doc, _position(MANIFEST, "scope/demo", 1)) is None
    assert find_dependency_at(doc, _position(MANIFEST, "rojo-rbx", 1)) is None