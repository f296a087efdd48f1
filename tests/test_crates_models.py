import json

import pytest

from deputy.clients.crates.models import (
    CrateDataMulti,
    CrateDataSingle,
    IndexMetadata,
)
from deputy.clients.errors import JsonError

CRATE = {
    "name": "serde",
    "description": "A serialization framework",
    "created_at": "2014-12-05T20:20:39Z",
    "updated_at": "2024-01-01T00:00:00Z",
    "documentation": None,
    "repository": "https://example.com/serde",
    "homepage": None,
    "downloads": 1000,
    "recent_downloads": 100,
    "max_version": "1.0.0",
}

VERSION = {
    "id": 7,
    "crate": "serde",
    "num": "1.0.0",
    "created_at": "2020-01-01T00:00:00Z",
    "updated_at": "2020-01-02T00:00:00Z",
    "downloads": 50,
    "features": {"std": [], "derive": ["serde_derive"]},
}


def test_single_crate_parses_flattened_fields():
    data = CrateDataSingle.from_json(json.dumps({"crate": CRATE, "versions": [VERSION]}).encode())
    assert data.inner.name == "serde"
    assert data.inner.links.repository == "https://example.com/serde"
    assert data.inner.links.documentation is None
    assert data.inner.downloads.total_count == 1000
    assert data.inner.downloads.recent_count == 100
    version = data.versions[0]
    assert (version.name, version.version, version.id) == ("serde", "1.0.0", 7)
    assert version.features["derive"] == ["serde_derive"]
    assert version.raw_version_string() == "1.0.0"


def test_single_crate_versions_default_to_empty():
    data = CrateDataSingle.from_json(json.dumps({"crate": CRATE}))
    assert data.versions == []


def test_multi_crate_search():
    data = CrateDataMulti.from_json(json.dumps({"crates": [CRATE, dict(CRATE, name="serde_json")]}))
    assert [crate.name for crate in data.inner] == ["serde", "serde_json"]


def test_missing_field_is_json_error():
    broken = {key: value for key, value in CRATE.items() if key != "description"}
    with pytest.raises(JsonError):
        CrateDataSingle.from_json(json.dumps({"crate": broken}))


def test_negative_count_is_json_error():
    with pytest.raises(JsonError):
        CrateDataSingle.from_json(json.dumps({"crate": dict(CRATE, downloads=-1)}))


def test_invalid_json_is_json_error():
    with pytest.raises(JsonError):
        CrateDataMulti.from_json(b"{not json")


INDEX_LINES = [
    json.dumps(
        {
            "name": "demo",
            "vers": "0.1.0",
            "deps": [
                {
                    "name": "log",
                    "req": "^0.4",
                    "features": [],
                    "optional": True,
                    "default_features": True,
                    "target": None,
                    "kind": "normal",
                }
            ],
            "cksum": "abc",
            "features": {"std": []},
            "yanked": False,
        }
    ),
    json.dumps({"name": "demo", "vers": "0.2.0", "yanked": True}),
]


def test_index_lines_parse_with_aliases():
    metas = IndexMetadata.try_from_lines(INDEX_LINES)
    assert [meta.raw_version_string() for meta in metas] == ["0.1.0", "0.2.0"]
    dep = metas[0].dependencies[0]
    assert (dep.name, dep.version_requirement, dep.optional) == ("log", "^0.4", True)
    assert metas[0].features == {"std": []}
    assert metas[1].dependencies == []
    assert metas[1].yanked is True
    assert metas[0].yanked is False


def test_bad_index_line_is_json_error():
    with pytest.raises(JsonError):
        IndexMetadata.try_from_lines([INDEX_LINES[0], "oops"])


def _dep(name, optional):
    return {
        "name": name,
        "req": "*",
        "features": [],
        "optional": optional,
        "default_features": True,
    }


def test_all_features_includes_implicit_optional_deps():
    meta = IndexMetadata.from_dict(
        {
            "name": "demo",
            "vers": "1.0.0",
            "deps": [
                _dep("serde", True),
                _dep("log", True),
                _dep("tokio", True),
                _dep("bytes", False),
            ],
            "features": {"default": ["std"], "std": [], "rt": ["dep:tokio"]},
            "features2": {"full": ["dep:serde"], "std": []},
        }
    )
    features = meta.all_features()
    assert features == sorted(set(features))
    assert "log" in features
    assert "tokio" not in features
    assert "serde" not in features
    assert "bytes" not in features
    assert features == ["default", "full", "log", "rt", "std"]