# deputy

Tools for reading dependency manifests and looking up packages in their
registries.

The package has two halves:

- `deputy.parser` reads `Cargo.toml`, `package.json`, `rokit.toml` and
  `wally.toml` into a small concrete syntax tree and finds the dependencies
  in them, including the dependency under a given cursor position.
- `deputy.clients` holds asynchronous clients for crates.io, the npm
  registry, GitHub and Wally indexes, with per-key request caching and
  spacing of crates.io requests.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Parsing manifests

`deputy.parser.syntax.Document` parses text as `Language.TOML` or
`Language.JSON` and raises `ValueError` on malformed input. Nodes carry byte
offsets and row/column `Point`s; `Document.node_at_position` takes an editor
`Position` (zero-based line and character) and returns the deepest named node
there.

```python
from deputy.parser.syntax import Document, Language, Position
from deputy.parser import cargo

doc = Document(
    '[dependencies]\nserde = { version = "1.0", features = ["derive"] }\n',
    Language.TOML,
)
for node in cargo.find_all_dependencies(doc):
    dep = cargo.parse_dependency(doc, node)
    if dep is not None:
        name, version = dep.text(doc)
        print(name, version)  # serde 1.0
        print([doc.node_text(f) for f in dep.feature_nodes()])  # ['"derive"']

under_cursor = cargo.find_dependency_at(doc, Position(1, 2))
```

`deputy.parser.cargo` understands `[dependencies]`, `[dev-dependencies]`,
`[build-dependencies]`, their `workspace` and `target.<triple>` forms, and
single-dependency tables such as `[dependencies.serde]`. A `package` key
replaces the dependency name; entries without a version are skipped by
`parse_dependency`.

`deputy.parser.npm` does the same over a `Language.JSON` document, looking in
`dependencies`, `devDependencies`, `peerDependencies` and
`optionalDependencies`.

`deputy.parser.rokit` (the `[tools]` table) and `deputy.parser.wally`
(`[dependencies]`, `[dev-dependencies]`, `[server-dependencies]`) find
`alias = "owner/repository@version"` pairs. `parse_dependency` returns a
`TriDependency`, whose `spec_ranges(doc)` locates the owner, repository and
version inside the quotes; `.text(doc)` on the result gives their text, with
`None` for a part that is absent.

## Querying registries

```python
import asyncio
from deputy.clients.collection import Clients

async def main():
    clients = Clients()
    metadatas = await clients.crates.get_sparse_index_crate_metadatas("serde")
    print(metadatas[0].version, metadatas[0].all_features())

    npm = await clients.npm.get_registry_metadata("react")
    print(npm.current_version.description)

asyncio.run(main())
```

The clients are:

- `CratesClient` (`deputy.clients.crates.client`):
  `get_sparse_index_crate_metadatas` (newest version first),
  `get_crate_data` and `search_crates`. The last two go to the crates.io API
  and are spaced at least 1.25 seconds apart.
- `NpmClient` (`deputy.clients.npm.client`): `get_registry_metadata`.
- `GithubClient` (`deputy.clients.github.client`): `get_repository_metrics`,
  `get_repository_releases`, `get_repository_tree` and `get_repository_file`.
  Set `auth_token` to send an Authorization header, e.g.
  `GithubClient(auth_token="Bearer token")`.
- `WallyClient` (`deputy.clients.wally.client`): `get_index_scopes`,
  `get_index_packages` and `get_index_metadatas`, following an index's
  fallback registries. Indexes must be GitHub repositories; `parse_index_url`
  extracts their owner and name.

`Clients` builds one of each, with the Wally client reading through the
GitHub one.

Failed requests raise `deputy.clients.errors.RequestError` or one of its
subclasses (`ResponseError`, `DecodeError`, `UrlParseError`, `ClientError`,
`JsonError`); `is_not_found_error()` and `is_rate_limit_error()` tell the
common cases apart. Results, and `RequestError` failures too, are cached per
key by `RequestCacheMap` for a time that depends on the endpoint, and
concurrent calls for the same key share a single fetch.

## What it does not do

This is a library only. It has no command-line program and no language
server: it finds dependencies and fetches registry data, but it does not
produce diagnostics, completions or hover text from them, and it does not
compare or resolve version requirements.