"""Syntax trees for TOML and JSON, and dependency lookup in Cargo, npm, Rokit and Wally manifests."""