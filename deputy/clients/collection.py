"""All registry clients, wired together."""

from __future__ import annotations

from .crates.client import CratesClient
from .github.client import GithubClient
from .npm.client import NpmClient
from .wally.client import WallyClient


class Clients:
    """One client per registry; the Wally client reads indexes through the GitHub one."""

    def __init__(self) -> None:
        self.crates = CratesClient()
        self.github = GithubClient()
        self.npm = NpmClient()
        self.wally = WallyClient(self.github)