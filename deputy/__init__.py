"""Dependency manifest parsing and asynchronous package registry clients."""

__version__ = "0.6.0"