"""Scriptorium: post and media record lifecycle with path and URL resolution."""

__version__ = "0.1.0"
