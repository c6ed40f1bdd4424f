"""File stores."""

from scriptorium.infra.stores.filesystem import FileSystemStore
from scriptorium.infra.stores.github import GitHubStore

__all__ = ["FileSystemStore", "GitHubStore"]
