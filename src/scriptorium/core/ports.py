"""Contracts consumed by the record lifecycle engine.

Implementations live under ``scriptorium.infra`` and ``scriptorium.presets``;
the engine depends only on these protocols.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from scriptorium.core.types import PostTypeConfig, PropertySet, ReturnDocument

Query = Mapping[str, Any]
"""Exact-match query over dotted document paths, e.g. ``{"properties.url": url}``."""

Update = Mapping[str, Mapping[str, Any]]
"""Update document with ``$set`` (dotted keys to values) and ``$unset`` sections."""

ReplacementResolver = Callable[[str, Any], Awaitable[Any]]


@runtime_checkable
class RecordStore(Protocol):
    """Persisted index of post or media records, keyed by ``properties.url``."""

    async def insert_one(self, document: dict[str, Any]) -> None: ...

    async def find_one(self, query: Query) -> dict[str, Any] | None: ...

    async def find_one_and_update(
        self,
        query: Query,
        update: Update,
        *,
        return_document: ReturnDocument = "after",
    ) -> dict[str, Any] | None:
        """Atomically find the matching document and apply ``update`` to it."""
        ...

    async def delete(self, query: Query) -> bool:
        """Remove the matching document, returning whether one was removed."""
        ...


@runtime_checkable
class FileStore(Protocol):
    """Durable storage for post and media files (git host, filesystem, ...).

    Provider failures are raised as ``UnderlyingStoreError``.
    """

    name: str

    async def create_file(self, path: str, content: str | bytes, *, message: str) -> bool: ...

    async def read_file(self, path: str) -> str: ...

    async def update_file(
        self,
        path: str,
        content: str | bytes,
        *,
        message: str,
        new_path: str | None = None,
    ) -> bool:
        """Update ``path``, moving it to ``new_path`` when given."""
        ...

    async def delete_file(self, path: str, *, message: str) -> bool: ...


@runtime_checkable
class Preset(Protocol):
    """Publishing preset: default post types and post file rendering."""

    name: str

    @property
    def post_types(self) -> list[PostTypeConfig]: ...

    def post_template(self, properties: PropertySet) -> str: ...
