"""In-memory record store."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from scriptorium.core.exceptions import UnderlyingStoreError
from scriptorium.core.ports import Query, RecordStore, Update
from scriptorium.core.types import ReturnDocument
from scriptorium.infra.records.documents import apply_update, get_path, matches


class InMemoryRecordStore(RecordStore):
    """Record store backed by a list of documents.

    Documents are copied on the way in and out, so callers never share state
    with the store. ``properties.url`` must be unique.
    """

    name = "memory"

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self._documents: list[dict[str, Any]] = [copy.deepcopy(doc) for doc in documents or []]
        self._lock = asyncio.Lock()

    @property
    def documents(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._documents)

    def _index_of(self, query: Query) -> int | None:
        for index, document in enumerate(self._documents):
            if matches(document, query):
                return index
        return None

    def _check_unique_url(self, document: dict[str, Any], skip: int | None = None) -> None:
        url = get_path(document, "properties.url")
        for index, existing in enumerate(self._documents):
            if index != skip and get_path(existing, "properties.url") == url:
                msg = f"duplicate record for {url}"
                raise UnderlyingStoreError(self.name, msg, status=409)

    async def insert_one(self, document: dict[str, Any]) -> None:
        async with self._lock:
            self._check_unique_url(document)
            self._documents.append(copy.deepcopy(document))

    async def find_one(self, query: Query) -> dict[str, Any] | None:
        index = self._index_of(query)
        if index is None:
            return None
        return copy.deepcopy(self._documents[index])

    async def find_one_and_update(
        self,
        query: Query,
        update: Update,
        *,
        return_document: ReturnDocument = "after",
    ) -> dict[str, Any] | None:
        async with self._lock:
            index = self._index_of(query)
            if index is None:
                return None
            before = self._documents[index]
            after = apply_update(before, update)
            self._check_unique_url(after, skip=index)
            self._documents[index] = after
            return copy.deepcopy(after if return_document == "after" else before)

    async def delete(self, query: Query) -> bool:
        async with self._lock:
            index = self._index_of(query)
            if index is None:
                return False
            del self._documents[index]
            return True
