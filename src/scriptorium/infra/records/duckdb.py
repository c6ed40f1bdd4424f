"""DuckDB-backed record store."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from scriptorium.core.exceptions import UnderlyingStoreError
from scriptorium.core.ports import Query, RecordStore, Update
from scriptorium.core.types import ReturnDocument
from scriptorium.infra.records.documents import apply_update, get_path, matches

logger = logging.getLogger(__name__)

URL_KEY = "properties.url"
_TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

T = TypeVar("T")


class DuplicateRecordError(Exception):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"duplicate record for {url}")


class DuckDBRecordStore(RecordStore):
    """Stores each record as a JSON document keyed by its URL.

    Blocking DuckDB calls run in a worker thread, one at a time, and every
    read-modify-write happens inside a transaction.
    """

    name = "duckdb"

    def __init__(self, conn: duckdb.DuckDBPyConnection, table_name: str = "posts") -> None:
        if not _TABLE_NAME_PATTERN.match(table_name):
            msg = f"Invalid table name: {table_name!r}"
            raise ValueError(msg)
        self.conn = conn
        self.table_name = table_name
        self._lock = threading.Lock()

    @classmethod
    def connect(cls, database: Path | str = ":memory:", table_name: str = "posts") -> DuckDBRecordStore:
        """Open (or create) a database file and initialize the table."""
        if isinstance(database, Path):
            database.parent.mkdir(parents=True, exist_ok=True)
            database = str(database)
        store = cls(duckdb.connect(database), table_name)
        store.initialize()
        return store

    def initialize(self) -> None:
        """Creates the records table if it doesn't exist."""
        self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                url VARCHAR NOT NULL,
                document JSON NOT NULL
            )
        """)

    async def _run(self, func: Callable[[], T]) -> T:
        def locked() -> T:
            with self._lock:
                return func()

        try:
            return await asyncio.to_thread(locked)
        except DuplicateRecordError as exc:
            raise UnderlyingStoreError(self.name, str(exc), status=409) from exc
        except duckdb.Error as exc:
            raise UnderlyingStoreError(self.name, str(exc), status=500) from exc

    def _transaction(self, func: Callable[[], T]) -> T:
        self.conn.execute("BEGIN TRANSACTION")
        try:
            result = func()
        except Exception:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")
        return result

    def _url_taken(self, url: str, exclude: str | None = None) -> bool:
        row = self.conn.execute(
            f"SELECT count(*) FROM {self.table_name} WHERE url = ? AND url IS DISTINCT FROM ?",
            [url, exclude],
        ).fetchone()
        return bool(row and row[0])

    def _select(self, query: Query) -> tuple[str, dict[str, Any]] | None:
        if set(query) == {URL_KEY}:
            row = self.conn.execute(
                f"SELECT url, document FROM {self.table_name} WHERE url = ? LIMIT 1",
                [query[URL_KEY]],
            ).fetchone()
            if row is None:
                return None
            return row[0], json.loads(row[1])

        for url, raw in self.conn.execute(f"SELECT url, document FROM {self.table_name}").fetchall():
            document = json.loads(raw)
            if matches(document, query):
                return url, document
        return None

    async def insert_one(self, document: dict[str, Any]) -> None:
        url = get_path(document, URL_KEY)

        def insert() -> None:
            if self._url_taken(url):
                raise DuplicateRecordError(url)
            self.conn.execute(
                f"INSERT INTO {self.table_name} (url, document) VALUES (?, ?)",
                [url, json.dumps(document)],
            )

        await self._run(lambda: self._transaction(insert))

    async def find_one(self, query: Query) -> dict[str, Any] | None:
        found = await self._run(lambda: self._select(query))
        return found[1] if found else None

    async def find_one_and_update(
        self,
        query: Query,
        update: Update,
        *,
        return_document: ReturnDocument = "after",
    ) -> dict[str, Any] | None:
        def find_and_update() -> dict[str, Any] | None:
            found = self._select(query)
            if found is None:
                return None
            url, before = found
            after = apply_update(before, update)
            new_url = get_path(after, URL_KEY)
            if new_url != url and self._url_taken(new_url, exclude=url):
                raise DuplicateRecordError(new_url)
            self.conn.execute(
                f"UPDATE {self.table_name} SET url = ?, document = ? WHERE url = ?",
                [new_url, json.dumps(after), url],
            )
            return after if return_document == "after" else before

        return await self._run(lambda: self._transaction(find_and_update))

    async def delete(self, query: Query) -> bool:
        def delete() -> bool:
            found = self._select(query)
            if found is None:
                return False
            self.conn.execute(f"DELETE FROM {self.table_name} WHERE url = ?", [found[0]])
            return True

        deleted = await self._run(lambda: self._transaction(delete))
        if deleted:
            logger.debug("Deleted %s record matching %s", self.table_name, dict(query))
        return deleted

    def close(self) -> None:
        self.conn.close()
