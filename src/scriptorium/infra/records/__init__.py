"""Record stores."""

from scriptorium.infra.records.duckdb import DuckDBRecordStore
from scriptorium.infra.records.memory import InMemoryRecordStore

__all__ = ["DuckDBRecordStore", "InMemoryRecordStore"]
