"""Builds runtime application and publication objects from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import duckdb

from scriptorium.core.config import ScriptoriumConfig
from scriptorium.core.context import Application, Publication
from scriptorium.core.ports import FileStore, Preset
from scriptorium.core.utils import get_time_zone
from scriptorium.engine.post_types import merge_post_types
from scriptorium.infra.records.duckdb import DuckDBRecordStore
from scriptorium.infra.stores.filesystem import FileSystemStore
from scriptorium.presets import get_preset

logger = logging.getLogger(__name__)


def build_publication(
    config: ScriptoriumConfig,
    store: FileStore | None = None,
    preset: Preset | None = None,
) -> Publication:
    """Resolve the publication: preset post types merged with overrides."""
    settings = config.publication
    preset = preset or get_preset(settings.preset)
    return Publication(
        me=settings.me,
        post_types=merge_post_types(preset.post_types, settings.post_types),
        syndication_targets=tuple(settings.syndication_targets),
        slug_separator=settings.slug_separator,
        preset=preset,
        store=store,
    )


@dataclass
class ScriptoriumContext:
    config: ScriptoriumConfig
    application: Application
    publication: Publication
    conn: duckdb.DuckDBPyConnection | None = None

    def close(self) -> None:
        for store in (self.application.posts, self.application.media):
            if isinstance(store, DuckDBRecordStore):
                store.close()
        if self.conn is not None:
            self.conn.close()
            self.conn = None


def build_context(site_root: Path | None = None) -> ScriptoriumContext:
    """Load configuration and open the DuckDB index and filesystem store."""
    config = ScriptoriumConfig.load(site_root)
    # Fail fast on an unknown time zone
    get_time_zone(config.application.time_zone)
    publication = build_publication(config, store=FileSystemStore(config.paths.abs_content_dir))

    conn = None
    posts = media = None
    db_path = config.paths.abs_db_path
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = duckdb.connect(str(db_path))
        posts = DuckDBRecordStore(conn.cursor(), "posts")
        media = DuckDBRecordStore(conn.cursor(), "media")
        posts.initialize()
        media.initialize()
        logger.debug("Opened index at %s", db_path)

    application = Application(time_zone=config.application.time_zone, posts=posts, media=media)
    return ScriptoriumContext(config=config, application=application, publication=publication, conn=conn)
