"""Writes post files to the publication's file store.

Runs after the record lifecycle has computed a record: renders the preset's
post template and commits it at the record's path.
"""

from __future__ import annotations

import logging

from scriptorium.core.context import Publication, StoreMessage
from scriptorium.core.exceptions import ConfigurationError
from scriptorium.core.ports import FileStore, Preset
from scriptorium.core.types import ContentResponse, Record

logger = logging.getLogger(__name__)


def _requirements(publication: Publication) -> tuple[Preset, FileStore]:
    if publication.preset is None:
        msg = "publication has no preset"
        raise ConfigurationError(msg)
    if publication.store is None:
        msg = "publication has no file store"
        raise ConfigurationError(msg)
    return publication.preset, publication.store


def _message(publication: Publication, action: str, record: Record) -> str:
    return publication.store_message_template(
        StoreMessage(
            action=action,
            post_type=record.properties.get("post-type", "post"),
            file_type="post",
            file_name=record.path.rsplit("/", 1)[-1],
        )
    )


class PostContent:
    """Creates, updates and deletes post files."""

    async def create(self, publication: Publication, record: Record) -> ContentResponse:
        preset, store = _requirements(publication)
        content = preset.post_template(record.properties)
        await store.create_file(record.path, content, message=_message(publication, "create", record))
        return ContentResponse(
            status=202,
            location=record.url,
            json={
                "success": "create_pending",
                "success_description": f"Post will be created at {record.url}",
            },
        )

    async def update(self, publication: Publication, record: Record, url: str) -> ContentResponse:
        """Rewrite the post file, moving it when its path changed.

        ``url`` is the URL the update was requested for; a different record
        URL means the post moved.
        """
        preset, store = _requirements(publication)
        content = preset.post_template(record.properties)
        original_path = record.store_properties.original_path or record.path
        new_path = record.path if record.path != original_path else None
        await store.update_file(
            original_path,
            content,
            message=_message(publication, "update", record),
            new_path=new_path,
        )

        if record.url != url:
            return ContentResponse(
                status=201,
                location=record.url,
                json={
                    "success": "update_created",
                    "success_description": f"Post updated and moved to {record.url}",
                },
            )
        return ContentResponse(
            status=200,
            location=record.url,
            json={"success": "update", "success_description": f"Post updated at {record.url}"},
        )

    async def delete(self, publication: Publication, record: Record) -> ContentResponse:
        _, store = _requirements(publication)
        await store.delete_file(record.path, message=_message(publication, "delete", record))
        return ContentResponse(
            status=200,
            json={"success": "delete", "success_description": f"Post deleted from {record.url}"},
        )

    async def undelete(self, publication: Publication, record: Record) -> ContentResponse:
        preset, store = _requirements(publication)
        content = preset.post_template(record.properties)
        await store.create_file(record.path, content, message=_message(publication, "undelete", record))
        return ContentResponse(
            status=200,
            location=record.url,
            json={"success": "delete_undelete", "success_description": f"Post restored to {record.url}"},
        )


post_content = PostContent()
