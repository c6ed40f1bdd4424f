"""Post record lifecycle: create, read, update, delete and undelete.

Each record moves between three states::

    absent --create--> live --delete--> deleted --undelete--> live
                       live --update--> live

Every operation performs at most one write to the record store, and a
record's storage path is always re-rendered from its properties, never edited
by hand.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from scriptorium.core.context import Application, Publication, RenderContext
from scriptorium.core.exceptions import InvalidOperationError, NotFoundError, PostTypeNotImplementedError
from scriptorium.core.ports import RecordStore, ReplacementResolver
from scriptorium.core.types import (
    IDENTITY_PROPERTIES,
    DeletedRecord,
    LiveRecord,
    PostRecord,
    PostTypeConfig,
    PropertySet,
    StoreProperties,
    UpdateOperation,
    record_from_document,
)
from scriptorium.core.utils import get_canonical_url, get_date
from scriptorium.engine.jf2 import get_syndicate_to_property, normalise_properties
from scriptorium.engine.paths import render_path
from scriptorium.engine.post_types import get_post_type, get_post_type_config
from scriptorium.engine.update import apply_operation

logger = logging.getLogger(__name__)


def _require_config(post_type: str | None, publication: Publication) -> PostTypeConfig:
    type_config = get_post_type_config(post_type, publication.post_types)
    if type_config is None:
        raise PostTypeNotImplementedError(post_type or "unknown")
    return type_config


def _post_status(properties: PropertySet, draft_mode: bool) -> str:
    if draft_mode:
        return "draft"
    return properties.get("post-status") or "published"


def _url_query(url: str) -> dict[str, str]:
    return {"properties.url": url}


class PostData:
    """Record lifecycle manager for posts."""

    def __init__(self, resolver: ReplacementResolver | None = None) -> None:
        self.resolver = resolver

    @staticmethod
    def _posts(application: Application, url: str) -> RecordStore:
        if application.posts is None:
            raise NotFoundError(url)
        return application.posts

    async def create(
        self,
        application: Application,
        publication: Publication,
        properties: PropertySet,
        draft_mode: bool = False,
    ) -> LiveRecord:
        """Create a post record from incoming JF2 properties.

        Raises:
            PostTypeNotImplementedError: If the post type has no configuration.
            TemplateResolutionError: If a path template cannot be rendered.

        """
        properties = dict(properties)
        syndicate_to = get_syndicate_to_property(
            properties, publication.syndication_targets, include_checked=True
        )
        if syndicate_to:
            properties["mp-syndicate-to"] = syndicate_to

        context = publication.render_context(application)
        path, properties = self._render(publication, properties, context)
        properties["post-status"] = _post_status(properties, draft_mode)

        record = LiveRecord(store_properties=StoreProperties(path=path), properties=properties)

        if application.posts is not None:
            await application.posts.insert_one(record.to_document())

        logger.info("Created %s post %s at %s", properties["post-type"], record.url, path)
        return record

    async def read(self, application: Application, url: str) -> PostRecord:
        """Read the post record published at ``url``.

        Raises:
            NotFoundError: If no record exists for ``url``.

        """
        document = await self._posts(application, url).find_one(_url_query(url))
        if document is None:
            raise NotFoundError(url)
        return record_from_document(document)

    async def update(
        self,
        application: Application,
        publication: Publication,
        url: str,
        operation: UpdateOperation,
    ) -> LiveRecord | None:
        """Apply an update operation to the post at ``url``.

        Returns None, without writing anything, when the operation leaves the
        properties unchanged. Otherwise the returned record's store properties
        carry ``original_path`` so callers can move the stored file.
        """
        record = await self.read(application, url)
        if isinstance(record, DeletedRecord):
            raise InvalidOperationError("update", url, "post is deleted")

        original_path = record.store_properties.path
        original_properties = copy.deepcopy(record.properties)

        properties = await apply_operation(record.properties, operation, self.resolver)
        context = publication.render_context(application)
        path, properties = self._render(publication, properties, context)

        if properties == original_properties:
            logger.info("No changes to post %s", url)
            return None

        properties["updated"] = get_date(application.time_zone)

        document = await self._posts(application, url).find_one_and_update(
            _url_query(url),
            {
                "$set": {
                    "properties": properties,
                    "storeProperties._originalPath": original_path,
                    "storeProperties.path": path,
                }
            },
            return_document="after",
        )
        if document is None:
            raise NotFoundError(url)

        logger.info("Updated post %s at %s", properties["url"], path)
        return LiveRecord.model_validate(document)

    async def delete(self, application: Application, publication: Publication, url: str) -> DeletedRecord:
        """Soft-delete the post at ``url``.

        The full property set is kept as ``deleted_properties``; the live
        properties retain only what is needed to locate the post.
        """
        record = await self.read(application, url)
        if isinstance(record, DeletedRecord):
            raise InvalidOperationError("delete", url, "post is already deleted")

        deleted_properties = copy.deepcopy(record.properties)
        properties: dict[str, Any] = {
            key: value for key, value in deleted_properties.items() if key in IDENTITY_PROPERTIES
        }
        properties["deleted"] = get_date(application.time_zone)

        type_config = _require_config(properties.get("post-type"), publication)
        context = publication.render_context(application)
        path = render_path(type_config.post.path, properties, context)

        document = await self._posts(application, url).find_one_and_update(
            _url_query(url),
            {
                "$set": {
                    "_deletedProperties": deleted_properties,
                    "properties": properties,
                    "storeProperties.path": path,
                },
                "$unset": {"storeProperties._originalPath": ""},
            },
            return_document="after",
        )
        if document is None:
            raise NotFoundError(url)

        logger.info("Deleted post %s", url)
        return DeletedRecord.model_validate(document)

    async def undelete(
        self,
        application: Application,
        publication: Publication,
        url: str,
        draft_mode: bool = False,
    ) -> LiveRecord:
        """Restore a soft-deleted post.

        Raises:
            InvalidOperationError: If the post at ``url`` is not deleted.

        """
        record = await self.read(application, url)
        if not isinstance(record, DeletedRecord):
            raise InvalidOperationError("undelete", url, "post is not deleted")

        properties = copy.deepcopy(record.deleted_properties)
        post_type = get_post_type(properties)
        properties["post-type"] = post_type
        type_config = _require_config(post_type, publication)

        context = publication.render_context(application)
        path = render_path(type_config.post.path, properties, context)
        properties["post-status"] = _post_status(properties, draft_mode)

        document = await self._posts(application, url).find_one_and_update(
            _url_query(url),
            {
                "$set": {"properties": properties, "storeProperties.path": path},
                "$unset": {"_deletedProperties": ""},
            },
            return_document="after",
        )
        if document is None:
            raise NotFoundError(url)

        logger.info("Restored post %s at %s", url, path)
        return LiveRecord.model_validate(document)

    @staticmethod
    def _render(
        publication: Publication,
        properties: PropertySet,
        context: RenderContext,
    ) -> tuple[str, PropertySet]:
        """Normalize, re-resolve type and re-render path and URL."""
        properties = normalise_properties(publication, properties, context)
        post_type = get_post_type(properties)
        properties["post-type"] = post_type
        type_config = _require_config(post_type, publication)

        path = render_path(type_config.post.path, properties, context)
        url = render_path(type_config.post.url or type_config.post.path, properties, context)
        properties["url"] = get_canonical_url(url, publication.me)
        return path, properties


post_data = PostData()
