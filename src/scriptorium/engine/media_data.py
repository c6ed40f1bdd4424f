"""Media record lifecycle: create, read and delete.

Media records are never updated or soft-deleted; delete removes the record
from the index.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import PurePosixPath

from scriptorium.core.context import Application, Publication
from scriptorium.core.exceptions import NotFoundError, PostTypeNotImplementedError, UnsupportedMediaTypeError
from scriptorium.core.ports import RecordStore
from scriptorium.core.types import SUPPORTED_MEDIA_TYPES, LiveRecord, MediaFile, PropertySet, StoreProperties
from scriptorium.core.utils import get_canonical_url, get_date
from scriptorium.engine.paths import render_path
from scriptorium.engine.post_types import get_post_type_config

logger = logging.getLogger(__name__)

_MEDIA_TYPES_BY_MAJOR = {"image": "photo", "audio": "audio", "video": "video"}


def get_media_type(file: MediaFile) -> str:
    """Media type for an upload: ``photo``, ``audio``, ``video`` or the MIME major type."""
    content_type = file.content_type or mimetypes.guess_type(file.filename)[0] or "application/octet-stream"
    major = content_type.split("/", 1)[0].lower()
    return _MEDIA_TYPES_BY_MAJOR.get(major, major)


def get_file_properties(time_zone: str, file: MediaFile) -> PropertySet:
    """Initial properties for an uploaded file, named with a random basename."""
    ext = PurePosixPath(file.filename).suffix.lstrip(".").lower()
    if not ext:
        guessed = mimetypes.guess_extension(file.content_type or "") or ""
        ext = guessed.lstrip(".")
    basename = str(uuid.uuid4())
    return {
        "basename": basename,
        "ext": ext,
        "filename": f"{basename}.{ext}" if ext else basename,
        "originalname": file.filename,
        "content-type": file.content_type,
        "published": get_date(time_zone),
    }


class MediaData:
    """Record lifecycle manager for media files."""

    @staticmethod
    def _media(application: Application, url: str) -> RecordStore:
        if application.media is None:
            raise NotFoundError(url)
        return application.media

    async def create(self, application: Application, publication: Publication, file: MediaFile) -> LiveRecord:
        """Create a media record for an uploaded file.

        Raises:
            UnsupportedMediaTypeError: If the file is not audio, photo or video.
            PostTypeNotImplementedError: If the media type has no media paths configured.

        """
        properties = get_file_properties(application.time_zone, file)

        media_type = get_media_type(file)
        properties["media-type"] = media_type
        if media_type not in SUPPORTED_MEDIA_TYPES:
            raise UnsupportedMediaTypeError(media_type)

        type_config = get_post_type_config(media_type, publication.post_types)
        if type_config is None or type_config.media is None:
            raise PostTypeNotImplementedError(media_type)

        context = publication.render_context(application)
        path = render_path(type_config.media.path, properties, context)
        url = render_path(type_config.media.url or type_config.media.path, properties, context)
        properties["url"] = get_canonical_url(url, publication.me)

        filename = properties["url"].rstrip("/").rsplit("/", 1)[-1]
        properties["filename"] = filename
        properties["basename"] = filename.split(".", 1)[0]

        record = LiveRecord(store_properties=StoreProperties(path=path), properties=properties)

        if application.media is not None:
            await application.media.insert_one(record.to_document())

        logger.info("Created %s media %s at %s", media_type, record.url, path)
        return record

    async def read(self, application: Application, url: str) -> LiveRecord:
        """Read the media record at ``url``.

        Raises:
            NotFoundError: If no record exists for ``url``.

        """
        document = await self._media(application, url).find_one({"properties.url": url})
        if document is None:
            raise NotFoundError(url)
        return LiveRecord.model_validate(document)

    async def delete(self, application: Application, url: str) -> bool:
        """Remove the media record at ``url`` from the index.

        Raises:
            NotFoundError: If no record exists for ``url``.

        """
        deleted = await self._media(application, url).delete({"properties.url": url})
        if not deleted:
            raise NotFoundError(url)
        logger.info("Deleted media %s", url)
        return True


media_data = MediaData()
