"""Core data types for Scriptorium."""

from __future__ import annotations

import copy
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PropertySet = dict[str, Any]
"""JF2 property set: property name to scalar, mapping or list value."""

SUPPORTED_MEDIA_TYPES = ("audio", "photo", "video")
IDENTITY_PROPERTIES = ("mp-slug", "post-type", "published", "type", "url")


# --- Post type configuration ---
class PathTemplates(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    url: str | None = None


class PostTypeConfig(BaseModel):
    """Path and URL templates for a single post type."""

    model_config = ConfigDict(frozen=True)

    type: str
    name: str | None = None
    post: PathTemplates
    media: PathTemplates | None = None


class SyndicationTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    uid: str
    name: str | None = None
    checked: bool = False


# --- Records ---
class StoreProperties(BaseModel):
    """Where a record's content lives in the file store."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    original_path: str | None = Field(default=None, alias="_originalPath")


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    store_properties: StoreProperties = Field(alias="storeProperties")
    properties: PropertySet

    @property
    def url(self) -> str:
        return self.properties["url"]

    @property
    def path(self) -> str:
        return self.store_properties.path

    @property
    def is_deleted(self) -> bool:
        return False

    def to_document(self) -> dict[str, Any]:
        """Serialize to the nested document shape persisted by record stores."""
        return {
            "storeProperties": self.store_properties.model_dump(by_alias=True, exclude_none=True),
            "properties": copy.deepcopy(self.properties),
        }


class LiveRecord(Record):
    """A post or media record in the live state."""


class DeletedRecord(Record):
    """A soft-deleted post.

    ``properties`` holds only identity fields plus ``deleted``; the full
    property set is retained in ``deleted_properties`` for restoration.
    """

    deleted_properties: PropertySet = Field(alias="_deletedProperties")

    @property
    def is_deleted(self) -> bool:
        return True

    def to_document(self) -> dict[str, Any]:
        document = super().to_document()
        document["_deletedProperties"] = copy.deepcopy(self.deleted_properties)
        return document


PostRecord = LiveRecord | DeletedRecord


def record_from_document(document: dict[str, Any]) -> PostRecord:
    """Hydrate a stored document into the matching record state."""
    data = copy.deepcopy(document)
    data.pop("_id", None)
    if data.get("_deletedProperties") is not None:
        return DeletedRecord.model_validate(data)
    data.pop("_deletedProperties", None)
    return LiveRecord.model_validate(data)


# --- Operations ---
class UpdateOperation(BaseModel):
    """Micropub update descriptor.

    ``delete`` is either a list of property names to remove, or a mapping of
    property names to the values to remove from them.
    """

    add: PropertySet | None = None
    replace: PropertySet | None = None
    delete: list[str] | dict[str, list[Any]] | None = None


class MediaFile(BaseModel):
    """An uploaded media file."""

    filename: str
    content_type: str
    data: bytes = b""


class ContentResponse(BaseModel):
    """Outcome of writing a post file, for the protocol layer to relay."""

    status: int
    location: str | None = None
    json_body: dict[str, str] = Field(default_factory=dict, alias="json")

    model_config = ConfigDict(populate_by_name=True)


ReturnDocument = Literal["before", "after"]
