"""Post type discovery and post type configuration.

Discovery follows a fixed, total precedence over type-indicating properties::

    checkin > rsvp > reply > repost > like > bookmark
        > video > photo > audio > event > article > note

The first match wins; a property set that matches nothing is a ``note``.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from scriptorium.core.config import deep_merge
from scriptorium.core.exceptions import ConfigurationError
from scriptorium.core.types import PostTypeConfig, PropertySet

logger = logging.getLogger(__name__)

PROPERTY_POST_TYPES: tuple[tuple[str, str], ...] = (
    ("checkin", "checkin"),
    ("rsvp", "rsvp"),
    ("reply", "in-reply-to"),
    ("repost", "repost-of"),
    ("like", "like-of"),
    ("bookmark", "bookmark-of"),
    ("video", "video"),
    ("photo", "photo"),
    ("audio", "audio"),
)


def _has_value(value: Any) -> bool:
    return value not in (None, "", [], {})


def _content_text(properties: PropertySet) -> str:
    content = properties.get("content") or properties.get("summary") or ""
    if isinstance(content, Mapping):
        content = content.get("text") or content.get("html") or ""
    if isinstance(content, list):
        content = content[0] if content else ""
    return content if isinstance(content, str) else ""


def _is_article(properties: PropertySet) -> bool:
    """An article has a name that is not just the start of its content."""
    name = properties.get("name")
    if not isinstance(name, str) or not name.strip():
        return False
    collapsed_name = " ".join(name.split())
    collapsed_content = " ".join(_content_text(properties).split())
    return not collapsed_content.startswith(collapsed_name)


def get_post_type(properties: PropertySet) -> str:
    """Discover the post type of a JF2 property set."""
    for post_type, property_name in PROPERTY_POST_TYPES:
        if _has_value(properties.get(property_name)):
            return post_type

    if properties.get("type") == "event":
        return "event"

    if _is_article(properties):
        return "article"

    return "note"


def get_post_type_config(post_type: str | None, post_types: Mapping[str, PostTypeConfig]) -> PostTypeConfig | None:
    """Return the configuration for ``post_type``, or None if unconfigured."""
    if post_type is None:
        return None
    return post_types.get(post_type)


def merge_post_types(
    preset_types: Iterable[PostTypeConfig | Mapping[str, Any]],
    overrides: Iterable[PostTypeConfig | Mapping[str, Any]] = (),
) -> Mapping[str, PostTypeConfig]:
    """Merge preset post types with publication overrides, keyed by ``type``.

    Preset entries are laid down first, then each override is deep-merged on
    top, so overrides win on conflict and preset values fill the gaps.
    """
    merged: dict[str, dict[str, Any]] = {}
    for layer in (preset_types, overrides):
        for entry in layer:
            if isinstance(entry, PostTypeConfig):
                data = entry.model_dump(exclude_none=True)
            else:
                data = copy.deepcopy(dict(entry))
            post_type = data.get("type")
            if not post_type:
                msg = f"post type entry without 'type': {data!r}"
                raise ConfigurationError(msg)
            merged[post_type] = deep_merge(merged.get(post_type, {}), data)

    try:
        resolved = {post_type: PostTypeConfig.model_validate(data) for post_type, data in merged.items()}
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc

    logger.debug("Resolved post types: %s", ", ".join(resolved))
    return MappingProxyType(resolved)
