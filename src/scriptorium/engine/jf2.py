"""JF2 property normalization.

Incoming property sets arrive in several equivalent shapes (plain string
content or ``{text, html}``, single media URL or list of objects, a lone
category or a list of them). ``normalise_properties`` folds them into one
canonical shape used by the rest of the pipeline. It is idempotent and never
mutates its input.

Checked syndication targets are not added here; they are a default applied
once, when a post is created.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from scriptorium.core.context import Publication, RenderContext
from scriptorium.core.exceptions import InvalidPropertyError
from scriptorium.core.rendering import render_html
from scriptorium.core.types import PropertySet, SyndicationTarget
from scriptorium.core.utils import excerpt, format_date, get_canonical_url, get_date, random_string, slugify
from scriptorium.engine.paths import SLUG_WORDS

MEDIA_PROPERTIES = ("audio", "photo", "video")
SINGLE_VALUE_PROPERTIES = frozenset(
    {
        "checkin",
        "content",
        "deleted",
        "end",
        "location",
        "mp-slug",
        "name",
        "post-status",
        "post-type",
        "published",
        "rsvp",
        "start",
        "summary",
        "type",
        "updated",
        "url",
        "visibility",
    }
)
_SCALARS = (str, int, float, bool, type(None))


def _validate_value(key: str, value: Any) -> None:
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, list):
        for item in value:
            _validate_value(key, item)
        return
    if isinstance(value, Mapping):
        for sub_key, item in value.items():
            if not isinstance(sub_key, str):
                raise InvalidPropertyError(key, f"non-string key {sub_key!r}")
            _validate_value(key, item)
        return
    raise InvalidPropertyError(key, f"unsupported value type {type(value).__name__}")


def _unwrap_single(key: str, value: Any) -> Any:
    if isinstance(value, list):
        if len(value) != 1:
            raise InvalidPropertyError(key, "expected a single value")
        return value[0]
    return value


def get_published_property(properties: PropertySet, time_zone: str) -> str:
    published = properties.get("published")
    if isinstance(published, datetime):
        return format_date(published)
    if published:
        return published
    return get_date(time_zone)


def get_content_property(content: Any) -> dict[str, str]:
    """Canonical ``{text, html}`` content.

    Examples:
        >>> get_content_property("Hello *world*")
        {'text': 'Hello *world*', 'html': '<p>Hello <em>world</em></p>'}
        >>> get_content_property({"html": "<p>Hi</p>"})
        {'html': '<p>Hi</p>'}

    """
    if isinstance(content, str):
        return {"text": content, "html": render_html(content)}
    if isinstance(content, Mapping):
        text = content.get("text") or content.get("value")
        html = content.get("html")
        if not isinstance(text, (str, type(None))) or not isinstance(html, (str, type(None))):
            raise InvalidPropertyError("content", "text and html must be strings")
        if text and html:
            return {"text": text, "html": html}
        if text:
            return {"text": text, "html": render_html(text)}
        if html:
            return {"html": html}
    raise InvalidPropertyError("content", "expected a string or an object with text or html")


def get_media_property(properties: PropertySet, key: str, me: str) -> list[dict[str, str]]:
    """Canonical list of ``{url[, alt]}`` objects for audio, photo or video."""
    value = properties[key]
    items = value if isinstance(value, list) else [value]
    alt_texts: list[Any] = []
    if key == "photo" and "mp-photo-alt" in properties:
        alt_value = properties["mp-photo-alt"]
        alt_texts = alt_value if isinstance(alt_value, list) else [alt_value]

    media = []
    for index, item in enumerate(items):
        if isinstance(item, str):
            entry = {"url": item}
        elif isinstance(item, Mapping) and isinstance(item.get("url") or item.get("value"), str):
            entry = {"url": item.get("url") or item["value"]}
            if item.get("alt"):
                entry["alt"] = item["alt"]
        else:
            raise InvalidPropertyError(key, "expected a URL or an object with a url")

        entry["url"] = get_canonical_url(entry["url"], me)
        if index < len(alt_texts) and alt_texts[index] and "alt" not in entry:
            entry["alt"] = alt_texts[index]
        media.append(entry)
    return media


def get_slug_property(properties: PropertySet, separator: str) -> str:
    suggested = properties.get("mp-slug")
    name = properties.get("name")
    slug = ""
    if isinstance(suggested, str) and suggested:
        slug = slugify(suggested, separator=separator)
    elif isinstance(name, str) and name:
        slug = slugify(excerpt(name, SLUG_WORDS), separator=separator)
    return slug or random_string(5)


def get_syndicate_to_property(
    properties: PropertySet,
    syndication_targets: Iterable[SyndicationTarget],
    include_checked: bool = False,
) -> list[str] | None:
    """Requested syndication targets, in configured order.

    Requested uids that match no configured target are dropped. With
    ``include_checked``, targets marked ``checked`` are added as well.
    """
    requested = properties.get("mp-syndicate-to") or []
    if isinstance(requested, str):
        requested = [requested]

    syndicate_to: list[str] = []
    for target in syndication_targets:
        if ((include_checked and target.checked) or target.uid in requested) and target.uid not in syndicate_to:
            syndicate_to.append(target.uid)
    return syndicate_to or None


def normalise_properties(
    publication: Publication,
    properties: PropertySet,
    context: RenderContext,
) -> PropertySet:
    """Return a normalized copy of ``properties``.

    Raises:
        InvalidPropertyError: If a value has an unsupported shape.

    """
    properties = copy.deepcopy(dict(properties))

    for key, value in list(properties.items()):
        if key == "published" and isinstance(value, datetime):
            continue
        _validate_value(key, value)
        if key in SINGLE_VALUE_PROPERTIES:
            properties[key] = _unwrap_single(key, value)
        elif key not in MEDIA_PROPERTIES and value is not None and not isinstance(value, list):
            properties[key] = [value]

    properties["type"] = properties.get("type") or "entry"
    properties["published"] = get_published_property(properties, context.time_zone)

    if isinstance(properties.get("name"), str):
        properties["name"] = properties["name"].strip()

    if properties.get("content"):
        properties["content"] = get_content_property(properties["content"])

    for key in MEDIA_PROPERTIES:
        if properties.get(key):
            properties[key] = get_media_property(properties, key, context.me or publication.me)
    properties.pop("mp-photo-alt", None)

    properties["mp-slug"] = get_slug_property(properties, publication.slug_separator)

    syndicate_to = get_syndicate_to_property(properties, publication.syndication_targets)
    if syndicate_to:
        properties["mp-syndicate-to"] = syndicate_to
    else:
        properties.pop("mp-syndicate-to", None)

    return properties
