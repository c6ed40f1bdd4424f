"""Jekyll preset: post types and Markdown post files with YAML frontmatter."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import yaml

from scriptorium.core.types import PathTemplates, PostTypeConfig, PropertySet

_DATED = "{yyyy}-{MM}-{dd}-{slug}"
_DATED_URL = "{yyyy}/{MM}/{dd}/{slug}"

# Properties copied into frontmatter, as (property, frontmatter key)
FRONTMATTER_PROPERTIES = (
    ("updated", "updated"),
    ("deleted", "deleted"),
    ("name", "title"),
    ("summary", "excerpt"),
    ("category", "category"),
    ("start", "start"),
    ("end", "end"),
    ("rsvp", "rsvp"),
    ("location", "location"),
    ("checkin", "checkin"),
    ("audio", "audio"),
    ("photo", "photo"),
    ("video", "video"),
    ("bookmark-of", "bookmark-of"),
    ("like-of", "like-of"),
    ("repost-of", "repost-of"),
    ("in-reply-to", "in-reply-to"),
    ("visibility", "visibility"),
    ("syndication", "syndication"),
    ("references", "references"),
)


def _post_type(post_type: str, directory: str, media_path: str | None = None) -> PostTypeConfig:
    return PostTypeConfig(
        type=post_type,
        post=PathTemplates(path=f"_{directory}/{_DATED}.md", url=f"{directory}/{_DATED_URL}"),
        media=PathTemplates(path=media_path) if media_path else None,
    )


class JekyllPreset:
    name = "jekyll"

    @property
    def post_types(self) -> list[PostTypeConfig]:
        return [
            PostTypeConfig(
                type="article",
                post=PathTemplates(path=f"_posts/{_DATED}.md", url=_DATED_URL),
                media=PathTemplates(path="media/{yyyy}/{MM}/{dd}/{filename}"),
            ),
            _post_type("note", "notes"),
            _post_type("photo", "photos", "media/photos/{yyyy}/{MM}/{dd}/{filename}"),
            _post_type("video", "videos", "media/videos/{yyyy}/{MM}/{dd}/{filename}"),
            _post_type("audio", "audio", "media/audio/{yyyy}/{MM}/{dd}/{filename}"),
            _post_type("bookmark", "bookmarks"),
            _post_type("checkin", "checkins"),
            _post_type("event", "events"),
            _post_type("rsvp", "replies"),
            _post_type("reply", "replies"),
            _post_type("repost", "reposts"),
            _post_type("like", "likes"),
        ]

    def post_template(self, properties: PropertySet) -> str:
        """Render a post as YAML frontmatter followed by its content."""
        content = properties.get("content")
        if isinstance(content, Mapping):
            content = content.get("text") or content.get("html")
        body = f"\n{content}\n" if content else ""

        frontmatter: dict[str, Any] = {"date": properties.get("published")}
        for key, frontmatter_key in FRONTMATTER_PROPERTIES:
            if properties.get(key):
                frontmatter[frontmatter_key] = properties[key]
        if properties.get("post-status") == "draft":
            frontmatter["published"] = False

        dumped = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True, width=float("inf"))
        return f"---\n{dumped}---\n{body}"
