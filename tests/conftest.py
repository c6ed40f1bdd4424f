"""Shared fixtures for Scriptorium tests."""

import pytest

from scriptorium.core.context import Application, Publication, RenderContext
from scriptorium.core.types import PathTemplates, PostTypeConfig, SyndicationTarget
from scriptorium.engine.post_types import merge_post_types
from scriptorium.infra.records.memory import InMemoryRecordStore
from scriptorium.presets.jekyll import JekyllPreset

ME = "https://website.example"


@pytest.fixture
def preset() -> JekyllPreset:
    return JekyllPreset()


@pytest.fixture
def publication(preset: JekyllPreset) -> Publication:
    """Jekyll publication with a custom note type and two syndication targets."""
    overrides = [
        PostTypeConfig(
            type="note",
            post=PathTemplates(path="_notes/{yyyy}-{MM}-{dd}-{slug}.md", url="notes/{yyyy}/{MM}/{dd}/{slug}"),
        )
    ]
    return Publication(
        me=ME,
        post_types=merge_post_types(preset.post_types, overrides),
        syndication_targets=(
            SyndicationTarget(uid="https://social.example/@me", name="Social"),
            SyndicationTarget(uid="https://archive.example/", name="Archive", checked=True),
        ),
        preset=preset,
    )


@pytest.fixture
def posts() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def media() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def application(posts: InMemoryRecordStore, media: InMemoryRecordStore) -> Application:
    return Application(time_zone="UTC", posts=posts, media=media)


@pytest.fixture
def context() -> RenderContext:
    return RenderContext(time_zone="UTC", me=ME)
