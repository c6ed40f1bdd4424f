import copy

import pytest
from freezegun import freeze_time
from hypothesis import given, settings, strategies as st

from scriptorium.core.context import Publication, RenderContext
from scriptorium.core.exceptions import InvalidPropertyError
from scriptorium.core.types import SyndicationTarget
from scriptorium.engine.jf2 import (
    get_content_property,
    get_media_property,
    get_slug_property,
    get_syndicate_to_property,
    normalise_properties,
)

SOCIAL = "https://social.example/@me"
ARCHIVE = "https://archive.example/"


def test_content_string_gains_html():
    assert get_content_property("Hello *world*") == {
        "text": "Hello *world*",
        "html": "<p>Hello <em>world</em></p>",
    }


def test_content_html_only_is_kept():
    assert get_content_property({"html": "<p>Hi</p>"}) == {"html": "<p>Hi</p>"}


def test_content_without_text_or_html_is_rejected():
    with pytest.raises(InvalidPropertyError):
        get_content_property({"lang": "en"})


def test_media_urls_are_canonical_and_alt_text_is_folded_in():
    properties = {
        "photo": ["/media/a.jpg", {"url": "https://Cdn.example/b.jpg", "alt": "B"}],
        "mp-photo-alt": ["Alt A", "ignored"],
    }

    assert get_media_property(properties, "photo", "https://website.example") == [
        {"url": "https://website.example/media/a.jpg", "alt": "Alt A"},
        {"url": "https://cdn.example/b.jpg", "alt": "B"},
    ]


def test_slug_prefers_suggestion_then_name():
    assert get_slug_property({"mp-slug": "My Slug", "name": "Other"}, "-") == "my-slug"
    assert get_slug_property({"name": "One two three four five six"}, "_") == "one_two_three_four_five"


def test_slug_falls_back_to_random_string():
    slug = get_slug_property({"content": "no name"}, "-")

    assert len(slug) == 5
    assert slug.isalnum()


def test_syndication_targets_follow_configured_order():
    targets = (
        SyndicationTarget(uid=SOCIAL),
        SyndicationTarget(uid=ARCHIVE, checked=True),
    )

    assert get_syndicate_to_property({"mp-syndicate-to": [ARCHIVE, SOCIAL]}, targets) == [SOCIAL, ARCHIVE]
    assert get_syndicate_to_property({"mp-syndicate-to": "https://unknown.example"}, targets) is None
    assert get_syndicate_to_property({}, targets) is None


def test_checked_targets_are_added_on_request():
    targets = (
        SyndicationTarget(uid=SOCIAL),
        SyndicationTarget(uid=ARCHIVE, checked=True),
    )

    assert get_syndicate_to_property({}, targets, include_checked=True) == [ARCHIVE]
    assert get_syndicate_to_property({"mp-syndicate-to": SOCIAL}, targets, include_checked=True) == [
        SOCIAL,
        ARCHIVE,
    ]


@freeze_time("2024-06-01T12:00:00Z")
def test_normalise_fills_defaults(publication: Publication, context: RenderContext):
    normalised = normalise_properties(publication, {"content": "Hello", "name": ["  Title  "]}, context)

    assert normalised["type"] == "entry"
    assert normalised["published"] == "2024-06-01T12:00:00Z"
    assert normalised["name"] == "Title"
    assert normalised["content"] == {"text": "Hello", "html": "<p>Hello</p>"}
    assert normalised["mp-slug"] == "title"
    assert "mp-syndicate-to" not in normalised


def test_normalise_keeps_only_configured_syndication_targets(publication: Publication, context: RenderContext):
    normalised = normalise_properties(
        publication, {"mp-syndicate-to": ["https://unknown.example", SOCIAL]}, context
    )

    assert normalised["mp-syndicate-to"] == [SOCIAL]


def test_normalise_wraps_multi_valued_properties(publication: Publication, context: RenderContext):
    properties = {
        "category": "python",
        "in-reply-to": "https://example.com/post",
        "syndication": "https://social.example/1",
        "checkin": {"name": "Cafe"},
        "rsvp": ["yes"],
    }

    normalised = normalise_properties(publication, properties, context)

    assert normalised["category"] == ["python"]
    assert normalised["in-reply-to"] == ["https://example.com/post"]
    assert normalised["syndication"] == ["https://social.example/1"]
    assert normalised["checkin"] == {"name": "Cafe"}
    assert normalised["rsvp"] == "yes"


def test_scalar_and_list_forms_normalise_alike(publication: Publication, context: RenderContext):
    base = {"content": "Hello", "mp-slug": "hello", "published": "2024-01-01T00:00:00Z"}

    scalar = normalise_properties(publication, {**base, "category": "python"}, context)
    listed = normalise_properties(publication, {**base, "category": ["python"]}, context)

    assert scalar == listed


def test_normalise_does_not_mutate_input(publication: Publication, context: RenderContext):
    properties = {"content": ["Hello"], "photo": "a.jpg", "mp-photo-alt": "A"}
    before = copy.deepcopy(properties)

    normalise_properties(publication, properties, context)

    assert properties == before


def test_normalise_drops_syndication_without_targets(context: RenderContext):
    publication = Publication(me="https://website.example")

    normalised = normalise_properties(publication, {"mp-syndicate-to": [SOCIAL]}, context)

    assert "mp-syndicate-to" not in normalised


@pytest.mark.parametrize(
    "properties",
    [
        {"name": ["One", "Two"]},
        {"category": {1, 2}},
        {"content": 42},
        {"photo": [{"alt": "no url"}]},
    ],
)
def test_normalise_rejects_invalid_values(publication: Publication, context: RenderContext, properties):
    with pytest.raises(InvalidPropertyError):
        normalise_properties(publication, properties, context)


_text = st.text(st.characters(blacklist_categories=("Cs",)), max_size=40)


@settings(max_examples=50, deadline=None)
@given(
    name=_text,
    content=_text,
    categories=st.lists(_text, max_size=3),
    syndicate=st.lists(st.sampled_from([SOCIAL, ARCHIVE, "https://other.example"]), max_size=3),
)
def test_normalise_is_idempotent(name, content, categories, syndicate):
    publication = Publication(
        me="https://website.example",
        syndication_targets=(SyndicationTarget(uid=SOCIAL), SyndicationTarget(uid=ARCHIVE, checked=True)),
    )
    context = RenderContext(time_zone="UTC", me=publication.me)
    properties = {
        "name": name,
        "content": content,
        "category": categories,
        "mp-slug": "fixed-slug",
        "mp-syndicate-to": syndicate,
        "photo": ["/media/a.jpg"],
        "published": "2024-01-01T00:00:00Z",
    }

    once = normalise_properties(publication, properties, context)

    assert normalise_properties(publication, once, context) == once
