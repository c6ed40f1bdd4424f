import pytest
from freezegun import freeze_time

from scriptorium.core.context import Application, Publication
from scriptorium.core.exceptions import (
    InvalidOperationError,
    NotFoundError,
    PostTypeNotImplementedError,
    UnderlyingStoreError,
)
from scriptorium.core.types import DeletedRecord, LiveRecord, PathTemplates, PostTypeConfig, UpdateOperation
from scriptorium.engine.post_data import PostData, post_data
from scriptorium.infra.records.memory import InMemoryRecordStore

NOTE = {"content": "Hello world", "mp-slug": "hello", "published": "2024-01-01T00:00:00Z"}
NOTE_URL = "https://website.example/notes/2024/01/01/hello"
NOTE_PATH = "_notes/2024-01-01-hello.md"


@pytest.mark.asyncio
async def test_create_note(application: Application, publication: Publication, posts: InMemoryRecordStore):
    record = await post_data.create(application, publication, NOTE)

    assert isinstance(record, LiveRecord)
    assert record.path == NOTE_PATH
    assert record.url == NOTE_URL
    assert record.properties["post-type"] == "note"
    assert record.properties["post-status"] == "published"
    assert record.properties["mp-syndicate-to"] == ["https://archive.example/"]
    assert posts.documents == [record.to_document()]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [{}, {"post-status": "published"}, {"post-status": "draft"}])
async def test_create_in_draft_mode(application: Application, publication: Publication, status):
    record = await post_data.create(application, publication, {**NOTE, **status}, draft_mode=True)

    assert record.properties["post-status"] == "draft"


@pytest.mark.asyncio
async def test_create_keeps_requested_status(application: Application, publication: Publication):
    record = await post_data.create(application, publication, {**NOTE, "post-status": "draft"})

    assert record.properties["post-status"] == "draft"


@pytest.mark.asyncio
async def test_create_article(application: Application, publication: Publication):
    record = await post_data.create(
        application,
        publication,
        {"name": "My First Article", "content": "Body", "published": "2024-02-03T10:00:00Z"},
    )

    assert record.properties["post-type"] == "article"
    assert record.path == "_posts/2024-02-03-my-first-article.md"
    assert record.url == "https://website.example/2024/02/03/my-first-article"


@pytest.mark.asyncio
async def test_create_without_configuration_is_not_implemented(application: Application):
    publication = Publication(
        me="https://website.example",
        post_types={"note": PostTypeConfig(type="note", post=PathTemplates(path="{slug}.md"))},
    )

    with pytest.raises(PostTypeNotImplementedError) as exc_info:
        await post_data.create(application, publication, {"photo": "https://website.example/a.jpg"})

    assert exc_info.value.post_type == "photo"


@pytest.mark.asyncio
async def test_create_duplicate_url_is_a_store_error(application: Application, publication: Publication):
    await post_data.create(application, publication, NOTE)

    with pytest.raises(UnderlyingStoreError) as exc_info:
        await post_data.create(application, publication, NOTE)

    assert exc_info.value.status == 409


@pytest.mark.asyncio
async def test_create_without_record_store(publication: Publication):
    application = Application(time_zone="UTC")

    record = await post_data.create(application, publication, NOTE)

    assert record.url == NOTE_URL
    with pytest.raises(NotFoundError):
        await post_data.read(application, NOTE_URL)


@pytest.mark.asyncio
async def test_read_unknown_url(application: Application):
    with pytest.raises(NotFoundError) as exc_info:
        await post_data.read(application, "https://website.example/missing")

    assert exc_info.value.url == "https://website.example/missing"


@pytest.mark.asyncio
async def test_update_without_changes_writes_nothing(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    await post_data.create(application, publication, NOTE)
    before = posts.documents

    result = await post_data.update(
        application, publication, NOTE_URL, UpdateOperation(replace={"content": ["Hello world"]})
    )

    assert result is None
    assert posts.documents == before
    assert "updated" not in before[0]["properties"]


@pytest.mark.asyncio
@freeze_time("2024-06-01T12:00:00Z")
async def test_update_deleting_summary_keeps_url(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    await post_data.create(application, publication, {**NOTE, "summary": "Short"})

    record = await post_data.update(application, publication, NOTE_URL, UpdateOperation(delete=["summary"]))

    assert record is not None
    assert "summary" not in record.properties
    assert record.url == NOTE_URL
    assert record.path == NOTE_PATH
    assert record.properties["updated"] == "2024-06-01T12:00:00Z"
    assert record.store_properties.original_path == NOTE_PATH
    assert len(posts.documents) == 1


@pytest.mark.asyncio
async def test_update_that_changes_type_moves_the_post(application: Application, publication: Publication):
    await post_data.create(application, publication, NOTE)

    record = await post_data.update(
        application, publication, NOTE_URL, UpdateOperation(replace={"name": ["A Proper Title"]})
    )

    assert record is not None
    assert record.properties["post-type"] == "article"
    assert record.path == "_posts/2024-01-01-hello.md"
    assert record.url == "https://website.example/2024/01/01/hello"
    assert record.store_properties.original_path == NOTE_PATH
    assert await post_data.read(application, record.url) == record
    with pytest.raises(NotFoundError):
        await post_data.read(application, NOTE_URL)


@pytest.mark.asyncio
async def test_update_uses_replacement_resolver(application: Application, publication: Publication):
    async def resolver(key, value):
        return [item.upper() for item in value] if key == "category" else value

    await post_data.create(application, publication, NOTE)

    record = await PostData(resolver=resolver).update(
        application, publication, NOTE_URL, UpdateOperation(replace={"category": ["python"]})
    )

    assert record is not None
    assert record.properties["category"] == ["PYTHON"]


@pytest.mark.asyncio
async def test_update_deleting_syndication_targets_is_kept(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    created = await post_data.create(application, publication, NOTE)
    assert created.properties["mp-syndicate-to"] == ["https://archive.example/"]

    record = await post_data.update(application, publication, NOTE_URL, UpdateOperation(delete=["mp-syndicate-to"]))

    assert record is not None
    assert "mp-syndicate-to" not in record.properties
    assert "mp-syndicate-to" not in posts.documents[0]["properties"]


@pytest.mark.asyncio
async def test_update_does_not_add_checked_targets(application: Application, publication: Publication):
    await post_data.create(application, publication, NOTE)
    await post_data.update(application, publication, NOTE_URL, UpdateOperation(delete=["mp-syndicate-to"]))

    record = await post_data.update(
        application, publication, NOTE_URL, UpdateOperation(replace={"content": ["Changed"]})
    )

    assert record is not None
    assert "mp-syndicate-to" not in record.properties


@pytest.mark.asyncio
async def test_single_category_can_gain_more(application: Application, publication: Publication):
    created = await post_data.create(application, publication, {**NOTE, "category": "python"})
    assert created.properties["category"] == ["python"]

    record = await post_data.update(application, publication, NOTE_URL, UpdateOperation(add={"category": ["rust"]}))

    assert record is not None
    assert record.properties["category"] == ["python", "rust"]


@pytest.mark.asyncio
async def test_update_invalid_operation_leaves_record_untouched(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    await post_data.create(application, publication, NOTE)
    before = posts.documents

    with pytest.raises(InvalidOperationError):
        await post_data.update(application, publication, NOTE_URL, UpdateOperation(add={"content": ["More"]}))

    assert posts.documents == before


@pytest.mark.asyncio
@freeze_time("2024-06-01T12:00:00Z")
async def test_delete_keeps_identity_properties(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    created = await post_data.create(application, publication, {**NOTE, "category": ["python"]})

    record = await post_data.delete(application, publication, NOTE_URL)

    assert isinstance(record, DeletedRecord)
    assert record.properties == {
        "mp-slug": "hello",
        "post-type": "note",
        "published": "2024-01-01T00:00:00Z",
        "type": "entry",
        "url": NOTE_URL,
        "deleted": "2024-06-01T12:00:00Z",
    }
    assert record.deleted_properties == created.properties
    assert record.path == NOTE_PATH
    assert isinstance(await post_data.read(application, NOTE_URL), DeletedRecord)
    assert "_deletedProperties" in posts.documents[0]


@pytest.mark.asyncio
async def test_delete_then_undelete_restores_properties(
    application: Application, publication: Publication, posts: InMemoryRecordStore
):
    created = await post_data.create(application, publication, NOTE)
    await post_data.delete(application, publication, NOTE_URL)

    restored = await post_data.undelete(application, publication, NOTE_URL)

    assert isinstance(restored, LiveRecord)
    assert restored.properties == created.properties
    assert restored.path == created.path
    assert "_deletedProperties" not in posts.documents[0]


@pytest.mark.asyncio
async def test_undelete_in_draft_mode(application: Application, publication: Publication):
    created = await post_data.create(application, publication, {**NOTE, "post-status": "published"})
    assert created.properties["post-status"] == "published"
    await post_data.delete(application, publication, NOTE_URL)

    restored = await post_data.undelete(application, publication, NOTE_URL, draft_mode=True)

    assert restored.properties["post-status"] == "draft"


@pytest.mark.asyncio
async def test_undelete_live_post_is_invalid(application: Application, publication: Publication):
    await post_data.create(application, publication, NOTE)

    with pytest.raises(InvalidOperationError):
        await post_data.undelete(application, publication, NOTE_URL)


@pytest.mark.asyncio
async def test_deleted_post_cannot_be_updated_or_deleted_again(application: Application, publication: Publication):
    await post_data.create(application, publication, NOTE)
    await post_data.delete(application, publication, NOTE_URL)

    with pytest.raises(InvalidOperationError):
        await post_data.update(application, publication, NOTE_URL, UpdateOperation(delete=["content"]))
    with pytest.raises(InvalidOperationError):
        await post_data.delete(application, publication, NOTE_URL)
