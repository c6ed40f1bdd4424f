from pathlib import Path

import pytest

from scriptorium.core.exceptions import UnderlyingStoreError
from scriptorium.core.ports import FileStore
from scriptorium.infra.stores.filesystem import FileSystemStore


@pytest.fixture
def store(tmp_path: Path) -> FileSystemStore:
    return FileSystemStore(tmp_path)


def test_satisfies_the_protocol(store: FileSystemStore):
    assert isinstance(store, FileStore)


@pytest.mark.asyncio
async def test_create_and_read(store: FileSystemStore, tmp_path: Path):
    assert await store.create_file("_notes/a.md", "Hello", message="create note post")

    assert (tmp_path / "_notes/a.md").read_text() == "Hello"
    assert await store.read_file("_notes/a.md") == "Hello"


@pytest.mark.asyncio
async def test_create_binary(store: FileSystemStore, tmp_path: Path):
    await store.create_file("media/a.jpg", b"\xff\xd8", message="upload photo media")

    assert (tmp_path / "media/a.jpg").read_bytes() == b"\xff\xd8"


@pytest.mark.asyncio
async def test_create_existing_file_conflicts(store: FileSystemStore):
    await store.create_file("a.md", "one", message="create")

    with pytest.raises(UnderlyingStoreError) as exc_info:
        await store.create_file("a.md", "two", message="create")

    assert exc_info.value.status == 409


@pytest.mark.asyncio
async def test_update_in_place_and_move(store: FileSystemStore, tmp_path: Path):
    await store.create_file("_notes/a.md", "one", message="create")

    await store.update_file("_notes/a.md", "two", message="update")
    assert (tmp_path / "_notes/a.md").read_text() == "two"

    await store.update_file("_notes/a.md", "three", message="update", new_path="_posts/a.md")
    assert not (tmp_path / "_notes/a.md").exists()
    assert (tmp_path / "_posts/a.md").read_text() == "three"


@pytest.mark.asyncio
async def test_delete_missing_file(store: FileSystemStore):
    with pytest.raises(UnderlyingStoreError) as exc_info:
        await store.delete_file("missing.md", message="delete")

    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_paths_cannot_escape_the_root(store: FileSystemStore):
    with pytest.raises(UnderlyingStoreError) as exc_info:
        await store.create_file("../outside.md", "x", message="create")

    assert exc_info.value.status == 400
