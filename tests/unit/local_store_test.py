"""Tests for the filesystem-backed staging store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from batch_admin.core.errors import UploadFailed
from batch_admin.core.files import FileStagingService
from batch_admin.storage import InMemoryFilePublisher, LocalFileStore


@pytest.fixture
def store(tmp_path: Path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "staging")


@pytest.mark.asyncio
async def test_enumerate_is_sorted_and_relative(store: LocalFileStore) -> None:
    (store.base_dir / "in").mkdir()
    (store.base_dir / "in" / "b.csv").write_bytes(b"b")
    (store.base_dir / "a.txt").write_bytes(b"a")

    found = await store.enumerate()

    assert [f.key for f in found] == ["a.txt", "in/b.csv"]
    assert found[1].location == (store.base_dir / "in" / "b.csv").as_posix()
    assert all(f.local for f in found)


@pytest.mark.asyncio
async def test_partial_files_are_hidden(store: LocalFileStore) -> None:
    (store.base_dir / "a.txt.part").write_bytes(b"half")
    assert await store.enumerate() == []


@pytest.mark.asyncio
async def test_write_then_read(store: LocalFileStore) -> None:
    async with store.open_write("in/data.csv") as writer:
        await writer.write(b"a,b\n")
        await writer.write(b"1,2\n")

    assert (store.base_dir / "in" / "data.csv").read_bytes() == b"a,b\n1,2\n"
    assert not (store.base_dir / "in" / "data.csv.part").exists()
    chunks = [chunk async for chunk in store.read("in/data.csv")]
    assert b"".join(chunks) == b"a,b\n1,2\n"


@pytest.mark.asyncio
async def test_failed_write_keeps_previous_content(store: LocalFileStore) -> None:
    (store.base_dir / "a.txt").write_bytes(b"old")

    with pytest.raises(RuntimeError):
        async with store.open_write("a.txt") as writer:
            await writer.write(b"new")
            raise RuntimeError("interrupted")

    assert (store.base_dir / "a.txt").read_bytes() == b"old"
    assert not (store.base_dir / "a.txt.part").exists()


@pytest.mark.asyncio
async def test_delete_reports_missing(store: LocalFileStore) -> None:
    await store.create("a.txt")
    assert await store.delete("a.txt") is True
    assert await store.delete("a.txt") is False


@pytest.mark.asyncio
async def test_exclusive_create_refuses_existing_file(store: LocalFileStore) -> None:
    (store.base_dir / "a.txt").write_bytes(b"old")

    with pytest.raises(FileExistsError):
        await store.create("a.txt", exclusive=True)
    assert (store.base_dir / "a.txt").read_bytes() == b"old"


@pytest.mark.asyncio
async def test_stat_missing_is_none(store: LocalFileStore) -> None:
    assert await store.stat("missing.txt") is None


def test_keys_cannot_escape_base_dir(store: LocalFileStore) -> None:
    with pytest.raises(ValueError):
        store.path_for("../outside.txt")


def test_leading_slash_stays_inside(store: LocalFileStore) -> None:
    assert store.path_for("/in/a.txt") == store.base_dir / "in" / "a.txt"


@pytest.mark.asyncio
async def test_interrupted_upload_leaves_nothing_on_disk(store: LocalFileStore) -> None:
    service = FileStagingService(store, InMemoryFilePublisher())

    async def _broken() -> AsyncIterator[bytes]:
        yield b"first"
        raise ConnectionResetError("client went away")

    with pytest.raises(UploadFailed):
        await service.upload("in/data.csv", _broken())

    assert await store.enumerate() == []
    assert not any(p.is_file() for p in store.base_dir.rglob("*"))


@pytest.mark.asyncio
async def test_service_lists_local_files(store: LocalFileStore) -> None:
    service = FileStagingService(store, InMemoryFilePublisher())
    await service.upload("in/data.csv", b"x")

    files, total = await service.list(0, 20)

    assert total == 1
    assert files[0].short_path == "in/data.csv"
    assert files[0].path.endswith("/staging/in/data.csv")
    assert files[0].local is True
