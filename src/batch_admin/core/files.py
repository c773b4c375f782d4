"""Staging-area operations: enumerate, upload, publish and pattern delete."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

from batch_admin.core.errors import (
    DownstreamPublishFailed,
    EmptyUpload,
    InvalidPath,
    InvalidPattern,
    NoSuchFile,
    PathConflict,
    UploadFailed,
)
from batch_admin.core.models import FileInfo
from batch_admin.core.pagination import check_window
from batch_admin.core.ports.files import FileStore, StoredFile
from batch_admin.core.ports.publisher import FilePublisher
from batch_admin.logging_config import ServiceLogger

_logger = logging.getLogger(__name__)


def normalise_path(path: str) -> str:
    """Turn a caller-supplied path into a store key, rejecting traversal."""
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    if not parts:
        raise InvalidPath(f"Path {path!r} is empty")
    if ".." in parts:
        raise InvalidPath(f"Path {path!r} must not contain '..'")
    return "/".join(parts)


def _validate_pattern(pattern: str) -> str:
    stripped = pattern.strip()
    if not stripped:
        raise InvalidPattern("Delete pattern must not be empty")
    if stripped.startswith("/"):
        raise InvalidPattern(f"Delete pattern {pattern!r} must be relative to the staging area")
    if ".." in stripped.replace("\\", "/").split("/"):
        raise InvalidPattern(f"Delete pattern {pattern!r} must not contain '..'")
    return stripped


async def _as_chunks(content: bytes | AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    if isinstance(content, (bytes, bytearray)):
        yield bytes(content)
        return
    async for chunk in content:
        yield chunk


class FileStagingService:
    def __init__(
        self,
        store: FileStore,
        publisher: FilePublisher,
        unique_paths: bool = False,
        log: ServiceLogger | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._unique_paths = unique_paths
        self._log = log or _logger

    @staticmethod
    def to_info(stored: StoredFile, delete_count: int = 0) -> FileInfo:
        return FileInfo(
            path=stored.location,
            short_path=stored.key,
            timestamp=stored.modified.isoformat(),
            local=stored.local,
            delete_count=delete_count,
        )

    async def list(self, offset: int, limit: int) -> tuple[list[FileInfo], int]:
        """Return one window of staged files (ordered by key) and the total count."""
        check_window(offset, limit)
        stored = await self._store.enumerate()
        window = stored[offset : offset + limit]
        return [self.to_info(f) for f in window], len(stored)

    async def count(self) -> int:
        return len(await self._store.enumerate())

    async def get(self, path: str) -> FileInfo:
        key = normalise_path(path)
        stored = await self._store.stat(key)
        if stored is None:
            raise NoSuchFile(key)
        return self.to_info(stored)

    async def delete(self, pattern: str) -> int:
        """Remove every staged file whose key matches ``pattern``.

        Each removal is attempted on its own; the result counts only the files
        this call actually removed.
        """
        pattern = _validate_pattern(pattern)
        matches = [f.key for f in await self._store.enumerate() if f.key == pattern or fnmatchcase(f.key, pattern)]

        deleted = 0
        for key in matches:
            try:
                removed = await self._store.delete(key)
            except Exception:
                self._log.exception("Failed to delete staged file %s", key)
                continue
            if removed:
                deleted += 1
            else:
                self._log.debug("Staged file %s was already removed", key)

        self._log.info("Deleted %d of %d file(s) matching %r", deleted, len(matches), pattern)
        return deleted

    async def create_file(self, path: str) -> FileInfo:
        key = normalise_path(path)
        try:
            stored = await self._store.create(key, exclusive=self._unique_paths)
        except FileExistsError as exc:
            raise PathConflict(key) from exc
        return self.to_info(stored)

    async def upload(self, path: str, content: bytes | AsyncIterable[bytes], filename: str | None = None) -> FileInfo:
        """Write ``content`` to ``path`` and return the resulting file.

        Empty content is rejected before anything is created. When the transfer
        fails the reserved entry is removed again.
        """
        key = normalise_path(path)
        name = filename or PurePosixPath(key).name
        chunks = _as_chunks(content)

        first = b""
        try:
            async for chunk in chunks:
                if chunk:
                    first = chunk
                    break
        except Exception as exc:
            self._log.warning("Upload of %s failed before any data arrived: %s", key, exc)
            raise UploadFailed(name) from exc
        if not first:
            raise EmptyUpload(name)

        await self.create_file(key)
        size = 0
        try:
            async with self._store.open_write(key) as writer:
                await writer.write(first)
                size += len(first)
                async for chunk in chunks:
                    if chunk:
                        await writer.write(chunk)
                        size += len(chunk)
        except Exception as exc:
            self._log.warning("Upload of %s failed: %s", key, exc)
            await self._discard(key)
            raise UploadFailed(name) from exc

        stored = await self._store.stat(key)
        if stored is None:
            raise UploadFailed(name)
        self._log.info("Uploaded %d bytes to %s", size, key)
        return self.to_info(stored)

    async def _discard(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except Exception:
            self._log.exception("Could not remove partial upload %s", key)

    async def publish(self, file: FileInfo) -> None:
        """Hand ``file`` to downstream consumers; repeated calls are no-ops."""
        delivered = await self._publisher.publish(file)
        if not delivered:
            self._log.debug("File %s was already published", file.short_path)

    async def upload_and_publish(
        self, directory: str, filename: str | None, content: bytes | AsyncIterable[bytes]
    ) -> FileInfo:
        """Store an uploaded file as ``{directory}/{filename}`` and publish it."""
        name = PurePosixPath((filename or "").replace("\\", "/")).name
        if not name:
            raise InvalidPath("Uploaded file has no name")
        target = f"{directory.strip('/')}/{name}" if directory.strip("/") else name

        info = await self.upload(target, content, name)
        try:
            await self.publish(info)
        except Exception as exc:
            if self._log.isEnabledFor(logging.DEBUG):
                self._log.debug("File upload failed downstream processing for %s", name, exc_info=True)
            else:
                self._log.info("File upload failed downstream processing for %s", name)
            raise DownstreamPublishFailed(name) from exc
        return info
