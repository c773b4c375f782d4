"""Filesystem-backed staging area confined to one base directory."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from fastapi.concurrency import run_in_threadpool

from batch_admin.core.ports.files import StoredFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
_PARTIAL_SUFFIX = ".part"


class _LocalWriter:
    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle
        self.byte_size = 0

    async def write(self, chunk: bytes) -> None:
        await run_in_threadpool(self._handle.write, chunk)
        self.byte_size += len(chunk)


class LocalFileStore:
    """Store staged files under ``base_dir`` keyed by their relative POSIX path.

    Writes go to a ``.part`` sibling that is renamed into place only once the
    transfer completed, so an interrupted upload never leaves a readable entry.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir).resolve()
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, key: str) -> Path:
        """Return the absolute path for ``key`` within ``base_dir``."""
        candidate = (self._base_dir / key.lstrip("/")).resolve()
        try:
            candidate.relative_to(self._base_dir)
        except ValueError as exc:
            raise ValueError(f"Key {key!r} escapes the staging directory") from exc
        return candidate

    def _stored(self, path: Path) -> StoredFile:
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return StoredFile(
            key=path.relative_to(self._base_dir).as_posix(),
            location=path.as_posix(),
            modified=modified,
            local=True,
        )

    async def enumerate(self) -> list[StoredFile]:
        def _scan() -> list[StoredFile]:
            found: list[StoredFile] = []
            for path in self._base_dir.rglob("*"):
                if not path.is_file() or path.name.endswith(_PARTIAL_SUFFIX):
                    continue
                try:
                    found.append(self._stored(path))
                except FileNotFoundError:
                    # removed between the directory scan and the stat call
                    continue
            found.sort(key=lambda f: f.key)
            return found

        return await run_in_threadpool(_scan)

    async def stat(self, key: str) -> StoredFile | None:
        path = self.path_for(key)

        def _stat() -> StoredFile | None:
            if not path.is_file():
                return None
            return self._stored(path)

        return await run_in_threadpool(_stat)

    async def create(self, key: str, exclusive: bool = False) -> StoredFile:
        path = self.path_for(key)

        def _create() -> StoredFile:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("xb" if exclusive else "wb"):
                pass
            return self._stored(path)

        return await run_in_threadpool(_create)

    @asynccontextmanager
    async def open_write(self, key: str) -> AsyncIterator[_LocalWriter]:
        destination = self.path_for(key)
        partial = destination.with_name(destination.name + _PARTIAL_SUFFIX)
        await run_in_threadpool(destination.parent.mkdir, parents=True, exist_ok=True)
        handle = await run_in_threadpool(partial.open, "wb")
        try:
            writer = _LocalWriter(handle)
            yield writer
            await run_in_threadpool(handle.close)
            await run_in_threadpool(os.replace, partial, destination)
            logger.debug("Wrote %d bytes to %s", writer.byte_size, destination)
        finally:
            if not handle.closed:
                handle.close()
            partial.unlink(missing_ok=True)

    async def read(self, key: str, chunk_size: int = _CHUNK_SIZE) -> AsyncIterator[bytes]:
        path = self.path_for(key)
        exists = await run_in_threadpool(path.is_file)
        if not exists:
            raise FileNotFoundError(key)

        with path.open("rb") as source:
            while True:
                chunk = await run_in_threadpool(source.read, chunk_size)
                if not chunk:
                    break
                yield chunk

    async def delete(self, key: str) -> bool:
        """Remove ``key``; return False when it was already gone."""
        path = self.path_for(key)

        def _remove() -> bool:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            return True

        return await run_in_threadpool(_remove)
