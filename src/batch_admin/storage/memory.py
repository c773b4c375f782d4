from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from batch_admin.core.ports.files import StoredFile


@dataclass
class InMemoryFileEntry:
    content: bytes
    modified: datetime


@dataclass
class _BufferWriter:
    chunks: list[bytes] = field(default_factory=list)

    async def write(self, chunk: bytes) -> None:
        self.chunks.append(chunk)


class InMemoryFileStore:
    def __init__(self, root: str = "memory:") -> None:
        self.root = root.rstrip("/")
        self.entries: dict[str, InMemoryFileEntry] = {}

    def _stored(self, key: str) -> StoredFile:
        return StoredFile(
            key=key,
            location=f"{self.root}/{key}",
            modified=self.entries[key].modified,
            local=False,
        )

    def put(self, key: str, content: bytes = b"", modified: datetime | None = None) -> StoredFile:
        """Seed an entry directly, bypassing the upload path."""
        self.entries[key] = InMemoryFileEntry(content, modified or datetime.now(timezone.utc))
        return self._stored(key)

    async def enumerate(self) -> list[StoredFile]:
        return [self._stored(key) for key in sorted(self.entries)]

    async def stat(self, key: str) -> StoredFile | None:
        if key not in self.entries:
            return None
        return self._stored(key)

    async def create(self, key: str, exclusive: bool = False) -> StoredFile:
        if exclusive and key in self.entries:
            raise FileExistsError(key)
        return self.put(key)

    @asynccontextmanager
    async def open_write(self, key: str) -> AsyncIterator[_BufferWriter]:
        writer = _BufferWriter()
        yield writer
        self.put(key, b"".join(writer.chunks))

    async def read(self, key: str) -> AsyncIterator[bytes]:
        if key not in self.entries:
            raise FileNotFoundError(key)
        yield self.entries[key].content

    async def delete(self, key: str) -> bool:
        return self.entries.pop(key, None) is not None
