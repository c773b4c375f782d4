from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class StoredFile:
    key: str
    location: str
    modified: datetime
    local: bool


class FileWriter(Protocol):
    async def write(self, chunk: bytes) -> None: ...


class FileStore(Protocol):
    async def enumerate(self) -> list[StoredFile]: ...

    async def stat(self, key: str) -> StoredFile | None: ...

    async def create(self, key: str, exclusive: bool = False) -> StoredFile:
        """Reserve an empty entry; with ``exclusive`` raise ``FileExistsError`` if ``key`` exists."""
        ...

    def open_write(self, key: str) -> AbstractAsyncContextManager[FileWriter]: ...

    def read(self, key: str) -> AsyncIterator[bytes]: ...

    async def delete(self, key: str) -> bool: ...
