from typing import Protocol

from batch_admin.core.models import FileInfo


class FilePublisher(Protocol):
    async def publish(self, file: FileInfo) -> bool: ...
