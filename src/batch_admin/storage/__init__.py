from batch_admin.storage.local import LocalFileStore
from batch_admin.storage.memory import InMemoryFileEntry, InMemoryFileStore
from batch_admin.storage.publisher import InMemoryFilePublisher

__all__ = [
    "InMemoryFileEntry",
    "InMemoryFilePublisher",
    "InMemoryFileStore",
    "LocalFileStore",
]
