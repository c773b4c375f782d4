from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from batch_admin.core.models import FileInfo

logger = logging.getLogger(__name__)

Subscriber = Callable[[FileInfo], Coroutine[Any, Any, None]]


class InMemoryFilePublisher:
    """Deliver published files to subscriber callbacks, once per file.

    A file is identified by its path and timestamp, so re-publishing the same
    ``FileInfo`` is a no-op while a re-upload of the same path is delivered.
    A publish that is still delivering also counts as published; a failed
    delivery is forgotten so it can be retried.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._published: set[tuple[str, str]] = set()
        self._pending: set[tuple[str, str]] = set()

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    async def publish(self, file: FileInfo) -> bool:
        key = (file.path, file.timestamp)
        if key in self._published or key in self._pending:
            logger.debug("File %s already published", file.path)
            return False
        self._pending.add(key)
        try:
            for subscriber in self._subscribers:
                await subscriber(file)
        finally:
            self._pending.discard(key)
        self._published.add(key)
        logger.info("Published %s to %d subscriber(s)", file.path, len(self._subscribers))
        return True
