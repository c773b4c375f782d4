"""Offset-based pagination for the listing endpoints.

A page request arrives as a 0-based ``page`` index and a positive ``size``;
services receive the derived ``(offset, limit)`` and hand their items and total
count back to :func:`paginate`. The count and the list are not fetched
atomically, so a page may reflect two slightly different repository states.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from batch_admin.core.errors import InvalidPageRequest
from batch_admin.core.models import Page

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 2000


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int

    @classmethod
    def of(cls, page: int | None = None, size: int | None = None, default_size: int = DEFAULT_PAGE_SIZE) -> PageRequest:
        """Validate a ``page``/``size`` pair, falling back to defaults when omitted.

        Raises ``InvalidPageRequest`` for a negative page or a non-positive size.
        """
        page = 0 if page is None else page
        size = default_size if size is None else size
        if page < 0:
            raise InvalidPageRequest(f"Page index must not be negative, got {page}")
        if size <= 0:
            raise InvalidPageRequest(f"Page size must be positive, got {size}")
        return cls(page=page, size=min(size, MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size


def check_window(offset: int, limit: int) -> None:
    if offset < 0:
        raise InvalidPageRequest(f"Offset must not be negative, got {offset}")
    if limit <= 0:
        raise InvalidPageRequest(f"Limit must be positive, got {limit}")


def paginate(offset: int, limit: int, total_count: int, items: Sequence[T]) -> Page[T]:
    """Build a page descriptor for ``items`` fetched at ``offset``/``limit``.

    ``items`` is truncated so the page never holds more than ``limit`` entries
    nor more than the ``total_count - offset`` entries the count admits.
    """
    check_window(offset, limit)
    if total_count < 0:
        raise InvalidPageRequest(f"Total count must not be negative, got {total_count}")

    remaining = max(0, total_count - offset)
    content = list(items[: min(limit, remaining)])
    return Page(
        content=content,
        page_number=offset // limit,
        page_size=limit,
        total_elements=total_count,
        total_pages=math.ceil(total_count / limit),
    )
