"""Query-string handling for the paginated listing endpoints."""

from __future__ import annotations

from fastapi import Depends, Query

from batch_admin.api.dependencies import get_app_settings
from batch_admin.config import Settings
from batch_admin.core.pagination import PageRequest


def get_page_request(
    page: int | None = Query(None, description="Requested page index (0 based)"),
    size: int | None = Query(None, description="Number of elements per page"),
    settings: Settings = Depends(get_app_settings),
) -> PageRequest:
    """Build a validated ``PageRequest`` from ``page``/``size``, applying the configured default size."""
    return PageRequest.of(page, size, default_size=settings.default_page_size)
