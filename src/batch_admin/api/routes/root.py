from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from batch_admin.api.dependencies import get_app_settings
from batch_admin.config import Settings

router = APIRouter()


@router.get("/")
async def root(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    """Root discovery endpoint listing the collection routes."""
    prefix = settings.api_prefix
    return {
        "meta": {
            "title": "Batch Admin API",
            "description": "Browse and control batch jobs and manage staged batch files.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "files": f"{prefix}/files",
            "configurations": f"{prefix}/configurations",
            "executions": f"{prefix}/executions",
            "instances": f"{prefix}/instances",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
