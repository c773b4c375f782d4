from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from batch_admin.api.dependencies import shutdown_dependencies

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    logger.info("Batch admin API starting (files: %s, prefix: %r)", settings.files_dir, settings.api_prefix)
    yield
    await shutdown_dependencies()
