from __future__ import annotations

from fastapi import FastAPI

from batch_admin.api.errors import register_exception_handlers
from batch_admin.api.lifespan import lifespan
from batch_admin.api.middleware import RequestLoggingMiddleware
from batch_admin.api.routes.configurations import router as configurations_router
from batch_admin.api.routes.executions import router as executions_router
from batch_admin.api.routes.files import router as files_router
from batch_admin.api.routes.health import router as health_router
from batch_admin.api.routes.instances import router as instances_router
from batch_admin.api.routes.root import router as root_router
from batch_admin.config import Settings, get_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Batch Admin API",
        description="Browse and control batch jobs and manage staged batch files.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    for router in (files_router, configurations_router, executions_router, instances_router):
        app.include_router(router, prefix=settings.api_prefix)

    return app
