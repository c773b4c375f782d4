"""Shared fixtures and helpers for tests."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import cast

import pytest
from fastapi.testclient import TestClient

from batch_admin.api.app import create_app
from batch_admin.api.dependencies import get_file_publisher, get_file_store, get_job_repository
from batch_admin.config import Settings
from batch_admin.core.domain import JobDefinition
from batch_admin.core.models import FileInfo
from batch_admin.core.ports.files import FileStore
from batch_admin.core.ports.publisher import FilePublisher
from batch_admin.core.ports.repository import JobRepository
from batch_admin.db import InMemoryJobRepository
from batch_admin.storage import InMemoryFilePublisher, InMemoryFileStore

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).parent.parent

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Clock and in-memory adapters
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock shared by the repository and the services."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def job_definitions() -> list[JobDefinition]:
    return [
        JobDefinition(name="job1", step_names=("step1",)),
        JobDefinition(name="job2", incrementable=True),
        JobDefinition(name="importJob", required_parameters=("input",)),
        JobDefinition(name="oneShot", restartable=False),
        JobDefinition(name="hidden", launchable=False),
    ]


@pytest.fixture
def repository(job_definitions: list[JobDefinition], clock: FakeClock) -> InMemoryJobRepository:
    return InMemoryJobRepository(job_definitions, clock=clock)


@pytest.fixture
def file_store() -> InMemoryFileStore:
    return InMemoryFileStore()


@pytest.fixture
def publisher() -> InMemoryFilePublisher:
    return InMemoryFilePublisher()


@pytest.fixture
def published(publisher: InMemoryFilePublisher) -> list[str]:
    """Short paths of every file delivered to downstream consumers, in order."""
    seen: list[str] = []

    async def _record(file: FileInfo) -> None:
        seen.append(file.short_path)

    publisher.subscribe(_record)
    return seen


# ---------------------------------------------------------------------------
# HTTP client wired to the in-memory adapters
# ---------------------------------------------------------------------------


ClientFactory = Callable[..., TestClient]


@pytest.fixture
def make_client(
    repository: InMemoryJobRepository,
    file_store: InMemoryFileStore,
    publisher: InMemoryFilePublisher,
) -> ClientFactory:
    def _make(settings: Settings | None = None, **overrides: object) -> TestClient:
        app = create_app(settings or Settings())

        async def _repository() -> AsyncIterator[JobRepository]:
            yield cast(JobRepository, overrides.get("repository", repository))

        async def _store() -> AsyncIterator[FileStore]:
            yield cast(FileStore, overrides.get("file_store", file_store))

        async def _publisher() -> AsyncIterator[FilePublisher]:
            yield cast(FilePublisher, overrides.get("publisher", publisher))

        app.dependency_overrides[get_job_repository] = _repository
        app.dependency_overrides[get_file_store] = _store
        app.dependency_overrides[get_file_publisher] = _publisher
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client: ClientFactory) -> TestClient:
    return make_client()
