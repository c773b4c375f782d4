"""Hypermedia link assembly for entities and pages.

Each entity kind has one registered identifier function; the self link of an
entity is ``{base_route}/{identifier}``. Relation links (steps of an execution,
progress of a step, executions of a job) are derived from the same routes.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import singledispatch
from typing import Any, TypeVar
from urllib.parse import quote, urlencode

from batch_admin.core.models import (
    FileInfo,
    JobExecutionInfo,
    JobInstanceInfo,
    JobSummary,
    Link,
    LinkedPage,
    LinkedResource,
    Page,
    StepExecutionInfo,
    StepExecutionProgressInfo,
)

T = TypeVar("T")


@singledispatch
def identifier(entity: Any) -> str:
    raise TypeError(f"No link identifier registered for {type(entity).__name__}")


@identifier.register(FileInfo)
def _file_identifier(entity: FileInfo) -> str:
    return quote(entity.short_path, safe="/")


@identifier.register(JobSummary)
def _job_identifier(entity: JobSummary) -> str:
    return quote(entity.name, safe="")


@identifier.register(JobInstanceInfo)
def _instance_identifier(entity: JobInstanceInfo) -> str:
    return str(entity.id)


@identifier.register(JobExecutionInfo)
def _execution_identifier(entity: JobExecutionInfo) -> str:
    return str(entity.id)


@identifier.register(StepExecutionInfo)
def _step_identifier(entity: StepExecutionInfo) -> str:
    return f"{entity.job_execution_id}/steps/{entity.id}"


@identifier.register(StepExecutionProgressInfo)
def _progress_identifier(entity: StepExecutionProgressInfo) -> str:
    return f"{_step_identifier(entity.current)}/progress"


@singledispatch
def relations(entity: Any, self_href: str, root: str) -> list[Link]:
    return []


@relations.register(JobSummary)
def _job_relations(entity: JobSummary, self_href: str, root: str) -> list[Link]:
    query = urlencode({"jobname": entity.name})
    return [
        Link("executions", f"{root}/executions?{query}"),
        Link("instances", f"{root}/instances?{query}"),
    ]


@relations.register(JobInstanceInfo)
def _instance_relations(entity: JobInstanceInfo, self_href: str, root: str) -> list[Link]:
    query = urlencode({"jobinstanceid": entity.id, "jobname": entity.job_name})
    return [Link("executions", f"{root}/executions?{query}")]


@relations.register(JobExecutionInfo)
def _execution_relations(entity: JobExecutionInfo, self_href: str, root: str) -> list[Link]:
    return [Link("steps", f"{self_href}/steps")]


@relations.register(StepExecutionInfo)
def _step_relations(entity: StepExecutionInfo, self_href: str, root: str) -> list[Link]:
    return [Link("progress", f"{self_href}/progress")]


def link(entity: T, base_route: str, root: str = "") -> LinkedResource[T]:
    """Attach a ``self`` link (and any relation links) to ``entity``."""
    self_href = f"{base_route.rstrip('/')}/{identifier(entity)}"
    links = [Link("self", self_href), *relations(entity, self_href, root)]
    return LinkedResource(entity=entity, links=links)


def page_href(base_route: str, page: int, size: int, query: Mapping[str, Any] | None = None) -> str:
    params: dict[str, Any] = dict(query or {})
    params["page"] = page
    params["size"] = size
    return f"{base_route}?{urlencode(params)}"


def link_page(
    page: Page[T],
    base_route: str,
    query: Mapping[str, Any] | None = None,
    root: str = "",
    entity_route: str | None = None,
) -> LinkedPage[T]:
    """Link every entity of ``page`` and add page-level navigation links.

    ``entity_route`` overrides the route used for entity self links when it
    differs from the collection route (e.g. steps listed under an execution).
    """
    item_route = entity_route or base_route
    content = [link(item, item_route, root) for item in page.content]
    links = [Link("self", page_href(base_route, page.page_number, page.page_size, query))]
    if page.page_number + 1 < page.total_pages:
        links.append(Link("next", page_href(base_route, page.page_number + 1, page.page_size, query)))
    if page.page_number > 0:
        links.append(Link("prev", page_href(base_route, page.page_number - 1, page.page_size, query)))
    linked = Page(
        content=content,
        page_number=page.page_number,
        page_size=page.page_size,
        total_elements=page.total_elements,
        total_pages=page.total_pages,
    )
    return LinkedPage(page=linked, links=links)


def link_all(entities: list[T], base_route: str, root: str = "") -> list[LinkedResource[T]]:
    return [link(entity, base_route, root) for entity in entities]
