"""Tests for the FastAPI routes using the in-memory adapters."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from batch_admin.config import Settings
from batch_admin.core.domain import BatchStatus
from batch_admin.db import InMemoryJobRepository
from batch_admin.storage import InMemoryFileStore

ClientFactory = Callable[..., TestClient]


def _launch(client: TestClient, jobname: str = "job1", **body: Any) -> dict[str, Any]:
    resp = client.post("/executions", json={"jobname": jobname, **body})
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


def _href(body: dict[str, Any], rel: str) -> str | None:
    for link in body["links"]:
        if link["rel"] == rel:
            return str(link["href"])
    return None


class TestRootRoute:
    def test_root_returns_discovery(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["links"]["files"] == "/files"
        assert body["links"]["executions"] == "/executions"

    def test_prefix_is_applied(self, make_client: ClientFactory) -> None:
        client = make_client(Settings(api_prefix="/batch"))
        assert client.get("/").json()["links"]["configurations"] == "/batch/configurations"
        assert client.get("/batch/configurations").status_code == 200
        assert client.get("/configurations").status_code == 404


class TestHealthRoutes:
    def test_liveness_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/healthz/live")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_readiness_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/healthz/ready")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "repository": "up", "files": "up"}

    def test_readiness_reports_failing_store(self, make_client: ClientFactory) -> None:
        store = AsyncMock()
        store.stat.side_effect = OSError("disk gone")
        client = make_client(file_store=store)

        resp = client.get("/healthz/ready")

        assert resp.status_code == 503
        assert resp.json()["files"] == "down"

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        resp = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"
        assert client.get("/health").headers["X-Request-ID"]


class TestFilesResource:
    def test_lists_files_in_stable_order(self, client: TestClient, file_store: InMemoryFileStore) -> None:
        for key in ("c.txt", "a.txt", "b.txt"):
            file_store.put(key, b"x")

        resp = client.get("/files")

        assert resp.status_code == 200
        body = resp.json()
        assert [f["shortPath"] for f in body["content"]] == ["a.txt", "b.txt", "c.txt"]
        assert body["page"] == {"number": 0, "size": 20, "totalElements": 3, "totalPages": 1}
        assert _href(body["content"][0], "self") == "/files/a.txt"
        assert _href(body, "next") is None

    def test_paging_links(self, client: TestClient, file_store: InMemoryFileStore) -> None:
        for key in ("a", "b", "c"):
            file_store.put(key)

        body = client.get("/files", params={"page": 0, "size": 2}).json()
        assert len(body["content"]) == 2
        assert _href(body, "next") == "/files?page=1&size=2"
        assert _href(body, "prev") is None

        second = client.get(_href(body, "next")).json()  # type: ignore[arg-type]
        assert [f["shortPath"] for f in second["content"]] == ["c"]
        assert _href(second, "prev") == "/files?page=0&size=2"

    def test_invalid_page_size(self, client: TestClient) -> None:
        resp = client.get("/files", params={"size": 0})
        assert resp.status_code == 400
        assert resp.json()["error"] == "page.invalid"

    def test_non_numeric_page_is_bad_request(self, client: TestClient) -> None:
        resp = client.get("/files", params={"page": "abc"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid.request"

    def test_get_single_file(self, client: TestClient, file_store: InMemoryFileStore) -> None:
        file_store.put("in/a.csv", b"x")
        resp = client.get("/files/in/a.csv")
        assert resp.status_code == 200
        assert resp.json()["path"] == "memory:/in/a.csv"

    def test_get_missing_file(self, client: TestClient) -> None:
        resp = client.get("/files/nope.txt")
        assert resp.status_code == 404
        assert resp.json() == {"error": "file.not.found", "message": "File 'nope.txt' not found", "status": 404}

    def test_delete_by_pattern(self, client: TestClient, file_store: InMemoryFileStore) -> None:
        for key in ("in/a.csv", "in/b.csv", "in/c.csv", "in/d.txt"):
            file_store.put(key)

        resp = client.delete("/files/in/*.csv")

        assert resp.status_code == 200
        body = resp.json()
        assert body["deleteCount"] == 3
        assert body["path"] == "in/*.csv"
        assert list(file_store.entries) == ["in/d.txt"]

    def test_upload_form(self, client: TestClient, file_store: InMemoryFileStore, published: list[str]) -> None:
        resp = client.post("/files", data={"path": "input"}, files={"file": ("data.csv", b"a,b\n", "text/csv")})

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["shortPath"] == "input/data.csv"
        assert _href(body, "self") == "/files/input/data.csv"
        assert file_store.entries["input/data.csv"].content == b"a,b\n"
        assert published == ["input/data.csv"]

    def test_upload_to_path(self, client: TestClient, file_store: InMemoryFileStore) -> None:
        resp = client.post("/files/in/nested", files={"file": ("data.csv", b"x", "text/csv")})
        assert resp.status_code == 200, resp.text
        assert "in/nested/data.csv" in file_store.entries

    def test_empty_upload_is_rejected(
        self, client: TestClient, file_store: InMemoryFileStore, published: list[str]
    ) -> None:
        resp = client.post("/files", data={"path": "input"}, files={"file": ("data.csv", b"", "text/csv")})

        assert resp.status_code == 400
        assert resp.json()["error"] == "file.upload.empty"
        assert file_store.entries == {}
        assert published == []

    def test_downstream_failure(self, make_client: ClientFactory, file_store: InMemoryFileStore) -> None:
        publisher = AsyncMock()
        publisher.publish.side_effect = RuntimeError("consumer down")
        client = make_client(publisher=publisher)

        resp = client.post("/files", data={"path": "input"}, files={"file": ("data.csv", b"x", "text/csv")})

        assert resp.status_code == 502
        assert resp.json()["error"] == "file.upload.failed.downstream"

    def test_unique_paths_conflict(self, make_client: ClientFactory, file_store: InMemoryFileStore) -> None:
        client = make_client(Settings(unique_paths=True))
        file_store.put("input/data.csv", b"old")

        resp = client.post("/files", data={"path": "input"}, files={"file": ("data.csv", b"new", "text/csv")})

        assert resp.status_code == 409
        assert file_store.entries["input/data.csv"].content == b"old"


class TestConfigurationsResource:
    def test_lists_jobs(self, client: TestClient) -> None:
        body = client.get("/configurations", params={"size": 2}).json()
        assert [j["name"] for j in body["content"]] == ["hidden", "importJob"]
        assert body["page"]["totalElements"] == 5
        assert body["page"]["totalPages"] == 3

    def test_job_detail(self, client: TestClient) -> None:
        _launch(client, jobparameters="foo=bar")

        resp = client.get("/configurations/job1")

        assert resp.status_code == 200
        body = resp.json()
        assert body["executionCount"] == 1
        assert body["launchable"] is True
        assert body["lastExecution"]["running"] is True
        assert len(body["jobInstances"]) == 1
        assert _href(body, "executions") == "/executions?jobname=job1"

    def test_job_detail_instance_window(self, client: TestClient, repository: InMemoryJobRepository) -> None:
        for n in range(3):
            repository.add_instance("job1", {"n": str(n)})

        body = client.get("/configurations/job1", params={"startJobInstance": 1, "pageSize": 1}).json()

        assert [i["id"] for i in body["jobInstances"]] == [2]

    def test_unknown_job(self, client: TestClient) -> None:
        resp = client.get("/configurations/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "job.not.found"


class TestExecutionsResource:
    def test_launch(self, client: TestClient) -> None:
        body = _launch(client, parameters={"foo": "bar"})

        assert body["jobName"] == "job1"
        assert body["parameters"] == {"foo": "bar"}
        assert body["exitStatus"] is None
        assert body["running"] is True
        assert _href(body, "self") == f"/executions/{body['id']}"
        assert _href(body, "steps") == f"/executions/{body['id']}/steps"

    def test_launch_merges_parameter_forms(self, client: TestClient) -> None:
        body = _launch(client, jobparameters="foo=1,bar=baz", parameters={"bar": "override"})
        assert body["parameters"] == {"foo": "1", "bar": "override"}

    def test_launch_while_running_conflicts(self, client: TestClient, repository: InMemoryJobRepository) -> None:
        _launch(client, parameters={"foo": "bar"})

        resp = client.post("/executions", json={"jobname": "job1", "parameters": {"foo": "bar"}})

        assert resp.status_code == 409
        assert resp.json()["error"] == "job.already.running"
        assert len(repository.executions) == 1

    def test_launch_unknown_job(self, client: TestClient) -> None:
        resp = client.post("/executions", json={"jobname": "nope"})
        assert resp.status_code == 404

    def test_launch_malformed_parameters(self, client: TestClient) -> None:
        resp = client.post("/executions", json={"jobname": "job1", "jobparameters": "foo"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "job.parameters.invalid"

    def test_launch_without_jobname(self, client: TestClient) -> None:
        resp = client.post("/executions", json={})
        assert resp.status_code == 400

    def test_list_and_filter(self, client: TestClient) -> None:
        first = _launch(client, parameters={"n": "1"})
        second = _launch(client, jobname="job2")

        everything = client.get("/executions").json()
        assert [e["id"] for e in everything["content"]] == [second["id"], first["id"]]

        job1 = client.get("/executions", params={"jobname": "job1"}).json()
        assert [e["id"] for e in job1["content"]] == [first["id"]]
        assert _href(job1, "self") == "/executions?jobname=job1&page=0&size=20"

    def test_executions_of_instance(self, client: TestClient) -> None:
        first = _launch(client)

        resp = client.get("/executions", params={"jobname": "job1", "jobinstanceid": first["jobInstanceId"]})

        assert resp.status_code == 200
        assert [e["id"] for e in resp.json()] == [first["id"]]

    def test_instance_filter_requires_jobname(self, client: TestClient) -> None:
        resp = client.get("/executions", params={"jobinstanceid": 1})
        assert resp.status_code == 400

    def test_stop_one(self, client: TestClient) -> None:
        execution = _launch(client)

        resp = client.put(f"/executions/{execution['id']}", params={"stop": "true"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "STOPPING"

    def test_stop_all(self, client: TestClient) -> None:
        _launch(client, parameters={"n": "1"})
        _launch(client, parameters={"n": "2"})

        resp = client.put("/executions", params={"stop": "true"})

        assert resp.status_code == 200
        assert resp.json() == {"stopCount": 2}

    def test_stop_all_requires_flag(self, client: TestClient) -> None:
        assert client.put("/executions").status_code == 400

    def test_restart(self, client: TestClient, repository: InMemoryJobRepository) -> None:
        execution = _launch(client)
        repository.finish(execution["id"], BatchStatus.FAILED)

        resp = client.put(f"/executions/{execution['id']}", params={"restart": "true"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] != execution["id"]
        assert body["jobInstanceId"] == execution["jobInstanceId"]

    def test_restart_running_conflicts(self, client: TestClient) -> None:
        execution = _launch(client)
        resp = client.put(f"/executions/{execution['id']}", params={"restart": "true"})
        assert resp.status_code == 409

    def test_second_restart_of_same_instance_conflicts(
        self, client: TestClient, repository: InMemoryJobRepository
    ) -> None:
        execution = _launch(client)
        repository.finish(execution["id"], BatchStatus.FAILED)
        assert client.put(f"/executions/{execution['id']}", params={"restart": "true"}).status_code == 201

        resp = client.put(f"/executions/{execution['id']}", params={"restart": "true"})

        assert resp.status_code == 409
        assert len(repository.executions) == 2

    def test_control_requires_exactly_one_action(self, client: TestClient) -> None:
        execution = _launch(client)
        assert client.put(f"/executions/{execution['id']}").status_code == 400
        resp = client.put(f"/executions/{execution['id']}", params={"stop": "true", "restart": "true"})
        assert resp.status_code == 400

    def test_missing_execution(self, client: TestClient) -> None:
        resp = client.get("/executions/99")
        assert resp.status_code == 404
        assert resp.json()["error"] == "job.execution.not.found"


class TestStepsResource:
    def test_steps_and_progress(self, client: TestClient, repository: InMemoryJobRepository) -> None:
        execution = _launch(client)
        step = repository.add_step(execution["id"], "step1", read_count=4)

        steps = client.get(f"/executions/{execution['id']}/steps").json()
        assert [s["name"] for s in steps] == ["step1"]
        assert _href(steps[0], "progress") == f"/executions/{execution['id']}/steps/{step.id}/progress"

        detail = client.get(f"/executions/{execution['id']}/steps/{step.id}").json()
        assert detail["readCount"] == 4

        progress = client.get(f"/executions/{execution['id']}/steps/{step.id}/progress").json()
        assert progress["percentComplete"] is None
        assert progress["current"]["id"] == step.id
        assert _href(progress, "self") == f"/executions/{execution['id']}/steps/{step.id}/progress"

    def test_missing_step(self, client: TestClient) -> None:
        execution = _launch(client)
        resp = client.get(f"/executions/{execution['id']}/steps/99")
        assert resp.status_code == 404


class TestInstancesResource:
    def test_lists_instances_of_job(self, client: TestClient) -> None:
        _launch(client, parameters={"n": "1"})
        _launch(client, parameters={"n": "2"})

        body = client.get("/instances", params={"jobname": "job1"}).json()

        assert body["page"]["totalElements"] == 2
        assert [len(i["executions"]) for i in body["content"]] == [1, 1]
        executions_href = _href(body["content"][0], "executions")
        assert executions_href is not None
        assert executions_href.startswith("/executions?jobinstanceid=")

    def test_jobname_is_required(self, client: TestClient) -> None:
        assert client.get("/instances").status_code == 400

    def test_instance_detail(self, client: TestClient) -> None:
        execution = _launch(client)
        body = client.get(f"/instances/{execution['jobInstanceId']}").json()
        assert body["jobName"] == "job1"
        assert [e["id"] for e in body["executions"]] == [execution["id"]]

    def test_missing_instance(self, client: TestClient) -> None:
        assert client.get("/instances/99").status_code == 404
