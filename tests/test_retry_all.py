from fastapi.testclient import TestClient

from tests.conftest import DummyWorkerClient, Seeder


def test_retry_all_counts_upstream_failures_as_queued(
    client: TestClient, seed: Seeder, worker: DummyWorkerClient
) -> None:
    for file_id in ("F1", "F2", "F3"):
        seed.file(file_id)
    seed.job("F1", status="failed", attempts=3)
    seed.job("F2", status="failed", attempts=1)
    seed.job("F3", status="queued")
    seed.file("F4")
    seed.job("F4", status="completed")
    worker.fail_for.add("F2")

    response = client.post("/v1/ingestion/retry-all", json={})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert len(body["errors"]) == 1
    assert body["errors"][0]["file_id"] == "F2"
    assert "HTTP 500" in body["errors"][0]["message"]

    for file_id in ("F1", "F2", "F3"):
        job = seed.get_job(file_id)
        assert job is not None
        assert job.status == "queued"
        assert job.attempts == 0

    completed = seed.get_job("F4")
    assert completed is not None
    assert completed.status == "completed"
    assert sorted(payload["file_id"] for payload in worker.payloads) == ["F1", "F2", "F3"]


def test_retry_all_without_body(client: TestClient, seed: Seeder) -> None:
    seed.file("F1")
    seed.job("F1", status="failed")

    response = client.post("/v1/ingestion/retry-all")

    assert response.status_code == 200
    assert response.json() == {"count": 1, "errors": []}


def test_retry_all_scoped_to_app(client: TestClient, seed: Seeder, worker: DummyWorkerClient) -> None:
    seed.file("F-legal", app_id="legal")
    seed.job("F-legal", status="failed")
    seed.file("F-hr", app_id="hr")
    seed.job("F-hr", status="failed")

    response = client.post("/v1/ingestion/retry-all", json={"app_id": "hr"})

    assert response.json() == {"count": 1, "errors": []}
    assert [payload["file_id"] for payload in worker.payloads] == ["F-hr"]
    untouched = seed.get_job("F-legal")
    assert untouched is not None
    assert untouched.status == "failed"


def test_retry_all_scoped_to_org(client: TestClient, seed: Seeder, worker: DummyWorkerClient) -> None:
    seed.file("F1", org_id="org-1")
    seed.job("F1", status="queued")
    seed.file("F2", org_id="org-2")
    seed.job("F2", status="queued")

    response = client.post("/v1/ingestion/retry-all", json={"org_id": "org-2"})

    assert response.json()["count"] == 1
    assert [payload["file_id"] for payload in worker.payloads] == ["F2"]


def test_retry_all_reports_jobs_without_file(client: TestClient, seed: Seeder, worker: DummyWorkerClient) -> None:
    seed.file("F1")
    seed.job("F1", status="failed")
    dangling = seed.job("F-gone", status="failed", attempts=2)

    response = client.post("/v1/ingestion/retry-all", json={})

    body = response.json()
    assert body["count"] == 1
    assert body["errors"] == [
        {"job_id": dangling.id, "file_id": "F-gone", "message": "File F-gone not found"},
    ]
    job = seed.get_job("F-gone")
    assert job is not None
    assert job.status == "failed"
    assert job.attempts == 2
    assert [payload["file_id"] for payload in worker.payloads] == ["F1"]


def test_retry_all_with_nothing_to_do(client: TestClient, seed: Seeder, worker: DummyWorkerClient) -> None:
    seed.file("F1")
    seed.job("F1", status="completed")

    response = client.post("/v1/ingestion/retry-all", json={})

    assert response.json() == {"count": 0, "errors": []}
    assert worker.calls == []


def test_retry_all_empty_filters_cover_everything(
    client: TestClient, seed: Seeder, worker: DummyWorkerClient
) -> None:
    seed.file("F1", app_id="legal")
    seed.job("F1", status="failed")
    seed.file("F2", app_id="hr")
    seed.job("F2", status="queued")

    response = client.post("/v1/ingestion/retry-all", json={"app_id": "", "org_id": ""})

    assert response.json() == {"count": 2, "errors": []}
    assert sorted(payload["file_id"] for payload in worker.payloads) == ["F1", "F2"]
