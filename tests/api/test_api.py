import json

import pytest
from fastapi.testclient import TestClient

from api.main import app
from conftest import (
    CONTRACT_TEXT,
    LEGAL_ANALYSIS_PAYLOAD,
    OPTIMIZATION_PAYLOAD,
    TRANSLATION_PAYLOAD,
    DummyLLM,
    as_reply,
    happy_replies,
)
from persistence.memory_store import MemoryStore
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.steps.executor import StepExecutor
from services.analysis import get_orchestrator


@pytest.fixture
def llm() -> DummyLLM:
    return DummyLLM()


@pytest.fixture
def client(llm: DummyLLM):
    orchestrator = AnalysisOrchestrator(StepExecutor(llm), MemoryStore())
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _events(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def _start(client: TestClient, **payload) -> tuple[str, list[dict]]:
    body = {"document_text": CONTRACT_TEXT, "primary_framework": "china", **payload}
    response = client.post("/runs", json=body)
    assert response.status_code == 200
    events = _events(response)
    return response.headers["x-run-id"], events


def test_run_streams_ndjson(client: TestClient, llm: DummyLLM) -> None:
    llm.queue(*happy_replies())

    response = client.post("/runs", json={"document_text": CONTRACT_TEXT})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    assert response.headers["cache-control"] == "no-cache"
    events = _events(response)
    assert [event["type"] for event in events].count("step_result") == 3
    assert events[0]["run_id"] == response.headers["x-run-id"]
    complete = events[-1]
    assert complete["type"] == "complete"
    assert complete["result"]["completed_steps"] == 3
    assert complete["result"]["can_retry"] == []
    assert complete["summary"]["analysis_status"] == "completed"


@pytest.mark.parametrize(
    "payload",
    [
        {"document_text": "   "},
        {"document_text": CONTRACT_TEXT, "primary_framework": "china", "secondary_framework": "china"},
        {"document_text": CONTRACT_TEXT, "primary_framework": "mars"},
        {"document_text": CONTRACT_TEXT, "target_language": "xx"},
        {"document_text": CONTRACT_TEXT, "unexpected": True},
    ],
)
def test_run_rejects_invalid_requests(client: TestClient, llm: DummyLLM, payload) -> None:
    response = client.post("/runs", json=payload)

    assert response.status_code == 422
    assert llm.invocations == 0


def test_failed_step_then_retry(client: TestClient, llm: DummyLLM) -> None:
    llm.queue("模型输出无法解析")
    run_id, events = _start(client)

    result = events[-1]["result"]
    assert result["completed_steps"] == 0
    assert result["failed_steps"] == 1
    assert result["can_retry"] == ["legal_analysis"]

    llm.queue(ConnectionError("down"))
    failed = client.post(f"/runs/{run_id}/retry", json={"step": "legal_analysis"})
    assert failed.status_code == 200
    assert failed.json()["success"] is False
    assert failed.json()["error"]["reason"] == "transport_error"

    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    retried = client.post(f"/runs/{run_id}/retry", json={"step": "legal_analysis"})
    assert retried.status_code == 200
    assert retried.json()["success"] is True
    assert retried.json()["result"]["compliance_score"] == 82

    snapshot = client.get(f"/runs/{run_id}").json()
    assert snapshot["completed_steps"] == 1
    assert snapshot["failed_steps"] == 0
    assert snapshot["can_retry"] == []

    llm.queue(as_reply(OPTIMIZATION_PAYLOAD), as_reply(TRANSLATION_PAYLOAD))
    resumed = client.post(f"/runs/{run_id}/resume")
    assert resumed.status_code == 200
    assert _events(resumed)[-1]["result"]["status"] == "completed"


def test_retry_rejections(client: TestClient, llm: DummyLLM) -> None:
    llm.queue("not json")
    run_id, _ = _start(client)

    blocked = client.post(f"/runs/{run_id}/retry", json={"step": "optimization"})
    assert blocked.status_code == 409

    unknown_step = client.post(f"/runs/{run_id}/retry", json={"step": "summarize"})
    assert unknown_step.status_code == 404

    unknown_run = client.post("/runs/run_missing/retry", json={"step": "legal_analysis"})
    assert unknown_run.status_code == 404

    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    client.post(f"/runs/{run_id}/retry", json={"step": "legal_analysis"})
    not_failed = client.post(f"/runs/{run_id}/retry", json={"step": "legal_analysis"})
    assert not_failed.status_code == 409


def test_history_comparison_report_and_delete(client: TestClient, llm: DummyLLM) -> None:
    llm.queue(*happy_replies())
    run_id, _ = _start(client, document_name="lease.txt")

    history = client.get("/runs").json()["items"]
    assert [item["id"] for item in history] == [run_id]
    assert history[0]["compliance_score"] == 82
    assert history[0]["modification_count"] == 1

    comparison = client.get(f"/runs/{run_id}/comparison")
    assert comparison.status_code == 200
    assert comparison.json()["mode"] == "modifications"
    assert 'data-modification="0"' in comparison.json()["after_html"]

    record = client.get(f"/runs/{run_id}/modifications/0")
    assert record.status_code == 200
    assert record.json()["reason"] == "明确付款期限"
    assert client.get(f"/runs/{run_id}/modifications/5").status_code == 404

    report = client.get(f"/runs/{run_id}/report")
    assert report.status_code == 200
    assert report.headers["content-type"].startswith("text/html")
    assert "lease.txt" in report.text

    stats = client.get("/statistics").json()
    assert stats["total"] == 1
    assert stats["risk_distribution"] == {"medium": 1}

    assert client.delete(f"/runs/{run_id}").status_code == 204
    assert client.get(f"/runs/{run_id}").status_code == 404
    assert client.delete(f"/runs/{run_id}").status_code == 404


def test_comparison_requires_optimization(client: TestClient, llm: DummyLLM) -> None:
    llm.queue("not json")
    run_id, _ = _start(client)

    assert client.get(f"/runs/{run_id}/comparison").status_code == 404


def test_upload_plain_text(client: TestClient, llm: DummyLLM) -> None:
    llm.queue(*happy_replies())

    response = client.post(
        "/runs/upload",
        files={"file": ("lease.txt", CONTRACT_TEXT.encode("gb18030"), "text/plain")},
        data={"primary_framework": "china", "target_language": "en"},
    )

    assert response.status_code == 200
    complete = _events(response)[-1]
    assert complete["result"]["document_name"] == "lease.txt"
    assert complete["result"]["document_text"] == CONTRACT_TEXT


def test_upload_rejects_binary_documents(client: TestClient) -> None:
    response = client.post(
        "/runs/upload",
        files={"file": ("lease.pdf", b"%PDF-1.7", "application/pdf")},
    )

    assert response.status_code == 400


def test_diff_endpoint(client: TestClient) -> None:
    response = client.post("/diff", json={"original": "甲方 付款", "optimized": "甲方 支付"})

    assert response.status_code == 200
    body = response.json()
    assert '<span class="highlight-danger">付款</span>' in body["before_html"]
    assert '<span class="highlight-success">支付</span>' in body["after_html"]
    assert "highlight-danger" in body["html"] and "highlight-success" in body["html"]

    same = client.post("/diff", json={"original": "相同", "optimized": "相同"}).json()
    assert same["before_html"] == same["after_html"] == "相同"
