from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from doccraft.application import get_workflow_service, reset_workflow_state
from doccraft.core.settings import Settings
from doccraft.infrastructure import GitHubContentFetcher, configure_github_fetcher
from doccraft.infrastructure.generative import GenerativeServiceError

SOURCE = "Step one, login to the portal."


@pytest.fixture(autouse=True)
def reset_state():
    reset_workflow_state()
    yield
    reset_workflow_state()


@pytest.fixture()
def client(fake_service):
    from doccraft.app import create_app

    settings = Settings(call_timeout=1.0, advisory_timeout=1.0, recommend_debounce=0.01)
    app = create_app(settings)
    get_workflow_service().configure(service=fake_service)
    with TestClient(app) as test_client:
        yield test_client


def _create(client: TestClient) -> str:
    response = client.post("/api/workflows")
    assert response.status_code == 200
    return response.json()["workflow_id"]


def _to_editing(client: TestClient, workflow_id: str) -> dict:
    client.put(f"/api/workflows/{workflow_id}/content", json={"content": SOURCE})
    client.post(f"/api/workflows/{workflow_id}/analyze")
    client.put(f"/api/workflows/{workflow_id}/questions/q1/answer", json={"answer": "Admins"})
    response = client.post(f"/api/workflows/{workflow_id}/generate")
    assert response.status_code == 200
    return response.json()


def test_end_to_end_workflow(client, fake_service):
    # 1. create workflow
    workflow_id = _create(client)
    snapshot = client.get(f"/api/workflows/{workflow_id}").json()
    assert snapshot["stage"] == "upload"
    assert snapshot["config"]["doc_type"] == "user-guide"

    # 2. configure and provide content
    response = client.put(
        f"/api/workflows/{workflow_id}/config",
        json={"doc_type": "quick-start", "audience": "technical", "tone": "formal"},
    )
    assert response.status_code == 200
    assert response.json()["config"]["tone"] == "formal"

    response = client.put(f"/api/workflows/{workflow_id}/content", json={"content": SOURCE, "file_names": ["notes.txt"]})
    assert response.json()["file_names"] == ["notes.txt"]

    # 3. analysis
    response = client.post(f"/api/workflows/{workflow_id}/analyze")
    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "questions"
    assert [q["id"] for q in body["questions"]] == ["q1", "q2"]

    # 4. answer and skip
    client.put(f"/api/workflows/{workflow_id}/questions/q1/answer", json={"answer": "Admins"})
    response = client.post(f"/api/workflows/{workflow_id}/questions/q2/skip")
    assert response.json()["completion"] == {"answered": 2, "total": 2}

    # 5. generation
    response = client.post(f"/api/workflows/{workflow_id}/generate")
    body = response.json()
    assert body["stage"] == "editing"
    assert body["document"] == fake_service.document

    # 6. compliance
    response = client.post(f"/api/workflows/{workflow_id}/compliance")
    assert response.status_code == 200
    report = response.json()
    assert [item["severity"] for item in report["items"]] == ["error", "warning", "suggestion"]
    assert report["counts"] == {"error": 1, "warning": 1, "suggestion": 1}

    issue_id = report["items"][0]["id"]
    response = client.post(f"/api/workflows/{workflow_id}/compliance/{issue_id}/expand")
    assert response.json()["items"][0]["expanded"] is True

    response = client.post(f"/api/workflows/{workflow_id}/compliance/{issue_id}/dismiss")
    assert len(response.json()["items"]) == 2

    response = client.post(f"/api/workflows/{workflow_id}/compliance/dismiss-all")
    assert response.json()["items"] == []
    assert client.get(f"/api/workflows/{workflow_id}/compliance").json()["total"] == 3

    # 7. history
    response = client.get("/api/history")
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["input_summary"] == SOURCE
    assert items[0]["config"]["doc_type"] == "quick-start"


def test_unknown_workflow_returns_404(client):
    assert client.get("/api/workflows/missing").status_code == 404
    assert client.post("/api/workflows/missing/analyze").status_code == 404


def test_invalid_config_returns_400(client):
    workflow_id = _create(client)

    response = client.put(f"/api/workflows/{workflow_id}/config", json={"doc_type": "novel"})

    assert response.status_code == 400


def test_analyze_without_content_returns_400(client, fake_service):
    workflow_id = _create(client)

    response = client.post(f"/api/workflows/{workflow_id}/analyze")

    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload or paste some content first."
    assert fake_service.called("analyze") == []


def test_analysis_failure_is_reported_in_state(client, fake_service):
    fake_service.failures["analyze"] = GenerativeServiceError("analysis response is not a list of questions")
    workflow_id = _create(client)
    client.put(f"/api/workflows/{workflow_id}/content", json={"content": SOURCE})

    response = client.post(f"/api/workflows/{workflow_id}/analyze")

    assert response.status_code == 200
    assert response.json()["stage"] == "upload"
    assert response.json()["error"] == "analysis response is not a list of questions"


def test_out_of_stage_operations_return_409(client):
    workflow_id = _create(client)

    response = client.post(f"/api/workflows/{workflow_id}/refine", json={"selected_text": "x", "action": "simplify"})
    assert response.status_code == 409
    assert response.json()["stage"] == "upload"

    assert client.post(f"/api/workflows/{workflow_id}/generate").status_code == 409


def test_unknown_question_returns_404(client):
    workflow_id = _create(client)
    client.put(f"/api/workflows/{workflow_id}/content", json={"content": SOURCE})
    client.post(f"/api/workflows/{workflow_id}/analyze")

    response = client.put(f"/api/workflows/{workflow_id}/questions/q9/answer", json={"answer": "x"})

    assert response.status_code == 404


def test_refine_and_diagram(client, fake_service):
    workflow_id = _create(client)
    _to_editing(client, workflow_id)

    response = client.post(f"/api/workflows/{workflow_id}/refine", json={"selected_text": "Open the portal.", "action": "shout"})
    assert response.status_code == 400

    response = client.post(
        f"/api/workflows/{workflow_id}/refine",
        json={"selected_text": "Please utilize the dashboard to add a device.", "action": "concise"},
    )
    assert response.status_code == 200
    assert response.json()["document"].endswith(fake_service.refined)

    response = client.post(f"/api/workflows/{workflow_id}/diagram", json={"diagram_type": "flowchart"})
    assert response.status_code == 200
    assert response.json()["mermaid"] == fake_service.mermaid


def test_diagram_failure_returns_502(client, fake_service):
    fake_service.failures["generate_diagram"] = GenerativeServiceError("No diagram generated")
    workflow_id = _create(client)
    _to_editing(client, workflow_id)

    response = client.post(f"/api/workflows/{workflow_id}/diagram", json={})

    assert response.status_code == 502
    assert response.json()["detail"] == "No diagram generated"


def test_reset_and_restore(client, fake_service):
    workflow_id = _create(client)
    _to_editing(client, workflow_id)
    session_id = client.get("/api/history").json()["items"][0]["id"]

    response = client.post(f"/api/workflows/{workflow_id}/reset")
    assert response.json()["stage"] == "upload"
    assert response.json()["document"] == ""

    response = client.post(f"/api/workflows/{workflow_id}/restore", json={"session_id": session_id})
    assert response.json()["stage"] == "editing"
    assert response.json()["document"] == fake_service.document

    assert client.post(f"/api/workflows/{workflow_id}/restore", json={"session_id": "nope"}).status_code == 404


def test_history_remove_and_clear(client):
    workflow_id = _create(client)
    _to_editing(client, workflow_id)
    client.post(f"/api/workflows/{workflow_id}/reset")
    _to_editing(client, workflow_id)

    items = client.get("/api/history").json()["items"]
    assert len(items) == 2

    assert client.delete(f"/api/history/{items[0]['id']}").status_code == 200
    assert client.delete(f"/api/history/{items[0]['id']}").status_code == 404
    assert len(client.get("/api/history").json()["items"]) == 1

    client.delete("/api/history")
    assert client.get("/api/history").json()["items"] == []


def test_context_file_upload_detects_glossary(client):
    workflow_id = _create(client)
    glossary = json.dumps({"forbidden_terms": ["portal"], "preferred_terms": {"e-mail": "email"}})

    response = client.post(
        f"/api/workflows/{workflow_id}/context/files",
        files=[
            ("files", ("glossary.json", glossary.encode("utf-8"), "application/json")),
            ("files", ("style.md", b"Use sentence case.", "text/markdown")),
        ],
    )

    assert response.status_code == 200
    body = response.json()
    assert [(item["name"], item["is_glossary"]) for item in body["items"]] == [
        ("glossary.json", True),
        ("style.md", False),
    ]
    assert body["workflow"]["glossary"]["forbidden_terms"] == ["portal"]
    assert body["workflow"]["context_text"] == "Use sentence case."

    response = client.post(
        f"/api/workflows/{workflow_id}/context/files",
        files=[("files", ("style.md", b"Again", "text/markdown"))],
    )
    assert response.json()["skipped"] == ["style.md"]


def test_context_github_fetch(client):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/readme"):
            return httpx.Response(200, json={"content": "IyBBZ2VudA=="})
        return httpx.Response(404)

    configure_github_fetcher(GitHubContentFetcher(http_client=httpx.Client(transport=httpx.MockTransport(handler))))
    workflow_id = _create(client)

    response = client.post(f"/api/workflows/{workflow_id}/context/github", json={"url": "https://github.com/acme/agent"})
    assert response.status_code == 200
    assert response.json()["item"]["name"] == "acme/agent README"
    assert response.json()["workflow"]["context_text"] == "# Agent"

    response = client.post(
        f"/api/workflows/{workflow_id}/context/github",
        json={"url": "https://github.com/acme/agent/blob/main/missing.md"},
    )
    assert response.status_code == 502

    response = client.post(f"/api/workflows/{workflow_id}/context/github", json={"url": ""})
    assert response.status_code == 400


def test_context_endpoint_validates_glossary(client):
    workflow_id = _create(client)

    response = client.put(
        f"/api/workflows/{workflow_id}/context",
        json={"context_text": "Reference", "glossary": {"approved_terms": ["DocCraft"]}},
    )
    assert response.status_code == 400

    response = client.put(
        f"/api/workflows/{workflow_id}/context",
        json={"context_text": "Reference", "glossary": {"preferred_terms": {"login": "sign in"}}},
    )
    assert response.status_code == 200
    assert response.json()["glossary"]["preferred_terms"] == {"login": "sign in"}


def test_terminology_endpoint(client):
    response = client.post(
        "/api/terminology",
        json={"document": SOURCE, "glossary": {"preferred_terms": {"login": "log in"}}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["issues"] == [
        {
            "term": "login",
            "issue_type": "preferred",
            "message": 'Replace "login" with "log in".',
            "suggestion": "log in",
        }
    ]
    assert body["compliance_issues"][0]["id"] == "term-0"

    assert client.post("/api/terminology", json={"document": "  "}).status_code == 400


def test_list_and_discard_workflows(client):
    workflow_id = _create(client)

    items = client.get("/api/workflows").json()["items"]
    assert items == [{"workflow_id": workflow_id, "stage": "upload", "doc_type": "user-guide"}]

    assert client.delete(f"/api/workflows/{workflow_id}").status_code == 200
    assert client.get(f"/api/workflows/{workflow_id}").status_code == 404
    assert client.delete(f"/api/workflows/{workflow_id}").status_code == 404


def test_context_github_fetch_outside_upload_returns_409(client):
    requests: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(str(request.url))
        return httpx.Response(200, json={"content": "IyBBZ2VudA=="})

    configure_github_fetcher(GitHubContentFetcher(http_client=httpx.Client(transport=httpx.MockTransport(handler))))
    workflow_id = _create(client)
    _to_editing(client, workflow_id)

    response = client.post(f"/api/workflows/{workflow_id}/context/github", json={"url": "https://github.com/acme/agent"})

    assert response.status_code == 409
    assert response.json()["stage"] == "editing"
    assert requests == []
    assert client.get(f"/api/workflows/{workflow_id}").json()["context_files"] == []
