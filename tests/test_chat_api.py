import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from bimqa.core.errors import ReasoningError
from bimqa.core.orchestrator import BimQuestionOrchestrator
from bimqa.core.task_executor import TaskExecutor
from bimqa.deps import orchestrator
from bimqa.main import app

from conftest import URN, FakeReasoning


@pytest.fixture()
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use(reasoning, db):
    orch = BimQuestionOrchestrator(reasoning, db, TaskExecutor(db, reasoning, quantity_strategy="local"))
    app.dependency_overrides[orchestrator] = lambda: orch


class BrokenDatabase:
    def answer(self, model_id, question, debug=False):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_chat_count(client, db):
    use(FakeReasoning([{"intent": "bim", "task": "count", "category": "Doors"}], text_reply="5 doors"), db)
    res = client.post("/chat/", json={"modelId": URN, "question": "How many doors?"})
    assert res.status_code == 200
    assert res.json() == {"answer": "5 doors", "hits": {"kind": "count", "count": 5}}


def test_chat_accepts_urn_field(client, db):
    use(FakeReasoning([{"intent": "bim", "task": "list", "category": "Windows"}]), db)
    res = client.post("/chat/", json={"urn": URN, "question": "Show windows", "debug": True})
    body = res.json()
    assert res.status_code == 200
    assert body["hits"]["count"] == 2
    assert [d["name"] for d in body["hits"]["docs"]] == ["Window 1", "Window 2"]
    assert "trace_id" in body["debug"]


@pytest.mark.parametrize("payload, message", [
    ({"question": "How many doors?"}, "Missing urn"),
    ({"modelId": URN}, "Missing question"),
    ({"modelId": URN, "question": "   "}, "Missing question"),
])
def test_missing_input_is_400(client, db, payload, message):
    use(FakeReasoning(), db)
    res = client.post("/chat/", json=payload)
    assert res.status_code == 400
    assert res.json() == {"error": message}


def test_plan_contract_violation_is_422(client, db):
    use(FakeReasoning([{"intent": "bim", "task": "distinct", "category": "Doors"}]), db)
    res = client.post("/chat/", json={"modelId": URN, "question": "Which door types?"})
    assert res.status_code == 422
    assert "targetParam" in res.json()["error"]
    assert res.json()["trace_id"]


def test_reasoning_failure_is_502(client, db):
    use(FakeReasoning([ReasoningError("Gemini call failed: key=***REDACTED***")]), db)
    res = client.post("/chat/", json={"modelId": URN, "question": "How many doors?"})
    assert res.status_code == 502
    assert "REDACTED" not in res.json()["error"]


def test_database_failure_is_500(client):
    app.dependency_overrides[orchestrator] = lambda: BrokenDatabase()
    res = client.post("/chat/", json={"modelId": URN, "question": "How many doors?"})
    assert res.status_code == 500
    assert res.json()["error"] == "The model data could not be queried."


class FailingGuard:
    def answer(self, model_id, question, debug=False):
        raise ValueError("Only read-only queries are allowed.")


def test_unexpected_failure_is_500_with_trace_id(client):
    app.dependency_overrides[orchestrator] = lambda: FailingGuard()
    res = client.post("/chat/", json={"modelId": URN, "question": "How many doors?"})
    assert res.status_code == 500
    assert res.json()["error"] == "The question could not be answered."
    assert res.json()["trace_id"]
