# tests/test_api.py
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from ai_interviewer.core.exceptions import StorageError
from ai_interviewer.interface.api.main import create_app
from ai_interviewer.managers.interview import InterviewSessionManager
from ai_interviewer.processors.evaluation import InterviewEvaluator
from ai_interviewer.processors.questions import QuestionGenerator
from ai_interviewer.storage import MemorySessionStore


def _answer_body(question, text="I like distributed systems, and I have built a few APIs."):
    return {
        "questionId": question["id"],
        "questionText": question["text"],
        "responseText": text,
        "startedAt": "2024-05-01T09:30:00.000Z",
        "answeredAt": "2024-05-01T09:31:00.000Z",
    }


def _start(client):
    response = client.post("/api/interview/session/start")
    assert response.status_code == status.HTTP_200_OK
    return response.json()


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ok"] is True
    assert response.json()["status"] == "ok"
    assert response.json()["app_name"] == "Mock Interview Test"


def test_start_session(client):
    data = _start(client)

    assert data["sessionId"]
    assert data["role"] == "SDE Intern"
    assert len(data["questions"]) == 6
    assert data["questions"][0]["text"].startswith("Hi, I'm your AI interviewer for the SDE Intern role.")
    assert {"id", "text", "category"} == set(data["questions"][0])


def test_start_session_with_role(client):
    response = client.post("/api/interview/session/start", json={"role": "Data Engineer"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "Data Engineer"


def test_full_interview_flow(client):
    data = _start(client)
    session_id = data["sessionId"]

    for question in data["questions"]:
        response = client.post(f"/api/interview/session/{session_id}/answer", json=_answer_body(question))
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True}

    response = client.post(f"/api/interview/session/{session_id}/complete")
    assert response.status_code == status.HTTP_200_OK
    evaluation = response.json()["evaluation"]
    assert set(evaluation["scores"]) == {"technical", "problemSolving", "communication"}
    assert all(isinstance(v, int) and 0 <= v <= 10 for v in evaluation["scores"].values())
    assert evaluation["summary"].startswith("Candidate provided 6/6 responses")
    assert set(evaluation["feedback"]) == {"technical", "problemSolving", "communication"}

    response = client.get(f"/api/interview/session/{session_id}")
    assert response.status_code == status.HTTP_200_OK
    session = response.json()
    assert session["status"] == "completed"
    assert session["completedAt"] is not None
    assert len(session["answers"]) == 6
    assert session["answers"][0]["startedAt"].startswith("2024-05-01T09:30:00")
    assert session["evaluation"] == evaluation


def test_get_session(client):
    data = _start(client)
    response = client.get(f"/api/interview/session/{data['sessionId']}")

    assert response.status_code == status.HTTP_200_OK
    session = response.json()
    assert session["sessionId"] == data["sessionId"]
    assert session["status"] == "active"
    assert session["answers"] == []
    assert session["questions"] == data["questions"]
    assert session["evaluation"] is None


def test_unknown_session_returns_404(client):
    assert client.get("/api/interview/session/nope").status_code == status.HTTP_404_NOT_FOUND
    assert client.post("/api/interview/session/nope/complete").status_code == status.HTTP_404_NOT_FOUND

    response = client.post(
        "/api/interview/session/nope/answer",
        json=_answer_body({"id": "q1", "text": "Question"}),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Session not found"}


def test_empty_answer_returns_400(client):
    data = _start(client)
    session_id = data["sessionId"]

    response = client.post(
        f"/api/interview/session/{session_id}/answer",
        json=_answer_body(data["questions"][0], text=""),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Invalid answer payload"}
    assert client.get(f"/api/interview/session/{session_id}").json()["answers"] == []


def test_non_object_body_returns_400(client):
    data = _start(client)
    response = client.post(f"/api/interview/session/{data['sessionId']}/answer", json=["not", "an", "object"])
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_answer_after_complete_returns_400(client):
    data = _start(client)
    session_id = data["sessionId"]
    client.post(f"/api/interview/session/{session_id}/complete")

    response = client.post(f"/api/interview/session/{session_id}/answer", json=_answer_body(data["questions"][0]))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Session completed"}


def test_complete_twice_returns_same_evaluation(client):
    data = _start(client)
    session_id = data["sessionId"]
    client.post(f"/api/interview/session/{session_id}/answer", json=_answer_body(data["questions"][0]))

    first = client.post(f"/api/interview/session/{session_id}/complete").json()
    second = client.post(f"/api/interview/session/{session_id}/complete").json()
    assert first == second


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert "text/html" in response.headers["content-type"]
    assert 'const API_BASE = "/api"' in response.text
    # generated evaluation text is rendered as text, never parsed as markup
    assert "innerHTML" not in response.text
    assert "summary.textContent = evaluation.summary" in response.text


def test_cors_allows_client_origin(client):
    response = client.options(
        "/api/health",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


class BrokenStore(MemorySessionStore):
    async def create(self, session):
        raise StorageError(
            "Database operation failed: [SQL: INSERT INTO interview_sessions (session_id, role) VALUES (?, ?)] "
            f"[parameters: ('{session.session_id}', '{session.role}')]"
        )


class ExplodingEvaluator(InterviewEvaluator):
    async def evaluate(self, session):
        raise RuntimeError("boom")


def test_store_failure_returns_generic_500(settings):
    manager = InterviewSessionManager(BrokenStore(), QuestionGenerator(), InterviewEvaluator())
    with TestClient(create_app(settings, session_manager=manager)) as client:
        response = client.post("/api/interview/session/start")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error"}
    assert "SQL" not in response.text


@pytest.mark.parametrize("debug", [True, False])
def test_unexpected_failure_returns_500(settings, debug):
    manager = InterviewSessionManager(MemorySessionStore(), QuestionGenerator(), ExplodingEvaluator())
    app = create_app(settings.model_copy(update={"DEBUG": debug}), session_manager=manager)
    with TestClient(app) as client:
        session_id = client.post("/api/interview/session/start").json()["sessionId"]
        response = client.post(
            f"/api/interview/session/{session_id}/complete",
            headers={"Origin": "http://localhost:5173"},
        )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"error": "Internal server error"}
    assert "Traceback" not in response.text
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
