"""Tests for the FastAPI session service surface."""

import pytest
from fastapi.testclient import TestClient

from trivia_app.server.api_server import create_api_app

from conftest import USER_ID


@pytest.fixture
def client(backend):
    return TestClient(create_api_app(backend))


def _create_and_start(client, rounds=1, per_round=2, categories=("science",)):
    created = client.post(
        "/sessions",
        json={
            "user_id": USER_ID,
            "total_rounds": rounds,
            "questions_per_round": per_round,
            "categories": list(categories),
        },
    )
    assert created.status_code == 201
    started = client.post(f"/sessions/{created.json()['id']}/start")
    assert started.status_code == 200
    return started.json()


def test_categories(client):
    response = client.get("/categories")

    assert response.status_code == 200
    assert response.json() == ["history", "science"]


def test_profile_lifecycle(client):
    assert client.get(f"/profiles/{USER_ID}").status_code == 404

    created = client.post("/profiles", json={"user_id": USER_ID, "username": "Quizzer"})
    assert created.status_code == 201
    assert created.json()["total_games_played"] == 0

    duplicate = client.post("/profiles", json={"user_id": USER_ID, "username": "Again"})
    assert duplicate.status_code == 409


def test_started_question_has_no_correct_answer(client):
    started = _create_and_start(client)

    question = started["first_question"]
    assert started["session"]["status"] == "active"
    assert "correct_answer" not in question
    assert [option["label"] for option in question["options"]] == ["A", "B", "C", "D"]


def test_answer_and_summary(client, question_bank):
    started = _create_and_start(client, per_round=1)
    session_id = started["session"]["id"]
    question = started["first_question"]
    correct = next(
        q.correct_answer for q in question_bank.get_questions() if q.question_text == question["question_text"]
    )

    response = client.post(
        f"/sessions/{session_id}/answers",
        json={"question_id": question["id"], "answer_text": correct, "elapsed_ms": 1500},
    )
    assert response.status_code == 200
    assert response.json()["is_correct"] is True
    assert response.json()["game_complete"] is True
    assert response.json()["next_question"] is None

    summary = client.get(f"/sessions/{session_id}/summary")
    assert summary.status_code == 200
    assert summary.json()["total_score"] == 1
    assert summary.json()["rounds"][0]["duration_ms"] == 1500


def test_pause_resume_and_conflicts(client):
    started = _create_and_start(client)
    session_id = started["session"]["id"]

    assert client.post(f"/sessions/{session_id}/pause").status_code == 204
    assert client.post(f"/sessions/{session_id}/pause").status_code == 409
    assert client.get(f"/sessions/{session_id}").json()["status"] == "paused"

    resumed = client.post(f"/sessions/{session_id}/resume")
    assert resumed.status_code == 200
    assert resumed.json()["id"] == started["first_question"]["id"]

    assert client.get(f"/sessions/{session_id}/summary").status_code == 409


def test_patch_and_list(client):
    started = _create_and_start(client)
    session_id = started["session"]["id"]

    patched = client.patch(
        f"/sessions/{session_id}",
        json={"status": "abandoned", "end_time": "2026-01-01T12:00:00+00:00"},
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "abandoned"

    listed = client.get(f"/users/{USER_ID}/sessions")
    assert [s["id"] for s in listed.json()] == [session_id]


def test_error_statuses(client):
    assert client.get("/sessions/missing").status_code == 404
    bad_category = client.post(
        "/sessions",
        json={"user_id": USER_ID, "total_rounds": 1, "questions_per_round": 1, "categories": ["art"]},
    )
    assert bad_category.status_code == 422
    assert bad_category.json()["detail"] == "Unknown categories: art"
    assert client.post(
        "/sessions",
        json={"user_id": USER_ID, "total_rounds": 0, "questions_per_round": 1, "categories": ["science"]},
    ).status_code == 422
