from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.support import OTHER, TEACHER, auth, create_course

MC_QUESTION = {
    "text": "2 + 2?",
    "type": "MultipleChoice",
    "options": [{"text": "3"}, {"text": "4", "isCorrect": True}],
}


@pytest.fixture
def course(client: TestClient) -> dict:
    return create_course(client)


def create_quiz(client: TestClient, course_id: str, **fields) -> dict:
    resp = client.post(
        "/quizzes",
        json={"courseId": course_id, "title": "Checkpoint", **fields},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---- quizzes ----


def test_create_quiz_applies_defaults(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    assert quiz["courseId"] == course["courseId"]
    assert quiz["timeLimit"] == 0
    assert quiz["passingScore"] == 70
    assert quiz["shuffleQuestions"] is False
    assert quiz["questions"] == []


def test_create_quiz_requires_course_and_title(client: TestClient) -> None:
    resp = client.post("/quizzes", json={"title": "No course"}, headers=auth(TEACHER))
    assert resp.status_code == 400


def test_create_quiz_for_unknown_course_is_404(client: TestClient) -> None:
    resp = client.post(
        "/quizzes", json={"courseId": "missing", "title": "T"}, headers=auth(TEACHER)
    )
    assert resp.status_code == 404


def test_create_quiz_by_non_teacher_is_403(client: TestClient, course: dict) -> None:
    resp = client.post(
        "/quizzes", json={"courseId": course["courseId"], "title": "T"}, headers=auth(OTHER)
    )
    assert resp.status_code == 403


def test_list_quizzes_filters_by_course(client: TestClient, course: dict) -> None:
    other_course = create_course(client)
    mine = create_quiz(client, course["courseId"])
    create_quiz(client, other_course["courseId"])

    resp = client.get("/quizzes", params={"courseId": course["courseId"]})
    assert [q["quizId"] for q in resp.json()["data"]] == [mine["quizId"]]
    assert len(client.get("/quizzes").json()["data"]) == 2


def test_get_unknown_quiz_is_404(client: TestClient) -> None:
    assert client.get("/quizzes/missing").status_code == 404


def test_update_quiz_normalizes_question_ids(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    resp = client.put(
        f"/quizzes/{quiz['quizId']}",
        json={"timeLimit": 15, "questions": [MC_QUESTION]},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["timeLimit"] == 15
    question = updated["questions"][0]
    assert question["questionId"]
    assert all(option["id"] for option in question["options"])


def test_update_quiz_by_non_teacher_is_403(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    resp = client.put(f"/quizzes/{quiz['quizId']}", json={"title": "x"}, headers=auth(OTHER))
    assert resp.status_code == 403


def test_delete_quiz(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    assert client.delete(f"/quizzes/{quiz['quizId']}", headers=auth(OTHER)).status_code == 403
    resp = client.delete(f"/quizzes/{quiz['quizId']}", headers=auth(TEACHER))
    assert resp.status_code == 200
    assert client.get(f"/quizzes/{quiz['quizId']}").status_code == 404


# ---- questions ----


def test_add_question(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    resp = client.post(
        f"/quizzes/{quiz['quizId']}/questions", json=MC_QUESTION, headers=auth(TEACHER)
    )
    assert resp.status_code == 201
    question = resp.json()["data"]
    assert question["points"] == 1
    assert question["options"][1]["isCorrect"] is True

    stored = client.get(f"/quizzes/{quiz['quizId']}").json()["data"]
    assert [q["questionId"] for q in stored["questions"]] == [question["questionId"]]


@pytest.mark.parametrize(
    "body",
    [
        {"type": "Essay"},
        {"text": "Why?", "type": "TrueFalse"},
        {"text": "Pick", "type": "MultipleChoice", "options": [{"text": "only"}]},
    ],
    ids=["missing-text", "bad-type", "too-few-options"],
)
def test_add_question_validation(client: TestClient, course: dict, body: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    resp = client.post(f"/quizzes/{quiz['quizId']}/questions", json=body, headers=auth(TEACHER))
    assert resp.status_code == 400


def test_update_question_merges_changes(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    question = client.post(
        f"/quizzes/{quiz['quizId']}/questions", json=MC_QUESTION, headers=auth(TEACHER)
    ).json()["data"]

    resp = client.put(
        f"/quizzes/{quiz['quizId']}/questions/{question['questionId']}",
        json={"points": 5},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["points"] == 5
    assert updated["text"] == "2 + 2?"
    assert updated["questionId"] == question["questionId"]


def test_update_missing_question_is_404(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    resp = client.put(
        f"/quizzes/{quiz['quizId']}/questions/missing", json={"points": 2}, headers=auth(TEACHER)
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["message"] == "Question not found"


def test_delete_question_returns_removed(client: TestClient, course: dict) -> None:
    quiz = create_quiz(client, course["courseId"])
    question = client.post(
        f"/quizzes/{quiz['quizId']}/questions",
        json={"text": "Explain", "type": "Essay"},
        headers=auth(TEACHER),
    ).json()["data"]

    resp = client.delete(
        f"/quizzes/{quiz['quizId']}/questions/{question['questionId']}", headers=auth(TEACHER)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["text"] == "Explain"
    assert client.get(f"/quizzes/{quiz['quizId']}").json()["data"]["questions"] == []
