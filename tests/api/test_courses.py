"""Course catalog endpoints: defaults, ownership, partial updates."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from tests.support import OTHER, TEACHER, auth, create_course


# ---- create ----


def test_create_course_defaults_to_draft(client: TestClient) -> None:
    course = create_course(client)
    assert course["teacherId"] == TEACHER
    assert course["title"] == "Untitled Course"
    assert course["category"] == "Uncategorized"
    assert course["level"] == "Beginner"
    assert course["status"] == "Draft"
    assert course["sections"] == []
    assert course["enrollments"] == []
    assert course["price"] is None


def test_create_course_requires_teacher_fields(client: TestClient) -> None:
    resp = client.post("/courses", json={"teacherId": TEACHER}, headers=auth(TEACHER))
    assert resp.status_code == 400
    assert resp.json()["detail"]["message"] == "Teacher Id and name are required"


def test_create_course_for_someone_else_is_403(client: TestClient) -> None:
    resp = client.post(
        "/courses",
        json={"teacherId": OTHER, "teacherName": "Someone"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 403


# ---- read ----


def test_list_courses_filters_by_category(client: TestClient) -> None:
    first = create_course(client)
    create_course(client)
    client.put(
        f"/courses/{first['courseId']}", json={"category": "Math"}, headers=auth(TEACHER)
    )

    math = client.get("/courses", params={"category": "Math"}).json()["data"]
    assert [c["courseId"] for c in math] == [first["courseId"]]

    everything = client.get("/courses", params={"category": "all"}).json()["data"]
    assert len(everything) == 2
    assert len(client.get("/courses").json()["data"]) == 2


def test_get_unknown_course_is_404(client: TestClient) -> None:
    resp = client.get("/courses/missing")
    assert resp.status_code == 404
    assert resp.json()["detail"]["message"] == "Course not found"


# ---- update ----


def test_owner_can_update_fields(client: TestClient) -> None:
    course = create_course(client)
    resp = client.put(
        f"/courses/{course['courseId']}",
        json={"title": "Intro to Python", "price": 49.0, "level": "Advanced", "status": "Published"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["title"] == "Intro to Python"
    assert updated["price"] == 49.0
    assert updated["level"] == "Advanced"
    assert updated["status"] == "Published"
    assert updated["teacherName"] == "Ada Lovelace"


def test_non_owner_update_is_403(client: TestClient) -> None:
    course = create_course(client)
    resp = client.put(
        f"/courses/{course['courseId']}", json={"title": "Hijacked"}, headers=auth(OTHER)
    )
    assert resp.status_code == 403
    assert client.get(f"/courses/{course['courseId']}").json()["data"]["title"] == (
        "Untitled Course"
    )


def test_update_unknown_course_is_404(client: TestClient) -> None:
    resp = client.put("/courses/missing", json={"title": "x"}, headers=auth(TEACHER))
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "change",
    [{"level": "Expert"}, {"status": "Archived"}],
    ids=["level", "status"],
)
def test_invalid_enumerations_are_400(client: TestClient, change: dict) -> None:
    course = create_course(client)
    resp = client.put(f"/courses/{course['courseId']}", json=change, headers=auth(TEACHER))
    assert resp.status_code == 400


def test_sections_get_generated_ids(client: TestClient) -> None:
    course = create_course(client)
    sections = [
        {
            "sectionTitle": "Basics",
            "chapters": [
                {"title": "Hello", "type": "Text", "content": "print('hi')"},
                {"chapterId": "keep-me", "title": "Quiz time", "type": "Quiz"},
            ],
        }
    ]
    resp = client.put(
        f"/courses/{course['courseId']}", json={"sections": sections}, headers=auth(TEACHER)
    )
    assert resp.status_code == 200
    section = resp.json()["data"]["sections"][0]
    assert section["sectionId"]
    assert section["sectionTitle"] == "Basics"
    chapters = section["chapters"]
    assert chapters[0]["chapterId"]
    assert chapters[1]["chapterId"] == "keep-me"


def test_sections_accept_json_string(client: TestClient) -> None:
    course = create_course(client)
    sections = json.dumps([{"sectionTitle": "Week 1", "chapters": []}])
    resp = client.put(
        f"/courses/{course['courseId']}", json={"sections": sections}, headers=auth(TEACHER)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["sections"][0]["sectionTitle"] == "Week 1"


def test_sections_malformed_json_string_is_400(client: TestClient) -> None:
    course = create_course(client)
    resp = client.put(
        f"/courses/{course['courseId']}", json={"sections": "[{"}, headers=auth(TEACHER)
    )
    assert resp.status_code == 400


def test_invalid_chapter_type_is_400(client: TestClient) -> None:
    course = create_course(client)
    sections = [{"sectionTitle": "S", "chapters": [{"title": "c", "type": "Podcast"}]}]
    resp = client.put(
        f"/courses/{course['courseId']}", json={"sections": sections}, headers=auth(TEACHER)
    )
    assert resp.status_code == 400


# ---- delete ----


def test_owner_can_delete(client: TestClient) -> None:
    course = create_course(client)
    resp = client.delete(f"/courses/{course['courseId']}", headers=auth(TEACHER))
    assert resp.status_code == 200
    assert resp.json()["data"]["courseId"] == course["courseId"]
    assert client.get(f"/courses/{course['courseId']}").status_code == 404


def test_non_owner_delete_is_403(client: TestClient) -> None:
    course = create_course(client)
    resp = client.delete(f"/courses/{course['courseId']}", headers=auth(OTHER))
    assert resp.status_code == 403
