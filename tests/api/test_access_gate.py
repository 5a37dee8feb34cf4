"""The caller may only read or write their own progress record.

A mismatch must be rejected before the request body is validated and
before the document store is touched.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lms_api.api.dependencies import get_identity_verifier, get_store
from tests.support import auth, mint_token

OWNER = "user_owner"
INTRUDER = "user_intruder"

ROUTES = [
    ("GET", f"/progress/{OWNER}", None),
    ("GET", f"/progress/{OWNER}/statistics", None),
    (
        "POST",
        f"/progress/{OWNER}/lesson-access",
        {"courseId": "c1", "sectionId": "s1", "chapterId": "ch1"},
    ),
    ("POST", f"/progress/{OWNER}/quiz-attempt", {"quizId": "q", "courseId": "c", "score": 1}),
    (
        "POST",
        f"/progress/{OWNER}/discussion-activity",
        {"courseId": "c1", "activityType": "Comment"},
    ),
]
ROUTE_IDS = ["get", "statistics", "lesson-access", "quiz-attempt", "discussion-activity"]


class _UntouchableStore:
    """Fails the test if any store method is called."""

    def __getattr__(self, name: str):
        raise AssertionError(f"document store accessed: {name}")


@pytest.fixture
def untouchable(app: FastAPI) -> None:
    app.dependency_overrides[get_store] = lambda: _UntouchableStore()


# ---- 403: identity mismatch ----


@pytest.mark.parametrize(("method", "path", "body"), ROUTES, ids=ROUTE_IDS)
def test_mismatched_identity_is_403(
    client: TestClient, method: str, path: str, body: dict | None
) -> None:
    resp = client.request(method, path, json=body, headers=auth(INTRUDER))
    assert resp.status_code == 403
    assert "message" in resp.json()["detail"]


@pytest.mark.parametrize(("method", "path", "body"), ROUTES, ids=ROUTE_IDS)
def test_mismatch_never_reaches_the_store(
    untouchable: None, client: TestClient, method: str, path: str, body: dict | None
) -> None:
    resp = client.request(method, path, json=body, headers=auth(INTRUDER))
    assert resp.status_code == 403


def test_mismatch_wins_over_invalid_body(client: TestClient) -> None:
    resp = client.post(
        f"/progress/{OWNER}/discussion-activity",
        json={"courseId": "c1", "activityType": "Invalid"},
        headers=auth(INTRUDER),
    )
    assert resp.status_code == 403


def test_intruder_write_leaves_owner_record_untouched(client: TestClient) -> None:
    client.post(
        f"/progress/{OWNER}/lesson-access",
        json={"courseId": "c1", "sectionId": "s1", "chapterId": "ch1"},
        headers=auth(INTRUDER),
    )
    resp = client.get(f"/progress/{OWNER}/statistics", headers=auth(OWNER))
    assert resp.status_code == 404


# ---- 401: identity provider boundary ----


@pytest.mark.parametrize(("method", "path", "body"), ROUTES, ids=ROUTE_IDS)
def test_missing_token_is_401(
    client: TestClient, method: str, path: str, body: dict | None
) -> None:
    resp = client.request(method, path, json=body)
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_401(client: TestClient) -> None:
    token = mint_token(OWNER, expires_in=timedelta(seconds=-30))
    resp = client.get(f"/progress/{OWNER}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["message"] == "Token expired"


def test_wrong_audience_is_401(client: TestClient) -> None:
    token = mint_token(OWNER, aud="some-other-api")
    resp = client.get(f"/progress/{OWNER}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_without_subject_is_401(client: TestClient) -> None:
    token = mint_token(OWNER, sub=None)
    resp = client.get(f"/progress/{OWNER}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ---- 503: no identity provider configured ----


def test_unconfigured_identity_provider_is_503(app: FastAPI, client: TestClient) -> None:
    app.dependency_overrides[get_identity_verifier] = lambda: None
    resp = client.get(f"/progress/{OWNER}", headers=auth(OWNER))
    assert resp.status_code == 503
