"""Pre-signed upload URL endpoints (S3 signer replaced by FakeUploadSigner)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.support import OTHER, TEACHER, FakeUploadSigner, auth, create_course

PDF = "application/pdf"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _chapter_path(course_id: str, suffix: str) -> str:
    return f"/courses/{course_id}/sections/s1/chapters/ch1/{suffix}"


def test_image_upload_url(client: TestClient, upload_signer: FakeUploadSigner) -> None:
    course = create_course(client)
    resp = client.post(
        f"/courses/{course['courseId']}/get-upload-image-url",
        json={"fileName": "cover.png", "fileType": "image/png"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]

    key, content_type, expires_in = upload_signer.calls[-1]
    assert key.startswith(f"images/courses/{course['courseId']}/")
    assert key.endswith("-cover.png")
    assert content_type == "image/png"
    assert expires_in == 60
    assert data["uploadUrl"].startswith("https://uploads.test/")
    assert data["imageUrl"] == f"https://cdn.test/{key}"


def test_video_upload_url(client: TestClient, upload_signer: FakeUploadSigner) -> None:
    course = create_course(client)
    resp = client.post(
        _chapter_path(course["courseId"], "get-upload-url"),
        json={"fileName": "lecture.mp4", "fileType": "video/mp4"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    key, _, expires_in = upload_signer.calls[-1]
    assert key.startswith("videos/")
    assert key.endswith("/lecture.mp4")
    assert expires_in == 60
    assert resp.json()["data"]["videoUrl"] == f"https://cdn.test/{key}"


@pytest.mark.parametrize(
    ("file_type", "document_type"),
    [(PDF, "pdf"), (XLSX, "xlsx")],
    ids=["pdf", "xlsx"],
)
def test_document_upload_url(
    client: TestClient,
    upload_signer: FakeUploadSigner,
    file_type: str,
    document_type: str,
) -> None:
    course = create_course(client)
    resp = client.post(
        _chapter_path(course["courseId"], "get-document-upload-url"),
        json={"fileName": "notes", "fileType": file_type},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    key, _, expires_in = upload_signer.calls[-1]
    assert key.startswith(f"documents/courses/{course['courseId']}/")
    assert expires_in == 120
    assert data["documentType"] == document_type
    assert data["documentUrl"] == f"https://cdn.test/{key}"


def test_document_upload_rejects_other_types(
    client: TestClient, upload_signer: FakeUploadSigner
) -> None:
    course = create_course(client)
    resp = client.post(
        _chapter_path(course["courseId"], "get-document-upload-url"),
        json={"fileName": "run.exe", "fileType": "application/octet-stream"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 400
    assert upload_signer.calls == []


@pytest.mark.parametrize(
    "body",
    [{"fileName": "a.png"}, {"fileType": "image/png"}, {"fileName": "../a.png", "fileType": "image/png"}],
    ids=["no-type", "no-name", "path-separator"],
)
def test_image_upload_rejects_bad_file(client: TestClient, body: dict) -> None:
    course = create_course(client)
    resp = client.post(
        f"/courses/{course['courseId']}/get-upload-image-url", json=body, headers=auth(TEACHER)
    )
    assert resp.status_code == 400


def test_only_the_owner_gets_upload_urls(
    client: TestClient, upload_signer: FakeUploadSigner
) -> None:
    course = create_course(client)
    resp = client.post(
        f"/courses/{course['courseId']}/get-upload-image-url",
        json={"fileName": "cover.png", "fileType": "image/png"},
        headers=auth(OTHER),
    )
    assert resp.status_code == 403
    assert upload_signer.calls == []


def test_upload_for_unknown_course_is_404(client: TestClient) -> None:
    resp = client.post(
        "/courses/missing/get-upload-image-url",
        json={"fileName": "cover.png", "fileType": "image/png"},
        headers=auth(TEACHER),
    )
    assert resp.status_code == 404
