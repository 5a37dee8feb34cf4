from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import ClientError

from lms_api.services.errors import StoreError, ValidationError
from lms_api.services.upload_service import S3UploadSigner, UploadService
from tests.support import FakeUploadSigner


class _FailingSigner:
    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "nope"}}, "PutObject")


def test_public_url_uses_cdn_domain() -> None:
    service = UploadService(FakeUploadSigner(), public_domain="https://cdn.test/")
    ticket = service.chapter_video("intro.mp4", "video/mp4")
    assert ticket.public_url == f"https://cdn.test/{ticket.key}"


def test_signer_failure_becomes_store_error() -> None:
    service = UploadService(_FailingSigner(), public_domain="https://cdn.test")
    with pytest.raises(StoreError) as excinfo:
        service.course_image("c1", "cover.png", "image/png")
    assert excinfo.value.message == "Error generating upload URL"
    assert "AccessDenied" in excinfo.value.detail


def test_document_type_is_checked_before_signing() -> None:
    signer = FakeUploadSigner()
    service = UploadService(signer, public_domain="https://cdn.test")
    with pytest.raises(ValidationError):
        service.chapter_document("c1", "notes.txt", "text/plain")
    assert signer.calls == []


def test_s3_signer_presigns_put_object() -> None:
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )
    signer = S3UploadSigner("lms-uploads-test", "us-east-1", client=client)

    url = signer.presign_put("images/courses/c1/cover.png", "image/png", 60)
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert "lms-uploads-test" in parsed.netloc + parsed.path
    assert parsed.path.endswith("images/courses/c1/cover.png")
    assert query["X-Amz-Expires"] == ["60"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
