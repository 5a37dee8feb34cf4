"""Pre-signed upload URLs for course media.

The API never receives file bytes.  It hands the client a short-lived S3
``put_object`` URL and the public (CloudFront) URL the object will have
once uploaded; the client then PUTs the file straight to the bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from lms_api.services.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_URL_TTL_SECONDS = 60
VIDEO_URL_TTL_SECONDS = 60
DOCUMENT_URL_TTL_SECONDS = 120

DOCUMENT_TYPES = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "ppt",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
}


@runtime_checkable
class UploadSigner(Protocol):
    def presign_put(self, key: str, content_type: str, expires_in: int) -> str: ...


class S3UploadSigner:
    def __init__(self, bucket: str, region: str, client=None) -> None:
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3", region_name=region, config=Config(signature_version="s3v4")
        )

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        return self._client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )


@dataclass(frozen=True, slots=True)
class UploadTicket:
    upload_url: str
    public_url: str
    key: str
    document_type: str | None = None


def _check_file(file_name: str | None, file_type: str | None) -> None:
    if not file_name or not file_type:
        raise ValidationError("File name and type are required")
    if "/" in file_name or "\\" in file_name:
        raise ValidationError("File name must not contain path separators")


class UploadService:
    def __init__(self, signer: UploadSigner, *, public_domain: str) -> None:
        self._signer = signer
        self._public_domain = public_domain.rstrip("/")

    def _issue(self, key: str, content_type: str, expires_in: int) -> tuple[str, str]:
        try:
            upload_url = self._signer.presign_put(key, content_type, expires_in)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Presigning failed for key=%s", key)
            raise StoreError("Error generating upload URL", detail=str(e)) from e
        logger.info("Issued upload URL key=%s ttl=%ds", key, expires_in)
        return upload_url, f"{self._public_domain}/{key}"

    def course_image(
        self, course_id: str, file_name: str | None, file_type: str | None
    ) -> UploadTicket:
        _check_file(file_name, file_type)
        key = f"images/courses/{course_id}/{uuid4()}-{file_name}"
        upload_url, public_url = self._issue(key, file_type, IMAGE_URL_TTL_SECONDS)  # type: ignore[arg-type]
        return UploadTicket(upload_url=upload_url, public_url=public_url, key=key)

    def chapter_video(self, file_name: str | None, file_type: str | None) -> UploadTicket:
        _check_file(file_name, file_type)
        key = f"videos/{uuid4()}/{file_name}"
        upload_url, public_url = self._issue(key, file_type, VIDEO_URL_TTL_SECONDS)  # type: ignore[arg-type]
        return UploadTicket(upload_url=upload_url, public_url=public_url, key=key)

    def chapter_document(
        self, course_id: str, file_name: str | None, file_type: str | None
    ) -> UploadTicket:
        _check_file(file_name, file_type)
        document_type = DOCUMENT_TYPES.get(file_type)  # type: ignore[arg-type]
        if document_type is None:
            raise ValidationError(
                "Invalid file type. Only PDF, DOCX, PPTX, and XLSX files are allowed"
            )
        key = f"documents/courses/{course_id}/{uuid4()}-{file_name}"
        upload_url, public_url = self._issue(key, file_type, DOCUMENT_URL_TTL_SECONDS)  # type: ignore[arg-type]
        return UploadTicket(
            upload_url=upload_url,
            public_url=public_url,
            key=key,
            document_type=document_type,
        )
