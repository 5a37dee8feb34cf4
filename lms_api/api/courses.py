"""Course catalog endpoints, including pre-signed upload URLs for media."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from lms_api.api.dependencies import CurrentUser, get_course_service, get_upload_service
from lms_api.api.ratelimit import require_rate_limit
from lms_api.repos.course_repo import course_to_document
from lms_api.services.courses_service import CourseService
from lms_api.services.upload_service import UploadService

router = APIRouter(prefix="/courses", tags=["courses"])

Courses = Annotated[CourseService, Depends(get_course_service)]
Uploads = Annotated[UploadService, Depends(get_upload_service)]


# --- Request schemas --------------------------------------------------------


class CourseCreateIn(BaseModel):
    teacherId: str | None = None
    teacherName: str | None = None


class ChapterIn(BaseModel):
    chapterId: str | None = None
    title: str = ""
    type: str = "Text"
    content: str = ""
    video: str | None = None


class SectionIn(BaseModel):
    sectionId: str | None = None
    sectionTitle: str = ""
    sectionDescription: str = ""
    chapters: list[ChapterIn] = []


class CourseUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    image: str | None = None
    price: float | None = None
    level: str | None = None
    status: str | None = None
    # a JSON-encoded string is accepted for clients that send form-style bodies
    sections: list[SectionIn] | str | None = None


class UploadIn(BaseModel):
    fileName: str | None = None
    fileType: str | None = None


# --- Catalog ----------------------------------------------------------------


@router.get("")
async def list_courses(courses: Courses, category: str | None = None) -> dict:
    found = await courses.list_courses(category)
    return {
        "message": "Courses retrieved successfully",
        "data": [course_to_document(c) for c in found],
    }


@router.get("/{course_id}")
async def get_course(course_id: str, courses: Courses) -> dict:
    course = await courses.get_course(course_id)
    return {
        "message": "Course retrieved successfully",
        "data": course_to_document(course),
    }


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit())],
)
async def create_course(
    payload: CourseCreateIn,
    principal: CurrentUser,
    courses: Courses,
) -> dict:
    course = await courses.create_course(
        principal,
        teacher_id=payload.teacherId,
        teacher_name=payload.teacherName,
    )
    return {
        "message": "Course created successfully",
        "data": course_to_document(course),
    }


@router.put("/{course_id}", dependencies=[Depends(require_rate_limit())])
async def update_course(
    course_id: str,
    payload: CourseUpdateIn,
    principal: CurrentUser,
    courses: Courses,
) -> dict:
    course = await courses.update_course(
        principal, course_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Course updated successfully",
        "data": course_to_document(course),
    }


@router.delete("/{course_id}", dependencies=[Depends(require_rate_limit())])
async def delete_course(
    course_id: str,
    principal: CurrentUser,
    courses: Courses,
) -> dict:
    course = await courses.delete_course(principal, course_id)
    return {
        "message": "Course deleted successfully",
        "data": course_to_document(course),
    }


# --- Upload URLs ------------------------------------------------------------
# Ownership is checked before a URL is signed; the object key embeds a
# fresh uuid so two uploads of the same file name never collide.


@router.post(
    "/{course_id}/get-upload-image-url",
    dependencies=[Depends(require_rate_limit())],
)
async def get_upload_image_url(
    course_id: str,
    payload: UploadIn,
    principal: CurrentUser,
    courses: Courses,
    uploads: Uploads,
) -> dict:
    await courses.get_owned_course(principal, course_id, "upload images for")
    ticket = uploads.course_image(course_id, payload.fileName, payload.fileType)
    return {
        "message": "Upload URL generated successfully",
        "data": {"uploadUrl": ticket.upload_url, "imageUrl": ticket.public_url},
    }


@router.post(
    "/{course_id}/sections/{section_id}/chapters/{chapter_id}/get-upload-url",
    dependencies=[Depends(require_rate_limit())],
)
async def get_upload_video_url(
    course_id: str,
    section_id: str,
    chapter_id: str,
    payload: UploadIn,
    principal: CurrentUser,
    courses: Courses,
    uploads: Uploads,
) -> dict:
    await courses.get_owned_course(principal, course_id, "upload videos for")
    ticket = uploads.chapter_video(payload.fileName, payload.fileType)
    return {
        "message": "Upload URL generated successfully",
        "data": {"uploadUrl": ticket.upload_url, "videoUrl": ticket.public_url},
    }


@router.post(
    "/{course_id}/sections/{section_id}/chapters/{chapter_id}/get-document-upload-url",
    dependencies=[Depends(require_rate_limit())],
)
async def get_document_upload_url(
    course_id: str,
    section_id: str,
    chapter_id: str,
    payload: UploadIn,
    principal: CurrentUser,
    courses: Courses,
    uploads: Uploads,
) -> dict:
    await courses.get_owned_course(principal, course_id, "upload documents for")
    ticket = uploads.chapter_document(course_id, payload.fileName, payload.fileType)
    return {
        "message": "Document upload URL generated successfully",
        "data": {
            "uploadUrl": ticket.upload_url,
            "documentUrl": ticket.public_url,
            "documentType": ticket.document_type,
        },
    }
