from __future__ import annotations

from dataclasses import replace
from typing import Any

from lms_api.core.clock import from_iso, to_iso
from lms_api.models.course import Chapter, Course, Enrollment, Section
from lms_api.repos.document_store import DocumentStore

COLLECTION = "courses"


class CourseRepo:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, course_id: str) -> Course | None:
        doc = await self._store.get(COLLECTION, course_id)
        if doc is None:
            return None
        return replace(course_from_document(doc.body), version=doc.version)

    async def list_by_category(self, category: str | None = None) -> list[Course]:
        where = {"category": category} if category else None
        docs = await self._store.scan(COLLECTION, where)
        return [replace(course_from_document(d.body), version=d.version) for d in docs]

    async def save(self, course: Course) -> Course:
        stored = await self._store.put(
            COLLECTION,
            course.course_id,
            course_to_document(course),
            expected_version=course.version,
        )
        return replace(course, version=stored.version)

    async def delete(self, course_id: str) -> bool:
        return await self._store.delete(COLLECTION, course_id)


def course_to_document(course: Course) -> dict[str, Any]:
    return {
        "courseId": course.course_id,
        "teacherId": course.teacher_id,
        "teacherName": course.teacher_name,
        "title": course.title,
        "description": course.description,
        "category": course.category,
        "image": course.image,
        "price": course.price,
        "level": course.level,
        "status": course.status,
        "sections": [
            {
                "sectionId": s.section_id,
                "sectionTitle": s.section_title,
                "sectionDescription": s.section_description,
                "chapters": [
                    {
                        "chapterId": c.chapter_id,
                        "type": c.type,
                        "title": c.title,
                        "content": c.content,
                        "video": c.video,
                    }
                    for c in s.chapters
                ],
            }
            for s in course.sections
        ],
        "enrollments": [{"userId": e.user_id} for e in course.enrollments],
        "createdAt": to_iso(course.created_at),
        "updatedAt": to_iso(course.updated_at),
    }


def course_from_document(body: dict[str, Any]) -> Course:
    return Course(
        course_id=body["courseId"],
        teacher_id=body["teacherId"],
        teacher_name=body["teacherName"],
        created_at=from_iso(body["createdAt"]),
        updated_at=from_iso(body["updatedAt"]),
        title=body.get("title", "Untitled Course"),
        description=body.get("description", ""),
        category=body.get("category", "Uncategorized"),
        image=body.get("image", ""),
        price=body.get("price"),
        level=body.get("level", "Beginner"),
        status=body.get("status", "Draft"),
        sections=tuple(
            Section(
                section_id=s["sectionId"],
                section_title=s.get("sectionTitle", ""),
                section_description=s.get("sectionDescription", ""),
                chapters=tuple(
                    Chapter(
                        chapter_id=c["chapterId"],
                        title=c.get("title", ""),
                        type=c.get("type", "Text"),
                        content=c.get("content", ""),
                        video=c.get("video"),
                    )
                    for c in s.get("chapters", [])
                ),
            )
            for s in body.get("sections", [])
        ),
        enrollments=tuple(
            Enrollment(user_id=e["userId"]) for e in body.get("enrollments", [])
        ),
    )
