"""Course catalog operations.

``teacherId`` is the owner field: only the teacher who owns a course may
change it, delete it, or request upload URLs for it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any
from uuid import uuid4

from lms_api.core.clock import Clock, utc_now
from lms_api.models.course import CHAPTER_TYPES, COURSE_LEVELS, COURSE_STATUSES, Course
from lms_api.models.principal import Principal
from lms_api.repos.course_repo import CourseRepo, course_from_document, course_to_document
from lms_api.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    VersionConflict,
)

logger = logging.getLogger(__name__)


def _parse_sections(raw: Any) -> list[dict[str, Any]]:
    """Sections arrive as a list, or as a JSON string from multipart forms."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise ValidationError("sections must be a JSON array") from None
    if not isinstance(raw, list) or not all(isinstance(s, dict) for s in raw):
        raise ValidationError("sections must be a list of section objects")
    return raw


def _with_ids(sections: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Give every section and chapter an id, keeping ids the client sent."""
    normalized = []
    for section in sections:
        chapters = []
        for chapter in section.get("chapters") or []:
            if chapter.get("type", "Text") not in CHAPTER_TYPES:
                raise ValidationError(
                    f"Invalid chapter type. Must be one of: {', '.join(CHAPTER_TYPES)}"
                )
            chapters.append({**chapter, "chapterId": chapter.get("chapterId") or str(uuid4())})
        normalized.append(
            {
                **section,
                "sectionId": section.get("sectionId") or str(uuid4()),
                "chapters": chapters,
            }
        )
    return normalized


class CourseService:
    def __init__(self, repo: CourseRepo, *, clock: Clock = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    async def list_courses(self, category: str | None = None) -> list[Course]:
        if category == "all":
            category = None
        return await self._repo.list_by_category(category)

    async def get_course(self, course_id: str) -> Course:
        course = await self._repo.get(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def get_owned_course(
        self, principal: Principal, course_id: str, action: str = "modify"
    ) -> Course:
        course = await self.get_course(course_id)
        if not principal.owns(course.teacher_id):
            logger.warning(
                "Access denied: user=%s tried to %s course=%s owned by %s",
                principal.user_id,
                action,
                course_id,
                course.teacher_id,
            )
            raise AuthorizationError(f"Not authorized to {action} this course")
        return course

    async def create_course(
        self,
        principal: Principal,
        *,
        teacher_id: str | None,
        teacher_name: str | None,
    ) -> Course:
        if not teacher_id or not teacher_name:
            raise ValidationError("Teacher Id and name are required")
        if not principal.owns(teacher_id):
            logger.warning(
                "Access denied: user=%s tried to create a course as teacher=%s",
                principal.user_id,
                teacher_id,
            )
            raise AuthorizationError("Not authorized to create a course for another teacher")

        course = Course.new(
            teacher_id=teacher_id, teacher_name=teacher_name, now=self._clock()
        )
        saved = await self._save(course)
        logger.info("Created course id=%s teacher=%s", saved.course_id, teacher_id)
        return saved

    async def update_course(
        self, principal: Principal, course_id: str, changes: dict[str, Any]
    ) -> Course:
        """Apply a partial update given in wire (camelCase) field names."""
        course = await self.get_owned_course(principal, course_id, "update")

        if "level" in changes and changes["level"] not in COURSE_LEVELS:
            raise ValidationError(
                f"Invalid level. Must be one of: {', '.join(COURSE_LEVELS)}"
            )
        if "status" in changes and changes["status"] not in COURSE_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(COURSE_STATUSES)}"
            )
        if "sections" in changes:
            changes = {**changes, "sections": _with_ids(_parse_sections(changes["sections"]))}

        merged = {**course_to_document(course), **changes}
        updated = replace(
            course_from_document(merged),
            course_id=course.course_id,
            teacher_id=course.teacher_id,
            created_at=course.created_at,
            updated_at=self._clock(),
            version=course.version,
        )
        return await self._save(updated)

    async def delete_course(self, principal: Principal, course_id: str) -> Course:
        course = await self.get_owned_course(principal, course_id, "delete")
        await self._repo.delete(course_id)
        logger.info("Deleted course id=%s", course_id)
        return course

    async def _save(self, course: Course) -> Course:
        try:
            return await self._repo.save(course)
        except VersionConflict:
            raise ConflictError(
                "Course was modified concurrently; retry the request"
            ) from None
