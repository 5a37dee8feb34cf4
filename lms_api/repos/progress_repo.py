"""Progress Store: one StudentProgress document per user.

Documents use the same camelCase shape the API returns, so a raw row in
the store reads exactly like a GET /progress/{userId} response body.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from lms_api.core.clock import from_iso, to_iso
from lms_api.models.progress import (
    ActivityType,
    DiscussionActivity,
    LessonAccess,
    QuizAttempt,
    StudentProgress,
)
from lms_api.repos.document_store import DocumentStore

COLLECTION = "student_progress"


class ProgressRepo:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> StudentProgress | None:
        doc = await self._store.get(COLLECTION, user_id)
        if doc is None:
            return None
        return replace(progress_from_document(doc.body), version=doc.version)

    async def save(self, progress: StudentProgress) -> StudentProgress:
        """Conditionally overwrite the whole record.

        Raises VersionConflict if someone else wrote the record since
        ``progress`` was read (or created it, when ``version`` is 0).
        """
        stored = await self._store.put(
            COLLECTION,
            progress.user_id,
            progress_to_document(progress),
            expected_version=progress.version,
        )
        return replace(progress, version=stored.version)


def progress_to_document(progress: StudentProgress) -> dict[str, Any]:
    return {
        "userId": progress.user_id,
        "lessonAccessHistory": [
            {
                "courseId": e.course_id,
                "sectionId": e.section_id,
                "chapterId": e.chapter_id,
                "accessTimestamp": to_iso(e.access_timestamp),
            }
            for e in progress.lesson_access_history
        ],
        "quizAttempts": [
            {
                "quizId": e.quiz_id,
                "courseId": e.course_id,
                "attemptTimestamp": to_iso(e.attempt_timestamp),
                "score": e.score,
                "timeTaken": e.time_taken,
                "completed": e.completed,
            }
            for e in progress.quiz_attempts
        ],
        "discussionActivities": [
            {
                "courseId": e.course_id,
                "sectionId": e.section_id,
                "chapterId": e.chapter_id,
                "activityType": e.activity_type.value,
                "commentId": e.comment_id,
                "timestamp": to_iso(e.timestamp),
            }
            for e in progress.discussion_activities
        ],
        "lastActive": to_iso(progress.last_active),
    }


def progress_from_document(body: dict[str, Any]) -> StudentProgress:
    return StudentProgress(
        user_id=body["userId"],
        last_active=from_iso(body["lastActive"]),
        lesson_access_history=tuple(
            LessonAccess(
                course_id=e["courseId"],
                section_id=e["sectionId"],
                chapter_id=e["chapterId"],
                access_timestamp=from_iso(e["accessTimestamp"]),
            )
            for e in body.get("lessonAccessHistory", [])
        ),
        quiz_attempts=tuple(
            QuizAttempt(
                quiz_id=e["quizId"],
                course_id=e["courseId"],
                attempt_timestamp=from_iso(e["attemptTimestamp"]),
                score=e["score"],
                time_taken=e.get("timeTaken"),
                completed=e.get("completed", True),
            )
            for e in body.get("quizAttempts", [])
        ),
        discussion_activities=tuple(
            DiscussionActivity(
                course_id=e["courseId"],
                activity_type=ActivityType(e["activityType"]),
                timestamp=from_iso(e["timestamp"]),
                section_id=e.get("sectionId"),
                chapter_id=e.get("chapterId"),
                comment_id=e.get("commentId"),
            )
            for e in body.get("discussionActivities", [])
        ),
    )
