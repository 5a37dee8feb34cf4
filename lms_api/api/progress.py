"""Student progress endpoints.

Every route is gated by require_self: the verified caller must be the
``userId`` in the path.  Writes append one event to the student's record
and return the whole updated record.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from lms_api.api.dependencies import (
    SelfUser,
    get_progress_recorder,
    get_progress_repo,
)
from lms_api.api.ratelimit import require_rate_limit
from lms_api.core.clock import to_iso
from lms_api.repos.progress_repo import ProgressRepo, progress_to_document
from lms_api.services.progress_recorder import ProgressRecorder
from lms_api.services.progress_statistics import ProgressStatistics, load_statistics

router = APIRouter(prefix="/progress", tags=["progress"])

Recorder = Annotated[ProgressRecorder, Depends(get_progress_recorder)]


# --- Request schemas --------------------------------------------------------
# Every field is optional here so a missing one is reported by the recorder
# as a 400 listing all required fields, instead of a framework 422.


class LessonAccessIn(BaseModel):
    courseId: str | None = None
    sectionId: str | None = None
    chapterId: str | None = None


class QuizAttemptIn(BaseModel):
    quizId: str | None = None
    courseId: str | None = None
    score: Any = None
    timeTaken: float | None = None
    completed: bool | None = None


class DiscussionActivityIn(BaseModel):
    courseId: str | None = None
    activityType: str | None = None
    sectionId: str | None = None
    chapterId: str | None = None
    commentId: str | None = None


def _statistics_body(stats: ProgressStatistics) -> dict[str, Any]:
    return {
        "totalLessonsAccessed": stats.total_lessons_accessed,
        "uniqueLessonsAccessed": stats.unique_lessons_accessed,
        "totalQuizAttempts": stats.total_quiz_attempts,
        "uniqueQuizAttempts": stats.unique_quiz_attempts,
        "averageQuizScore": stats.average_quiz_score,
        "totalDiscussionActivities": stats.total_discussion_activities,
        "discussionBreakdown": {
            "comments": stats.discussion_breakdown.comments,
            "replies": stats.discussion_breakdown.replies,
            "reactions": stats.discussion_breakdown.reactions,
        },
        "mostAccessedCourses": [
            {"value": c.value, "count": c.count} for c in stats.most_accessed_courses
        ],
        "lastActive": to_iso(stats.last_active),
    }


# --- GET /progress/{userId} -------------------------------------------------


@router.get("/{user_id}")
async def get_student_progress(
    user_id: str,
    _principal: SelfUser,
    recorder: Recorder,
) -> dict:
    progress, created = await recorder.get_or_create(user_id)
    return {
        "message": (
            "Student progress initialized"
            if created
            else "Student progress retrieved successfully"
        ),
        "data": progress_to_document(progress),
    }


# --- POST /progress/{userId}/... ---------------------------------------------


@router.post("/{user_id}/lesson-access", dependencies=[Depends(require_rate_limit())])
async def record_lesson_access(
    user_id: str,
    payload: LessonAccessIn,
    _principal: SelfUser,
    recorder: Recorder,
) -> dict:
    progress = await recorder.record_lesson_access(
        user_id,
        course_id=payload.courseId,
        section_id=payload.sectionId,
        chapter_id=payload.chapterId,
    )
    return {
        "message": "Lesson access recorded successfully",
        "data": progress_to_document(progress),
    }


@router.post("/{user_id}/quiz-attempt", dependencies=[Depends(require_rate_limit())])
async def record_quiz_attempt(
    user_id: str,
    payload: QuizAttemptIn,
    _principal: SelfUser,
    recorder: Recorder,
) -> dict:
    progress = await recorder.record_quiz_attempt(
        user_id,
        quiz_id=payload.quizId,
        course_id=payload.courseId,
        score=payload.score,
        time_taken=payload.timeTaken,
        completed=payload.completed,
    )
    return {
        "message": "Quiz attempt recorded successfully",
        "data": progress_to_document(progress),
    }


@router.post(
    "/{user_id}/discussion-activity", dependencies=[Depends(require_rate_limit())]
)
async def record_discussion_activity(
    user_id: str,
    payload: DiscussionActivityIn,
    _principal: SelfUser,
    recorder: Recorder,
) -> dict:
    progress = await recorder.record_discussion_activity(
        user_id,
        course_id=payload.courseId,
        activity_type=payload.activityType,
        section_id=payload.sectionId,
        chapter_id=payload.chapterId,
        comment_id=payload.commentId,
    )
    return {
        "message": "Discussion activity recorded successfully",
        "data": progress_to_document(progress),
    }


# --- GET /progress/{userId}/statistics --------------------------------------


@router.get("/{user_id}/statistics")
async def get_progress_statistics(
    user_id: str,
    _principal: SelfUser,
    repo: Annotated[ProgressRepo, Depends(get_progress_repo)],
) -> dict:
    stats = await load_statistics(repo, user_id)
    return {
        "message": "Progress statistics retrieved successfully",
        "data": _statistics_body(stats),
    }
