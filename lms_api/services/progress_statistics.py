"""Statistics Aggregator: summary metrics derived from a progress record.

Computed from the three event logs on every call; nothing is cached or
persisted, so the numbers can never drift from the logs.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from lms_api.models.progress import ActivityType, StudentProgress
from lms_api.repos.progress_repo import ProgressRepo
from lms_api.services.errors import NotFoundError

TOP_COURSES_LIMIT = 5


@dataclass(frozen=True, slots=True)
class CourseFrequency:
    value: str
    count: int


@dataclass(frozen=True, slots=True)
class DiscussionBreakdown:
    comments: int
    replies: int
    reactions: int


@dataclass(frozen=True, slots=True)
class ProgressStatistics:
    total_lessons_accessed: int
    unique_lessons_accessed: int
    total_quiz_attempts: int
    unique_quiz_attempts: int
    average_quiz_score: float
    total_discussion_activities: int
    discussion_breakdown: DiscussionBreakdown
    most_accessed_courses: tuple[CourseFrequency, ...]
    last_active: datetime


def most_accessed_courses(
    progress: StudentProgress, limit: int = TOP_COURSES_LIMIT
) -> tuple[CourseFrequency, ...]:
    """Top ``limit`` course ids by access count, highest first.

    Counter keeps first-seen order and most_common() sorts stably, so
    courses with equal counts stay in order of first appearance.
    """
    counts = Counter(access.course_id for access in progress.lesson_access_history)
    return tuple(
        CourseFrequency(value=course_id, count=count)
        for course_id, count in counts.most_common(limit)
    )


def compute_statistics(progress: StudentProgress) -> ProgressStatistics:
    lessons = progress.lesson_access_history
    attempts = progress.quiz_attempts
    activities = progress.discussion_activities

    # 0 for "no attempts yet" is kept for API compatibility even though it
    # reads the same as a genuine 0% average.
    average = sum(a.score for a in attempts) / len(attempts) if attempts else 0

    by_type = Counter(a.activity_type for a in activities)

    return ProgressStatistics(
        total_lessons_accessed=len(lessons),
        unique_lessons_accessed=len(
            {(a.course_id, a.section_id, a.chapter_id) for a in lessons}
        ),
        total_quiz_attempts=len(attempts),
        unique_quiz_attempts=len({a.quiz_id for a in attempts}),
        average_quiz_score=average,
        total_discussion_activities=len(activities),
        discussion_breakdown=DiscussionBreakdown(
            comments=by_type[ActivityType.COMMENT],
            replies=by_type[ActivityType.REPLY],
            reactions=by_type[ActivityType.REACTION],
        ),
        most_accessed_courses=most_accessed_courses(progress),
        last_active=progress.last_active,
    )


async def load_statistics(repo: ProgressRepo, user_id: str) -> ProgressStatistics:
    progress = await repo.get(user_id)
    if progress is None:
        raise NotFoundError("No progress data found for this student")
    return compute_statistics(progress)
