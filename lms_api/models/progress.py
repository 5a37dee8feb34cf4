from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum


class ActivityType(StrEnum):
    COMMENT = "Comment"
    REPLY = "Reply"
    REACTION = "Reaction"


@dataclass(frozen=True, slots=True)
class LessonAccess:
    """One instant of a student opening a chapter."""

    course_id: str
    section_id: str
    chapter_id: str
    access_timestamp: datetime


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    quiz_id: str
    course_id: str
    attempt_timestamp: datetime
    score: float
    time_taken: float | None = None
    completed: bool = True


@dataclass(frozen=True, slots=True)
class DiscussionActivity:
    course_id: str
    activity_type: ActivityType
    timestamp: datetime
    section_id: str | None = None
    chapter_id: str | None = None
    comment_id: str | None = None


@dataclass(frozen=True, slots=True)
class StudentProgress:
    """Per-student aggregate of three append-only event logs.

    Insertion order of each log is chronological order.  ``version`` is
    the store's compare-and-swap token: 0 for a record that has never
    been persisted.
    """

    user_id: str
    last_active: datetime
    lesson_access_history: tuple[LessonAccess, ...] = ()
    quiz_attempts: tuple[QuizAttempt, ...] = ()
    discussion_activities: tuple[DiscussionActivity, ...] = ()
    version: int = field(default=0, compare=False)

    @staticmethod
    def new(*, user_id: str, now: datetime) -> StudentProgress:
        return StudentProgress(user_id=user_id, last_active=now)

    def with_lesson_access(self, event: LessonAccess) -> StudentProgress:
        return replace(
            self,
            lesson_access_history=(*self.lesson_access_history, event),
            last_active=event.access_timestamp,
        )

    def with_quiz_attempt(self, event: QuizAttempt) -> StudentProgress:
        return replace(
            self,
            quiz_attempts=(*self.quiz_attempts, event),
            last_active=event.attempt_timestamp,
        )

    def with_discussion_activity(self, event: DiscussionActivity) -> StudentProgress:
        return replace(
            self,
            discussion_activities=(*self.discussion_activities, event),
            last_active=event.timestamp,
        )
