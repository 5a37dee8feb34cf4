"""Event Recorder: validates one progress event and appends it.

Every write follows the same shape:

  1. validate the event's required fields            -> ValidationError
  2. read the student's record (or start an empty one)
  3. append the event to the end of its log and bump lastActive
  4. conditionally write the whole record back

Step 4 is a compare-and-swap on the record version.  If another request
wrote the record between our read and our write, the store raises
VersionConflict and we go back to step 2 with the fresh record, re-
applying the same event (same timestamp).  Both appends survive; only a
persistent storm of conflicts makes the request fail with StoreError.

The caller's identity has already been checked by the Access Gate
(lms_api/api/dependencies.py::require_self) before any of this runs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime

from lms_api.core.clock import Clock, utc_now
from lms_api.core.metrics import PROGRESS_EVENTS_RECORDED, STORE_CAS_CONFLICTS
from lms_api.models.progress import (
    ActivityType,
    DiscussionActivity,
    LessonAccess,
    QuizAttempt,
    StudentProgress,
)
from lms_api.repos.progress_repo import ProgressRepo
from lms_api.services.errors import StoreError, ValidationError, VersionConflict

logger = logging.getLogger(__name__)

_VALID_ACTIVITY_TYPES = ", ".join(t.value for t in ActivityType)


def _missing(fields: dict[str, object]) -> list[str]:
    return [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]


def _require(fields: dict[str, object]) -> None:
    missing = _missing(fields)
    if missing:
        logger.warning("Rejected progress event, missing fields=%s", missing)
        raise ValidationError(
            f"Missing required fields: {', '.join(fields)} are required"
        )


class ProgressRecorder:
    def __init__(
        self,
        repo: ProgressRepo,
        *,
        clock: Clock = utc_now,
        max_attempts: int = 5,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._max_attempts = max_attempts

    async def get_or_create(self, user_id: str) -> tuple[StudentProgress, bool]:
        """Return the user's record, creating an empty one on first access.

        The second element is True when this call created the record.
        """
        existing = await self._repo.get(user_id)
        if existing is not None:
            return existing, False

        try:
            created = await self._repo.save(
                StudentProgress.new(user_id=user_id, now=self._clock())
            )
        except VersionConflict:
            # A concurrent request created it first; theirs is just as empty
            # or already holds an event, so return what is stored.
            STORE_CAS_CONFLICTS.inc()
            stored = await self._repo.get(user_id)
            if stored is None:
                raise StoreError(
                    "Error retrieving student progress",
                    detail="record vanished after a create conflict",
                ) from None
            return stored, False

        logger.info("Initialized progress record user=%s", user_id)
        return created, True

    async def record_lesson_access(
        self,
        user_id: str,
        *,
        course_id: str | None,
        section_id: str | None,
        chapter_id: str | None,
    ) -> StudentProgress:
        _require({"courseId": course_id, "sectionId": section_id, "chapterId": chapter_id})
        now = self._clock()
        event = LessonAccess(
            course_id=course_id,  # type: ignore[arg-type]
            section_id=section_id,  # type: ignore[arg-type]
            chapter_id=chapter_id,  # type: ignore[arg-type]
            access_timestamp=now,
        )
        return await self._append(
            user_id, "lesson_access", now, lambda p: p.with_lesson_access(event)
        )

    async def record_quiz_attempt(
        self,
        user_id: str,
        *,
        quiz_id: str | None,
        course_id: str | None,
        score: float | None,
        time_taken: float | None = None,
        completed: bool | None = None,
    ) -> StudentProgress:
        _require({"quizId": quiz_id, "courseId": course_id, "score": score})
        if isinstance(score, bool) or not isinstance(score, int | float):
            raise ValidationError("score must be a number")
        # json.loads accepts NaN and Infinity
        if not math.isfinite(score):
            raise ValidationError("score must be a number")
        if time_taken is not None and not math.isfinite(time_taken):
            raise ValidationError("timeTaken must be a number")
        if time_taken is not None and time_taken < 0:
            raise ValidationError("timeTaken must not be negative")

        now = self._clock()
        event = QuizAttempt(
            quiz_id=quiz_id,  # type: ignore[arg-type]
            course_id=course_id,  # type: ignore[arg-type]
            attempt_timestamp=now,
            score=score,
            time_taken=time_taken,
            completed=True if completed is None else completed,
        )
        return await self._append(
            user_id, "quiz_attempt", now, lambda p: p.with_quiz_attempt(event)
        )

    async def record_discussion_activity(
        self,
        user_id: str,
        *,
        course_id: str | None,
        activity_type: str | None,
        section_id: str | None = None,
        chapter_id: str | None = None,
        comment_id: str | None = None,
    ) -> StudentProgress:
        _require({"courseId": course_id, "activityType": activity_type})
        try:
            kind = ActivityType(activity_type)
        except ValueError:
            logger.warning("Rejected discussion activity type=%r", activity_type)
            raise ValidationError(
                f"Invalid activityType. Must be one of: {_VALID_ACTIVITY_TYPES}"
            ) from None

        now = self._clock()
        event = DiscussionActivity(
            course_id=course_id,  # type: ignore[arg-type]
            activity_type=kind,
            timestamp=now,
            section_id=section_id,
            chapter_id=chapter_id,
            comment_id=comment_id,
        )
        return await self._append(
            user_id,
            "discussion_activity",
            now,
            lambda p: p.with_discussion_activity(event),
        )

    async def _append(
        self,
        user_id: str,
        kind: str,
        now: datetime,
        apply: Callable[[StudentProgress], StudentProgress],
    ) -> StudentProgress:
        for attempt in range(1, self._max_attempts + 1):
            current = await self._repo.get(user_id)
            if current is None:
                current = StudentProgress.new(user_id=user_id, now=now)

            try:
                saved = await self._repo.save(apply(current))
            except VersionConflict:
                STORE_CAS_CONFLICTS.inc()
                logger.info(
                    "Concurrent write on progress user=%s kind=%s attempt=%d",
                    user_id,
                    kind,
                    attempt,
                )
                continue

            PROGRESS_EVENTS_RECORDED.labels(kind=kind).inc()
            logger.info(
                "Recorded %s user=%s",
                kind,
                user_id,
                extra={"user_id": user_id, "event_kind": kind},
            )
            return saved

        logger.error(
            "Gave up recording %s for user=%s after %d conflicting writes",
            kind,
            user_id,
            self._max_attempts,
        )
        raise StoreError(
            "Error recording progress",
            detail=f"record kept changing during {self._max_attempts} attempts",
        )
