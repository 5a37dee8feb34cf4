"""Quiz catalog operations.

A quiz belongs to a course; whoever teaches the course may change the
quiz and its questions.  Every write re-checks that ownership against
the current course record.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import uuid4

from lms_api.core.clock import Clock, utc_now
from lms_api.models.principal import Principal
from lms_api.models.quiz import QUESTION_TYPES, Question, Quiz
from lms_api.repos.course_repo import CourseRepo
from lms_api.repos.quiz_repo import (
    QuizRepo,
    question_from_document,
    question_to_document,
    quiz_from_document,
    quiz_to_document,
)
from lms_api.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    VersionConflict,
)

logger = logging.getLogger(__name__)


def _options_with_ids(options: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [{**o, "id": o.get("id") or str(uuid4())} for o in options or []]


def _check_question(question: dict[str, Any]) -> None:
    if question.get("type") not in QUESTION_TYPES:
        raise ValidationError(
            f"Invalid question type. Must be one of: {', '.join(QUESTION_TYPES)}"
        )
    if question["type"] == "MultipleChoice" and len(question.get("options") or []) < 2:
        raise ValidationError("Multiple choice questions require at least 2 options")


class QuizService:
    def __init__(
        self,
        repo: QuizRepo,
        courses: CourseRepo,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repo
        self._courses = courses
        self._clock = clock

    async def list_quizzes(self, course_id: str | None = None) -> list[Quiz]:
        return await self._repo.list_by_course(course_id)

    async def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = await self._repo.get(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")
        return quiz

    async def _require_teacher(
        self, principal: Principal, course_id: str, denied: str
    ) -> None:
        course = await self._courses.get(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        if not principal.owns(course.teacher_id):
            logger.warning(
                "Access denied: user=%s is not the teacher of course=%s",
                principal.user_id,
                course_id,
            )
            raise AuthorizationError(denied)

    async def _owned_quiz(self, principal: Principal, quiz_id: str, denied: str) -> Quiz:
        quiz = await self.get_quiz(quiz_id)
        await self._require_teacher(principal, quiz.course_id, denied)
        return quiz

    async def create_quiz(
        self,
        principal: Principal,
        *,
        course_id: str | None,
        title: str | None,
        description: str | None = None,
        time_limit: int | None = None,
        passing_score: float | None = None,
        shuffle_questions: bool | None = None,
    ) -> Quiz:
        if not course_id or not title:
            raise ValidationError("Course ID and title are required")
        await self._require_teacher(
            principal, course_id, "Not authorized to create quizzes for this course"
        )

        quiz = Quiz.new(
            course_id=course_id,
            title=title,
            now=self._clock(),
            description=description or "",
            time_limit=0 if time_limit is None else time_limit,
            passing_score=70 if passing_score is None else passing_score,
            shuffle_questions=bool(shuffle_questions),
        )
        saved = await self._save(quiz)
        logger.info("Created quiz id=%s course=%s", saved.quiz_id, course_id)
        return saved

    async def update_quiz(
        self, principal: Principal, quiz_id: str, changes: dict[str, Any]
    ) -> Quiz:
        """Apply a partial update given in wire (camelCase) field names."""
        quiz = await self._owned_quiz(principal, quiz_id, "Not authorized to update this quiz")

        if "questions" in changes:
            questions = []
            for q in changes["questions"]:
                q = {
                    **q,
                    "questionId": q.get("questionId") or str(uuid4()),
                    "options": _options_with_ids(q.get("options")),
                }
                _check_question(q)
                questions.append(q)
            changes = {**changes, "questions": questions}

        merged = {**quiz_to_document(quiz), **changes}
        updated = replace(
            quiz_from_document(merged),
            quiz_id=quiz.quiz_id,
            course_id=quiz.course_id,
            created_at=quiz.created_at,
            updated_at=self._clock(),
            version=quiz.version,
        )
        return await self._save(updated)

    async def delete_quiz(self, principal: Principal, quiz_id: str) -> Quiz:
        quiz = await self._owned_quiz(principal, quiz_id, "Not authorized to delete this quiz")
        await self._repo.delete(quiz_id)
        logger.info("Deleted quiz id=%s", quiz_id)
        return quiz

    async def add_question(
        self,
        principal: Principal,
        quiz_id: str,
        *,
        text: str | None,
        type: str | None,
        options: list[dict[str, Any]] | None = None,
        points: float | None = None,
        correct_answer_explanation: str | None = None,
    ) -> Question:
        quiz = await self._owned_quiz(principal, quiz_id, "Not authorized to modify this quiz")
        if not text or not type:
            raise ValidationError("Question text and type are required")

        doc = {
            "questionId": str(uuid4()),
            "text": text,
            "type": type,
            "options": _options_with_ids(options),
            "points": points or 1,
            "correctAnswerExplanation": correct_answer_explanation or "",
        }
        _check_question(doc)
        question = question_from_document(doc)

        await self._save(
            replace(
                quiz,
                questions=(*quiz.questions, question),
                updated_at=self._clock(),
            )
        )
        return question

    async def update_question(
        self,
        principal: Principal,
        quiz_id: str,
        question_id: str,
        changes: dict[str, Any],
    ) -> Question:
        quiz = await self._owned_quiz(principal, quiz_id, "Not authorized to modify this quiz")
        index = quiz.find_question(question_id)
        if index is None:
            raise NotFoundError("Question not found")

        if "options" in changes:
            changes = {**changes, "options": _options_with_ids(changes["options"])}
        merged = {**question_to_document(quiz.questions[index]), **changes}
        merged["questionId"] = question_id
        if not merged.get("text"):
            raise ValidationError("Question text must not be empty")
        _check_question(merged)
        question = question_from_document(merged)

        questions = list(quiz.questions)
        questions[index] = question
        await self._save(
            replace(quiz, questions=tuple(questions), updated_at=self._clock())
        )
        return question

    async def delete_question(
        self, principal: Principal, quiz_id: str, question_id: str
    ) -> Question:
        quiz = await self._owned_quiz(principal, quiz_id, "Not authorized to modify this quiz")
        index = quiz.find_question(question_id)
        if index is None:
            raise NotFoundError("Question not found")

        removed = quiz.questions[index]
        remaining = quiz.questions[:index] + quiz.questions[index + 1 :]
        await self._save(replace(quiz, questions=remaining, updated_at=self._clock()))
        return removed

    async def _save(self, quiz: Quiz) -> Quiz:
        try:
            return await self._repo.save(quiz)
        except VersionConflict:
            raise ConflictError("Quiz was modified concurrently; retry the request") from None
