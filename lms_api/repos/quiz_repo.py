from __future__ import annotations

from dataclasses import replace
from typing import Any

from lms_api.core.clock import from_iso, to_iso
from lms_api.models.quiz import Option, Question, Quiz
from lms_api.repos.document_store import DocumentStore

COLLECTION = "quizzes"


class QuizRepo:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, quiz_id: str) -> Quiz | None:
        doc = await self._store.get(COLLECTION, quiz_id)
        if doc is None:
            return None
        return replace(quiz_from_document(doc.body), version=doc.version)

    async def list_by_course(self, course_id: str | None = None) -> list[Quiz]:
        where = {"courseId": course_id} if course_id else None
        docs = await self._store.scan(COLLECTION, where)
        return [replace(quiz_from_document(d.body), version=d.version) for d in docs]

    async def save(self, quiz: Quiz) -> Quiz:
        stored = await self._store.put(
            COLLECTION,
            quiz.quiz_id,
            quiz_to_document(quiz),
            expected_version=quiz.version,
        )
        return replace(quiz, version=stored.version)

    async def delete(self, quiz_id: str) -> bool:
        return await self._store.delete(COLLECTION, quiz_id)


def question_to_document(question: Question) -> dict[str, Any]:
    return {
        "questionId": question.question_id,
        "text": question.text,
        "type": question.type,
        "options": [
            {"id": o.id, "text": o.text, "isCorrect": o.is_correct}
            for o in question.options
        ],
        "points": question.points,
        "correctAnswerExplanation": question.correct_answer_explanation,
    }


def question_from_document(body: dict[str, Any]) -> Question:
    return Question(
        question_id=body["questionId"],
        text=body["text"],
        type=body["type"],
        options=tuple(
            Option(id=o["id"], text=o["text"], is_correct=o.get("isCorrect", False))
            for o in body.get("options", [])
        ),
        points=body.get("points", 1),
        correct_answer_explanation=body.get("correctAnswerExplanation", ""),
    )


def quiz_to_document(quiz: Quiz) -> dict[str, Any]:
    return {
        "quizId": quiz.quiz_id,
        "courseId": quiz.course_id,
        "title": quiz.title,
        "description": quiz.description,
        "timeLimit": quiz.time_limit,
        "passingScore": quiz.passing_score,
        "shuffleQuestions": quiz.shuffle_questions,
        "questions": [question_to_document(q) for q in quiz.questions],
        "createdAt": to_iso(quiz.created_at),
        "updatedAt": to_iso(quiz.updated_at),
    }


def quiz_from_document(body: dict[str, Any]) -> Quiz:
    return Quiz(
        quiz_id=body["quizId"],
        course_id=body["courseId"],
        title=body["title"],
        created_at=from_iso(body["createdAt"]),
        updated_at=from_iso(body["updatedAt"]),
        description=body.get("description", ""),
        time_limit=body.get("timeLimit", 0),
        passing_score=body.get("passingScore", 70),
        shuffle_questions=body.get("shuffleQuestions", False),
        questions=tuple(question_from_document(q) for q in body.get("questions", [])),
    )
