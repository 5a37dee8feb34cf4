from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from lms_api.api.dependencies import CurrentUser, get_quiz_service
from lms_api.api.ratelimit import require_rate_limit
from lms_api.repos.quiz_repo import question_to_document, quiz_to_document
from lms_api.services.quizzes_service import QuizService

router = APIRouter(prefix="/quizzes", tags=["quizzes"])

Quizzes = Annotated[QuizService, Depends(get_quiz_service)]


# --- Request schemas --------------------------------------------------------


class OptionIn(BaseModel):
    id: str | None = None
    text: str
    isCorrect: bool = False


class QuestionIn(BaseModel):
    questionId: str | None = None
    text: str
    type: str
    options: list[OptionIn] = []
    points: float = 1
    correctAnswerExplanation: str = ""


class QuizCreateIn(BaseModel):
    courseId: str | None = None
    title: str | None = None
    description: str | None = None
    timeLimit: int | None = None
    passingScore: float | None = None
    shuffleQuestions: bool | None = None


class QuizUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    timeLimit: int | None = None
    passingScore: float | None = None
    shuffleQuestions: bool | None = None
    questions: list[QuestionIn] | None = None


class QuestionCreateIn(BaseModel):
    text: str | None = None
    type: str | None = None
    options: list[OptionIn] | None = None
    points: float | None = None
    correctAnswerExplanation: str | None = None


class QuestionUpdateIn(BaseModel):
    text: str | None = None
    type: str | None = None
    options: list[OptionIn] | None = None
    points: float | None = None
    correctAnswerExplanation: str | None = None


# --- Quizzes ----------------------------------------------------------------


@router.get("")
async def list_quizzes(quizzes: Quizzes, courseId: str | None = None) -> dict:
    found = await quizzes.list_quizzes(courseId)
    return {
        "message": "Quizzes retrieved successfully",
        "data": [quiz_to_document(q) for q in found],
    }


@router.get("/{quiz_id}")
async def get_quiz(quiz_id: str, quizzes: Quizzes) -> dict:
    quiz = await quizzes.get_quiz(quiz_id)
    return {"message": "Quiz retrieved successfully", "data": quiz_to_document(quiz)}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit())],
)
async def create_quiz(
    payload: QuizCreateIn,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    quiz = await quizzes.create_quiz(
        principal,
        course_id=payload.courseId,
        title=payload.title,
        description=payload.description,
        time_limit=payload.timeLimit,
        passing_score=payload.passingScore,
        shuffle_questions=payload.shuffleQuestions,
    )
    return {"message": "Quiz created successfully", "data": quiz_to_document(quiz)}


@router.put("/{quiz_id}", dependencies=[Depends(require_rate_limit())])
async def update_quiz(
    quiz_id: str,
    payload: QuizUpdateIn,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    quiz = await quizzes.update_quiz(
        principal, quiz_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {"message": "Quiz updated successfully", "data": quiz_to_document(quiz)}


@router.delete("/{quiz_id}", dependencies=[Depends(require_rate_limit())])
async def delete_quiz(
    quiz_id: str,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    quiz = await quizzes.delete_quiz(principal, quiz_id)
    return {"message": "Quiz deleted successfully", "data": quiz_to_document(quiz)}


# --- Questions --------------------------------------------------------------


@router.post(
    "/{quiz_id}/questions",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit())],
)
async def add_question(
    quiz_id: str,
    payload: QuestionCreateIn,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    question = await quizzes.add_question(
        principal,
        quiz_id,
        text=payload.text,
        type=payload.type,
        options=(
            None
            if payload.options is None
            else [o.model_dump(exclude_none=True) for o in payload.options]
        ),
        points=payload.points,
        correct_answer_explanation=payload.correctAnswerExplanation,
    )
    return {
        "message": "Question added successfully",
        "data": question_to_document(question),
    }


@router.put(
    "/{quiz_id}/questions/{question_id}",
    dependencies=[Depends(require_rate_limit())],
)
async def update_question(
    quiz_id: str,
    question_id: str,
    payload: QuestionUpdateIn,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    question = await quizzes.update_question(
        principal,
        quiz_id,
        question_id,
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    return {
        "message": "Question updated successfully",
        "data": question_to_document(question),
    }


@router.delete(
    "/{quiz_id}/questions/{question_id}",
    dependencies=[Depends(require_rate_limit())],
)
async def delete_question(
    quiz_id: str,
    question_id: str,
    principal: CurrentUser,
    quizzes: Quizzes,
) -> dict:
    question = await quizzes.delete_question(principal, quiz_id, question_id)
    return {
        "message": "Question deleted successfully",
        "data": question_to_document(question),
    }
