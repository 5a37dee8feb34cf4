from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

QUESTION_TYPES = ("MultipleChoice", "Essay")


@dataclass(frozen=True, slots=True)
class Option:
    id: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True, slots=True)
class Question:
    question_id: str
    text: str
    type: str  # MultipleChoice|Essay
    options: tuple[Option, ...] = ()
    points: float = 1
    correct_answer_explanation: str = ""


@dataclass(frozen=True, slots=True)
class Quiz:
    quiz_id: str
    course_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    time_limit: int = 0  # minutes; 0 means no limit
    passing_score: float = 70  # percentage
    shuffle_questions: bool = False
    questions: tuple[Question, ...] = ()
    version: int = field(default=0, compare=False)

    @staticmethod
    def new(
        *,
        course_id: str,
        title: str,
        now: datetime,
        description: str = "",
        time_limit: int = 0,
        passing_score: float = 70,
        shuffle_questions: bool = False,
    ) -> Quiz:
        return Quiz(
            quiz_id=str(uuid4()),
            course_id=course_id,
            title=title,
            created_at=now,
            updated_at=now,
            description=description,
            time_limit=time_limit,
            passing_score=passing_score,
            shuffle_questions=shuffle_questions,
        )

    def find_question(self, question_id: str) -> int | None:
        for index, question in enumerate(self.questions):
            if question.question_id == question_id:
                return index
        return None
