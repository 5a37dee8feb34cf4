from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

COURSE_LEVELS = ("Beginner", "Intermediate", "Advanced")
COURSE_STATUSES = ("Draft", "Published")
CHAPTER_TYPES = ("Text", "Quiz", "Video")


@dataclass(frozen=True, slots=True)
class Chapter:
    chapter_id: str
    title: str
    type: str = "Text"  # Text|Quiz|Video
    content: str = ""
    video: str | None = None


@dataclass(frozen=True, slots=True)
class Section:
    section_id: str
    section_title: str
    section_description: str = ""
    chapters: tuple[Chapter, ...] = ()


@dataclass(frozen=True, slots=True)
class Enrollment:
    user_id: str


@dataclass(frozen=True, slots=True)
class Course:
    """A course owned by one teacher; ``teacher_id`` is the owner field."""

    course_id: str
    teacher_id: str
    teacher_name: str
    created_at: datetime
    updated_at: datetime
    title: str = "Untitled Course"
    description: str = ""
    category: str = "Uncategorized"
    image: str = ""
    price: float | None = None
    level: str = "Beginner"  # Beginner|Intermediate|Advanced
    status: str = "Draft"  # Draft|Published
    sections: tuple[Section, ...] = ()
    enrollments: tuple[Enrollment, ...] = ()
    version: int = field(default=0, compare=False)

    @staticmethod
    def new(*, teacher_id: str, teacher_name: str, now: datetime) -> Course:
        return Course(
            course_id=str(uuid4()),
            teacher_id=teacher_id,
            teacher_name=teacher_name,
            created_at=now,
            updated_at=now,
        )

    def is_taught_by(self, user_id: str) -> bool:
        return self.teacher_id == user_id
