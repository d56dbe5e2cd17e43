"""Course domain models: Course, Exercise, PracticalWork and favorites."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping


@dataclass
class Course:
    """A course owned by one teacher, optionally restricted to one enrollment level."""
    title: str
    teacher_id: int | None = None
    description: str = ""
    comment: str = ""
    attachment_path: str | None = None
    target_level: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Course":
        return cls(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            comment=row["comment"],
            attachment_path=row["attachment_path"],
            teacher_id=row["teacher_id"],
            target_level=row["target_level"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "comment": self.comment,
            "attachment_path": self.attachment_path,
            "teacher_id": self.teacher_id,
            "target_level": self.target_level,
        }


@dataclass
class Exercise:
    """An exercise attached to a course."""
    course_id: int
    title: str
    description: str = ""
    comment: str = ""
    attachment_path: str | None = None
    target_level: str | None = None
    teacher_id: int | None = None
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Exercise":
        return cls(
            id=row["id"],
            course_id=row["course_id"],
            title=row["title"],
            description=row["description"],
            comment=row["comment"],
            attachment_path=row["attachment_path"],
            target_level=row["target_level"],
            teacher_id=row["teacher_id"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "title": self.title,
            "description": self.description,
            "comment": self.comment,
            "attachment_path": self.attachment_path,
            "target_level": self.target_level,
            "teacher_id": self.teacher_id,
        }


@dataclass
class PracticalWork:
    """A practical work attached to a course, with an optional deadline."""
    course_id: int
    title: str
    description: str = ""
    comment: str = ""
    deadline: date | None = None
    attachment_path: str | None = None
    target_level: str | None = None
    teacher_id: int | None = None
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PracticalWork":
        return cls(
            id=row["id"],
            course_id=row["course_id"],
            title=row["title"],
            description=row["description"],
            comment=row["comment"],
            deadline=row["deadline"],
            attachment_path=row["attachment_path"],
            target_level=row["target_level"],
            teacher_id=row["teacher_id"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "title": self.title,
            "description": self.description,
            "comment": self.comment,
            "deadline": self.deadline,
            "attachment_path": self.attachment_path,
            "target_level": self.target_level,
            "teacher_id": self.teacher_id,
        }


@dataclass
class FavoriteCourse:
    student_id: int
    course_id: int
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FavoriteCourse":
        return cls(
            student_id=row["student_id"],
            course_id=row["course_id"],
            created_at=row["created_at"],
        )
