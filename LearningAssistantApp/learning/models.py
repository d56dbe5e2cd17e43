"""Learning domain models: quizzes, questions, answers, results, submissions and notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping


@dataclass
class Quiz:
    """A multiple-choice quiz attached to a course."""
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
    def from_row(cls, row: Mapping[str, Any]) -> "Quiz":
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
class Answer:
    """A candidate answer to a question; more than one may be correct."""
    question_id: int | None
    answer_text: str
    is_correct: bool = False
    id: int | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Answer":
        return cls(
            id=row["id"],
            question_id=row["question_id"],
            answer_text=row["answer_text"],
            is_correct=bool(row["is_correct"]),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "answer_text": self.answer_text,
            "is_correct": self.is_correct,
        }


@dataclass
class Question:
    """A quiz question. ``answers`` is filled in memory only, never persisted with the row."""
    quiz_id: int
    question_text: str
    id: int | None = None
    answers: List[Answer] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Question":
        return cls(
            id=row["id"],
            quiz_id=row["quiz_id"],
            question_text=row["question_text"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "question_text": self.question_text,
        }

    def correct_answer_ids(self) -> set[int]:
        return {answer.id for answer in self.answers if answer.is_correct}


@dataclass
class QuizResult:
    """A student's scored attempt at a quiz; at most one per (student, quiz)."""
    quiz_id: int
    student_id: int
    score: int = 0
    is_completed: bool = True
    id: int | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "QuizResult":
        return cls(
            id=row["id"],
            quiz_id=row["quiz_id"],
            student_id=row["student_id"],
            score=row["score"],
            is_completed=bool(row["is_completed"]),
            submitted_at=row["submitted_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "score": self.score,
            "is_completed": self.is_completed,
        }


@dataclass
class StudentAnswer:
    """The answer a student picked for one question of a quiz result (None if skipped)."""
    quiz_result_id: int | None
    question_id: int
    selected_answer_id: int | None = None
    is_correct: bool = False
    id: int | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StudentAnswer":
        return cls(
            id=row["id"],
            quiz_result_id=row["quiz_result_id"],
            question_id=row["question_id"],
            selected_answer_id=row["selected_answer_id"],
            is_correct=bool(row["is_correct"]),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "quiz_result_id": self.quiz_result_id,
            "question_id": self.question_id,
            "selected_answer_id": self.selected_answer_id,
            "is_correct": self.is_correct,
        }


@dataclass
class ExerciseSubmission:
    exercise_id: int
    student_id: int
    content: str
    id: int | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ExerciseSubmission":
        return cls(
            id=row["id"],
            exercise_id=row["exercise_id"],
            student_id=row["student_id"],
            content=row["content"],
            submitted_at=row["submitted_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "exercise_id": self.exercise_id,
            "student_id": self.student_id,
            "content": self.content,
        }


@dataclass
class PracticalWorkSubmission:
    practical_work_id: int
    student_id: int
    file_path: str
    id: int | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PracticalWorkSubmission":
        return cls(
            id=row["id"],
            practical_work_id=row["practical_work_id"],
            student_id=row["student_id"],
            file_path=row["file_path"],
            submitted_at=row["submitted_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "practical_work_id": self.practical_work_id,
            "student_id": self.student_id,
            "file_path": self.file_path,
        }


@dataclass
class Notification:
    """A message addressed to one user; new notifications are unseen."""
    user_id: int
    message: str
    seen: bool = False
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Notification":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            message=row["message"],
            seen=bool(row["seen"]),
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "message": self.message,
            "seen": self.seen,
        }
