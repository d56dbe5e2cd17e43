"""Relational schema for the learning assistant.

Tables are declared once here and created in dependency order by the
bootstrapper. Child rows cascade with their parent so deleting a course or a
quiz never leaves orphans behind.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)

metadata = MetaData()

CANONICAL_TABLE = "users"

ROLE_LENGTH = 16
LEVEL_LENGTH = 8


def _created_at(name: str = "created_at") -> Column:
    return Column(name, DateTime, nullable=False, server_default=func.current_timestamp())


users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("matricule", String(32), nullable=False),
    Column("role", String(ROLE_LENGTH), nullable=False),
    Column("enrollment_level", String(LEVEL_LENGTH), nullable=True),
    Column("university_name", String(255), nullable=True),
    _created_at(),
    UniqueConstraint("matricule", name="uq_users_matricule"),
)

valid_ids = Table(
    "valid_ids", metadata,
    Column("matricule", String(32), primary_key=True),
    Column("role", String(ROLE_LENGTH), nullable=False),
    Column("enrollment_level", String(LEVEL_LENGTH), nullable=True),
    Column("university_name", String(255), nullable=True),
)

courses = Table(
    "courses", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("comment", Text, nullable=False, default=""),
    Column("attachment_path", String(512), nullable=True),
    Column("teacher_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("target_level", String(LEVEL_LENGTH), nullable=True, index=True),
    _created_at(),
)


def _assignment_columns() -> list:
    return [
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        Column("title", String(255), nullable=False),
        Column("description", Text, nullable=False, default=""),
        Column("comment", Text, nullable=False, default=""),
        Column("attachment_path", String(512), nullable=True),
        Column("target_level", String(LEVEL_LENGTH), nullable=True),
        Column("teacher_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True),
        _created_at(),
    ]


exercises = Table("exercises", metadata, *_assignment_columns())

practical_works = Table(
    "practical_works", metadata,
    *_assignment_columns(),
    Column("deadline", Date, nullable=True),
)

quizzes = Table("quizzes", metadata, *_assignment_columns())

questions = Table(
    "questions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("quiz_id", Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("question_text", Text, nullable=False),
)

answers = Table(
    "answers", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("question_id", Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("answer_text", Text, nullable=False),
    Column("is_correct", Boolean, nullable=False, default=False, server_default=text("0")),
)

exercise_submissions = Table(
    "exercise_submissions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("exercise_id", Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("content", Text, nullable=False),
    _created_at("submitted_at"),
)

practical_work_submissions = Table(
    "practical_work_submissions", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("practical_work_id", Integer, ForeignKey("practical_works.id", ondelete="CASCADE"),
           nullable=False, index=True),
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("file_path", String(512), nullable=False),
    _created_at("submitted_at"),
)

quiz_results = Table(
    "quiz_results", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("quiz_id", Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("score", Integer, nullable=False, default=0),
    Column("is_completed", Boolean, nullable=False, default=True, server_default=text("1")),
    _created_at("submitted_at"),
    UniqueConstraint("student_id", "quiz_id", name="uq_quiz_results_student_quiz"),
)

student_answers = Table(
    "student_answers", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("quiz_result_id", Integer, ForeignKey("quiz_results.id", ondelete="CASCADE"),
           nullable=False, index=True),
    Column("question_id", Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
    Column("selected_answer_id", Integer, ForeignKey("answers.id", ondelete="SET NULL"), nullable=True),
    Column("is_correct", Boolean, nullable=False, default=False, server_default=text("0")),
)

notifications = Table(
    "notifications", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("message", Text, nullable=False),
    Column("seen", Boolean, nullable=False, default=False, server_default=text("0")),
    _created_at(),
)

favorite_courses = Table(
    "favorite_courses", metadata,
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    _created_at(),
)
