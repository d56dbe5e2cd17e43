from dataclasses import replace
from typing import Generator

import pytest

from LearningAssistantApp.application import LearningAssistantApplication
from LearningAssistantApp.core.config import Settings
from LearningAssistantApp.core.security import PasswordHasher
from LearningAssistantApp.courses.models import Course
from LearningAssistantApp.database.connection import ConnectionProvider
from LearningAssistantApp.learning.models import Answer, Quiz
from LearningAssistantApp.users.models import User

FAST_HASH_METHOD = "pbkdf2:sha256:1000"


@pytest.fixture
def test_settings() -> Settings:
    """In-memory SQLite and a cheap hash so tests stay fast."""
    return replace(Settings(), database_url="sqlite://", password_hash_method=FAST_HASH_METHOD)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(FAST_HASH_METHOD)


@pytest.fixture
def provider() -> Generator[ConnectionProvider, None, None]:
    provider = ConnectionProvider("sqlite://")
    yield provider
    provider.close()


@pytest.fixture
def app(test_settings: Settings, provider: ConnectionProvider) -> Generator[LearningAssistantApplication, None, None]:
    """A started application: schema created and default allowlist seeded."""
    application = LearningAssistantApplication(test_settings, provider=provider)
    application.start()
    yield application
    application.shutdown()


@pytest.fixture
def teacher(app: LearningAssistantApplication) -> User:
    return app.auth.signup("Prof Benali", "UNTS00000001", "teacher", "teach3r").user


@pytest.fixture
def other_teacher(app: LearningAssistantApplication) -> User:
    return app.auth.signup("Prof Saadi", "UNTS00000002", "teacher", "teach3r").user


@pytest.fixture
def student(app: LearningAssistantApplication) -> User:
    """Student enrolled in L1."""
    return app.auth.signup("Amina", "UNST00000001", "student", "p@ss1").user


@pytest.fixture
def other_student(app: LearningAssistantApplication) -> User:
    """Student enrolled in L2."""
    return app.auth.signup("Yacine", "UNST00000002", "student", "p@ss2").user


@pytest.fixture
def course(app: LearningAssistantApplication, teacher: User) -> Course:
    return app.course_service.create_course(teacher, Course(title="Java basics", description="OOP"))


@pytest.fixture
def quiz(app: LearningAssistantApplication, teacher: User, course: Course) -> Quiz:
    """A quiz with two questions of two answers each; the first answer is the correct one."""
    quiz = app.course_service.publish_quiz(teacher, course.id, Quiz(course_id=course.id, title="Loops"))
    app.course_service.add_question(
        teacher, quiz.id, "Which loop runs at least once?",
        [Answer(None, "do-while", True), Answer(None, "for", False)]
    )
    app.course_service.add_question(
        teacher, quiz.id, "Keyword to leave a loop?",
        [Answer(None, "break", True), Answer(None, "goto", False)]
    )
    return quiz
