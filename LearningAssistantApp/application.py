import logging

from LearningAssistantApp.core.config import Settings
from LearningAssistantApp.core.security import PasswordHasher
from LearningAssistantApp.core.session import SessionState
from LearningAssistantApp.courses.repositories import (
    CourseRepository,
    ExerciseRepository,
    FavoriteCourseRepository,
    PracticalWorkRepository,
)
from LearningAssistantApp.database.bootstrap import SchemaBootstrapper
from LearningAssistantApp.database.connection import ConnectionProvider, DatabaseConnectionInterface
from LearningAssistantApp.domain.services.auth_service import AuthService
from LearningAssistantApp.domain.services.course_service import CourseService
from LearningAssistantApp.domain.services.learning_service import LearningService
from LearningAssistantApp.domain.services.statistics_service import StatisticsService
from LearningAssistantApp.learning.repositories import (
    AnswerRepository,
    ExerciseSubmissionRepository,
    NotificationRepository,
    PracticalWorkSubmissionRepository,
    QuestionRepository,
    QuizRepository,
    QuizResultRepository,
    StudentAnswerRepository,
)
from LearningAssistantApp.users.repositories import UserRepository, ValidIDRepository

logger = logging.getLogger(__name__)


class LearningAssistantApplication:
    """Wires one connection, one session and every repository and service around them.

    Each instance is independent, so tests and tools can run several side by side.
    """

    def __init__(
            self,
            settings: Settings,
            provider: DatabaseConnectionInterface | None = None,
            hasher: PasswordHasher | None = None,
            session: SessionState | None = None
    ):
        self.settings = settings
        self.provider = provider or ConnectionProvider(
            settings.database_url_resolved,
            connect_timeout=settings.db_connect_timeout,
            statement_timeout_ms=settings.db_statement_timeout_ms,
            create_if_missing=settings.db_create_if_missing,
        )
        self.hasher = hasher or PasswordHasher(settings.password_hash_method)
        self.session = session or SessionState()
        self.bootstrapper = SchemaBootstrapper(self.provider)

        self.users = UserRepository(self.provider)
        self.valid_ids = ValidIDRepository(self.provider)
        self.courses = CourseRepository(self.provider)
        self.exercises = ExerciseRepository(self.provider)
        self.practical_works = PracticalWorkRepository(self.provider)
        self.favorites = FavoriteCourseRepository(self.provider)
        self.quizzes = QuizRepository(self.provider)
        self.questions = QuestionRepository(self.provider)
        self.answers = AnswerRepository(self.provider)
        self.exercise_submissions = ExerciseSubmissionRepository(self.provider)
        self.practical_work_submissions = PracticalWorkSubmissionRepository(self.provider)
        self.quiz_results = QuizResultRepository(self.provider)
        self.student_answers = StudentAnswerRepository(self.provider)
        self.notifications = NotificationRepository(self.provider)

        self.auth = AuthService(self.users, self.valid_ids, self.hasher, self.session)
        self.course_service = CourseService(
            self.provider,
            self.users,
            self.courses,
            self.exercises,
            self.practical_works,
            self.quizzes,
            self.questions,
            self.answers,
            self.notifications,
            self.favorites
        )
        self.learning_service = LearningService(
            self.provider,
            self.quizzes,
            self.questions,
            self.answers,
            self.quiz_results,
            self.student_answers,
            self.exercises,
            self.practical_works,
            self.exercise_submissions,
            self.practical_work_submissions
        )
        self.statistics = StatisticsService(self.provider)

    def start(self) -> None:
        """Connect and make sure the schema and default allowlist exist."""
        try:
            self.provider.get_connection()
            self.bootstrapper.bootstrap()
        except Exception:
            logger.exception("Application start failed")
            raise
        logger.info("Learning assistant ready")

    def shutdown(self) -> None:
        self.session.logout()
        self.provider.close()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
