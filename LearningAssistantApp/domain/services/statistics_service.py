from typing import Any, Dict
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from LearningAssistantApp.core.choices import UserRole
from LearningAssistantApp.core.exceptions import handle_database_error
from LearningAssistantApp.database.connection import DatabaseConnectionInterface

logger = logging.getLogger(__name__)


def progress_percent(submission_count: int, total_students: int) -> float:
    """Share of students who submitted, 0.0 when there are no students."""
    if total_students == 0:
        return 0.0
    return 100.0 * submission_count / total_students


class StatisticsService:
    """Read-only rollups over submissions and results."""

    progress_percent = staticmethod(progress_percent)

    def __init__(self, provider: DatabaseConnectionInterface):
        self.provider = provider

    def _scalar(self, operation: str, query: str, params: Dict[str, Any]) -> int:
        try:
            with self.provider.transaction() as connection:
                return int(connection.execute(text(query), params).scalar_one() or 0)
        except SQLAlchemyError as error:
            logger.exception(f"Failed to compute {operation}")
            raise handle_database_error(error, operation) from error

    def total_students(self) -> int:
        query = """
                SELECT COUNT(*)
                FROM users
                WHERE role = :role
                """
        return self._scalar("total_students", query, {"role": UserRole.STUDENT.value})

    def exercise_submitter_count(self, exercise_id: int) -> int:
        query = """
                SELECT COUNT(DISTINCT student_id)
                FROM exercise_submissions
                WHERE exercise_id = :exercise_id
                """
        return self._scalar("exercise_submitter_count", query, {"exercise_id": exercise_id})

    def practical_work_submitter_count(self, practical_work_id: int) -> int:
        query = """
                SELECT COUNT(DISTINCT student_id)
                FROM practical_work_submissions
                WHERE practical_work_id = :practical_work_id
                """
        return self._scalar("practical_work_submitter_count", query, {"practical_work_id": practical_work_id})

    def quiz_participant_count(self, quiz_id: int) -> int:
        query = """
                SELECT COUNT(DISTINCT student_id)
                FROM quiz_results
                WHERE quiz_id = :quiz_id
                  AND is_completed = :completed
                """
        return self._scalar("quiz_participant_count", query, {"quiz_id": quiz_id, "completed": True})

    def exercise_progress(self, exercise_id: int) -> float:
        return progress_percent(self.exercise_submitter_count(exercise_id), self.total_students())

    def practical_work_progress(self, practical_work_id: int) -> float:
        return progress_percent(self.practical_work_submitter_count(practical_work_id), self.total_students())

    def quiz_progress(self, quiz_id: int) -> float:
        return progress_percent(self.quiz_participant_count(quiz_id), self.total_students())

    def teacher_overview(self, teacher_id: int) -> Dict[str, int]:
        """Counts of what a teacher has published, keyed by item kind."""
        query = """
                SELECT (SELECT COUNT(*) FROM courses WHERE teacher_id = :teacher_id)         AS courses,
                       (SELECT COUNT(*) FROM exercises WHERE teacher_id = :teacher_id)       AS exercises,
                       (SELECT COUNT(*) FROM practical_works WHERE teacher_id = :teacher_id) AS practical_works,
                       (SELECT COUNT(*) FROM quizzes WHERE teacher_id = :teacher_id)         AS quizzes
                """
        try:
            with self.provider.transaction() as connection:
                row = connection.execute(text(query), {"teacher_id": teacher_id}).mappings().one()
        except SQLAlchemyError as error:
            logger.exception("Failed to compute teacher_overview")
            raise handle_database_error(error, "teacher_overview") from error
        overview = {key: int(value) for key, value in row.items()}
        logger.info(f"Retrieved overview for teacher {teacher_id}")
        return overview
