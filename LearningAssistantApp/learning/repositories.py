from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.engine import Connection

from LearningAssistantApp.core.exceptions import (
    DatabaseIntegrityError,
    DatabaseOperationError,
    QuizAlreadyTakenError,
    TransactionError,
)
from LearningAssistantApp.courses.repositories import CourseContentRepository
from LearningAssistantApp.database.repository import BaseRepository
from LearningAssistantApp.database.schema import (
    answers,
    exercise_submissions,
    notifications,
    practical_work_submissions,
    questions,
    quiz_results,
    quizzes,
    student_answers,
)
from LearningAssistantApp.learning.models import (
    Answer,
    ExerciseSubmission,
    Notification,
    PracticalWorkSubmission,
    Question,
    Quiz,
    QuizResult,
    StudentAnswer,
)

logger = logging.getLogger(__name__)


class QuizRepository(CourseContentRepository[Quiz]):
    table = quizzes
    model = Quiz
    entity_name = "quiz"


class QuestionRepository(BaseRepository[Question]):
    table = questions
    model = Question
    entity_name = "question"

    def default_order(self) -> list:
        return [questions.c.id]

    def list_by_quiz(self, quiz_id: int) -> List[Question]:
        return self._fetch_all("list_by_quiz", questions.c.quiz_id == quiz_id)


class AnswerRepository(BaseRepository[Answer]):
    table = answers
    model = Answer
    entity_name = "answer"

    def default_order(self) -> list:
        return [answers.c.id]

    def list_by_question(self, question_id: int) -> List[Answer]:
        return self._fetch_all("list_by_question", answers.c.question_id == question_id)

    def list_by_quiz(self, quiz_id: int) -> List[Answer]:
        """Every answer of every question of a quiz, in one round trip."""
        in_quiz = answers.c.question_id.in_(select(questions.c.id).where(questions.c.quiz_id == quiz_id))
        return self._fetch_all("list_by_quiz", in_quiz)


class ExerciseSubmissionRepository(BaseRepository[ExerciseSubmission]):
    table = exercise_submissions
    model = ExerciseSubmission
    entity_name = "exercise_submission"

    def default_order(self) -> list:
        return [exercise_submissions.c.submitted_at.desc(), exercise_submissions.c.id.desc()]

    def list_by_exercise(self, exercise_id: int) -> List[ExerciseSubmission]:
        return self._fetch_all("list_by_exercise", exercise_submissions.c.exercise_id == exercise_id)

    def list_by_student(self, student_id: int) -> List[ExerciseSubmission]:
        return self._fetch_all("list_by_student", exercise_submissions.c.student_id == student_id)


class PracticalWorkSubmissionRepository(BaseRepository[PracticalWorkSubmission]):
    table = practical_work_submissions
    model = PracticalWorkSubmission
    entity_name = "practical_work_submission"

    def default_order(self) -> list:
        return [practical_work_submissions.c.submitted_at.desc(), practical_work_submissions.c.id.desc()]

    def list_by_practical_work(self, practical_work_id: int) -> List[PracticalWorkSubmission]:
        return self._fetch_all(
            "list_by_practical_work", practical_work_submissions.c.practical_work_id == practical_work_id
        )

    def list_by_student(self, student_id: int) -> List[PracticalWorkSubmission]:
        return self._fetch_all("list_by_student", practical_work_submissions.c.student_id == student_id)


class QuizResultRepository(BaseRepository[QuizResult]):
    table = quiz_results
    model = QuizResult
    entity_name = "quiz_result"

    def default_order(self) -> list:
        return [quiz_results.c.submitted_at.desc(), quiz_results.c.id.desc()]

    def add(self, entity: QuizResult) -> bool:
        """Insert a result; a second result for the same (student, quiz) is refused by storage.

        Raises:
            QuizAlreadyTakenError: If the student already has a result for the quiz.
        """
        try:
            return super().add(entity)
        except DatabaseIntegrityError:
            if self.has_student_taken_quiz(entity.student_id, entity.quiz_id):
                logger.warning(f"Student {entity.student_id} tried to retake quiz {entity.quiz_id}")
                raise QuizAlreadyTakenError(entity.student_id, entity.quiz_id)
            raise

    def get_for_student(self, student_id: int, quiz_id: int) -> QuizResult | None:
        return self._fetch_one(
            "get_for_student", quiz_results.c.student_id == student_id, quiz_results.c.quiz_id == quiz_id
        )

    def has_student_taken_quiz(self, student_id: int, quiz_id: int) -> bool:
        return self._count(
            "has_student_taken_quiz",
            quiz_results.c.student_id == student_id,
            quiz_results.c.quiz_id == quiz_id,
        ) > 0

    def list_by_student(self, student_id: int) -> List[QuizResult]:
        return self._fetch_all("list_by_student", quiz_results.c.student_id == student_id)

    def list_by_quiz(self, quiz_id: int) -> List[QuizResult]:
        return self._fetch_all("list_by_quiz", quiz_results.c.quiz_id == quiz_id)


class StudentAnswerRepository(BaseRepository[StudentAnswer]):
    table = student_answers
    model = StudentAnswer
    entity_name = "student_answer"

    def default_order(self) -> list:
        return [student_answers.c.id]

    def save_student_answers(self, batch: List[StudentAnswer]) -> bool:
        """Insert a batch of answers all-or-nothing.

        Returns True once every row is committed (an empty batch trivially is).
        The rows go through a savepoint, so a failed batch leaves nothing behind
        even when the caller's own transaction later commits.

        Raises:
            TransactionError: If any row fails or affects no rows; nothing is persisted.
        """
        if not batch:
            return True

        def work(connection: Connection) -> bool:
            with connection.begin_nested():
                for position, answer in enumerate(batch):
                    result = connection.execute(student_answers.insert().values(**answer.to_row()))
                    if result.rowcount < 1:
                        raise TransactionError(
                            f"Student answer {position} was not inserted", {"position": position}
                        )
                    answer.id = result.inserted_primary_key[0]
            return True

        try:
            saved = self._run("save_student_answers", work)
        except (TransactionError, DatabaseIntegrityError, DatabaseOperationError) as error:
            for answer in batch:
                answer.id = None
            logger.error(f"Rolled back batch of {len(batch)} student answers: {error.message}")
            if isinstance(error, TransactionError):
                raise
            raise TransactionError(
                f"Student answer batch rolled back: {error.message}",
                {"batch_size": len(batch), "cause": error.error_code}
            ) from error
        logger.info(f"Saved {len(batch)} student answers")
        return saved

    def list_by_quiz_result(self, quiz_result_id: int) -> List[StudentAnswer]:
        return self._fetch_all("list_by_quiz_result", student_answers.c.quiz_result_id == quiz_result_id)


class NotificationRepository(BaseRepository[Notification]):
    table = notifications
    model = Notification
    entity_name = "notification"

    def list_by_user(self, user_id: int, unseen_only: bool = False) -> List[Notification]:
        criteria = [notifications.c.user_id == user_id]
        if unseen_only:
            criteria.append(notifications.c.seen.is_(False))
        return self._fetch_all("list_by_user", *criteria)

    def count_unseen(self, user_id: int) -> int:
        return self._count("count_unseen", notifications.c.user_id == user_id, notifications.c.seen.is_(False))

    def mark_as_seen(self, notification_id: int) -> bool:
        statement = notifications.update().where(notifications.c.id == notification_id).values(seen=True)
        return self._run("mark_as_seen", lambda connection: connection.execute(statement).rowcount > 0)

    def mark_all_as_seen(self, user_id: int) -> int:
        statement = (
            notifications.update()
            .where(notifications.c.user_id == user_id, notifications.c.seen.is_(False))
            .values(seen=True)
        )
        return self._run("mark_all_as_seen", lambda connection: connection.execute(statement).rowcount)
