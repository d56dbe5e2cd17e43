from typing import List, Mapping, Tuple
import logging

from LearningAssistantApp.core.exceptions import EntityNotFoundError, PermissionDeniedError, QuizAlreadyTakenError
from LearningAssistantApp.core.validators import validate_required_text, validate_score
from LearningAssistantApp.courses.repositories import ExerciseRepository, PracticalWorkRepository
from LearningAssistantApp.database.connection import DatabaseConnectionInterface, atomic
from LearningAssistantApp.learning.models import (
    ExerciseSubmission,
    PracticalWorkSubmission,
    Question,
    QuizResult,
    StudentAnswer,
)
from LearningAssistantApp.learning.repositories import (
    AnswerRepository,
    ExerciseSubmissionRepository,
    PracticalWorkSubmissionRepository,
    QuestionRepository,
    QuizRepository,
    QuizResultRepository,
    StudentAnswerRepository,
)
from LearningAssistantApp.users.models import User

logger = logging.getLogger(__name__)


def _ensure_student(user):
    if not user.is_student:
        raise PermissionDeniedError("Student role required")


def score_answers(questions: List[Question], selections: Mapping[int, int | None]) -> Tuple[int, List[StudentAnswer]]:
    """Grade selections against the questions' answers.

    A selection counts only if it names an answer of that same question which
    is flagged correct. Returns the percentage score and one unsaved
    StudentAnswer per question.
    """
    graded = []
    correct = 0
    for question in questions:
        selected = selections.get(question.id)
        is_correct = selected is not None and selected in question.correct_answer_ids()
        correct += is_correct
        graded.append(StudentAnswer(
            quiz_result_id=None,
            question_id=question.id,
            selected_answer_id=selected if selected in {answer.id for answer in question.answers} else None,
            is_correct=is_correct,
        ))
    score = correct * 100 // len(questions) if questions else 0
    return score, graded


class LearningService:
    def __init__(
            self,
            provider: DatabaseConnectionInterface,
            quizzes: QuizRepository,
            questions: QuestionRepository,
            answers: AnswerRepository,
            quiz_results: QuizResultRepository,
            student_answers: StudentAnswerRepository,
            exercises: ExerciseRepository,
            practical_works: PracticalWorkRepository,
            exercise_submissions: ExerciseSubmissionRepository,
            practical_work_submissions: PracticalWorkSubmissionRepository
    ):
        self.provider = provider
        self.quizzes = quizzes
        self.questions = questions
        self.answers = answers
        self.quiz_results = quiz_results
        self.student_answers = student_answers
        self.exercises = exercises
        self.practical_works = practical_works
        self.exercise_submissions = exercise_submissions
        self.practical_work_submissions = practical_work_submissions

    def get_quiz_questions(self, quiz_id: int) -> List[Question]:
        questions = self.questions.list_by_quiz(quiz_id)
        by_id = {question.id: question for question in questions}
        for answer in self.answers.list_by_quiz(quiz_id):
            by_id[answer.question_id].answers.append(answer)
        return questions

    def has_taken_quiz(self, student: User, quiz_id: int) -> bool:
        return self.quiz_results.has_student_taken_quiz(student.id, quiz_id)

    @atomic
    def take_quiz(self, student: User, quiz_id: int, selections: Mapping[int, int | None]) -> QuizResult:
        """Score a quiz attempt and store the result with every answer, all or nothing.

        ``selections`` maps question id to the chosen answer id (None or missing
        for a skipped question).
        """
        _ensure_student(student)
        if self.quizzes.get_by_id(quiz_id) is None:
            raise EntityNotFoundError("Quiz", quiz_id)
        if self.quiz_results.has_student_taken_quiz(student.id, quiz_id):
            raise QuizAlreadyTakenError(student.id, quiz_id)

        score, graded = score_answers(self.get_quiz_questions(quiz_id), selections)
        result = QuizResult(quiz_id=quiz_id, student_id=student.id, score=validate_score(score), is_completed=True)
        self.quiz_results.add(result)
        for answer in graded:
            answer.quiz_result_id = result.id
        self.student_answers.save_student_answers(graded)
        logger.info(f"Student {student.matricule} scored {score} on quiz {quiz_id}")
        return result

    def get_quiz_review(self, student_id: int, quiz_id: int) -> Tuple[QuizResult, List[StudentAnswer]] | None:
        result = self.quiz_results.get_for_student(student_id, quiz_id)
        if result is None:
            return None
        return result, self.student_answers.list_by_quiz_result(result.id)

    def submit_exercise(self, student: User, exercise_id: int, content: str) -> ExerciseSubmission:
        _ensure_student(student)
        if self.exercises.get_by_id(exercise_id) is None:
            raise EntityNotFoundError("Exercise", exercise_id)
        validate_required_text("content", content)
        submission = ExerciseSubmission(exercise_id=exercise_id, student_id=student.id, content=content)
        self.exercise_submissions.add(submission)
        logger.info(f"Student {student.matricule} submitted exercise {exercise_id}")
        return submission

    def submit_practical_work(self, student: User, practical_work_id: int, file_path: str) -> PracticalWorkSubmission:
        _ensure_student(student)
        if self.practical_works.get_by_id(practical_work_id) is None:
            raise EntityNotFoundError("PracticalWork", practical_work_id)
        validate_required_text("file_path", file_path)
        submission = PracticalWorkSubmission(
            practical_work_id=practical_work_id, student_id=student.id, file_path=file_path
        )
        self.practical_work_submissions.add(submission)
        logger.info(f"Student {student.matricule} submitted practical work {practical_work_id}")
        return submission

    def list_exercise_submissions(self, student: User) -> List[ExerciseSubmission]:
        return self.exercise_submissions.list_by_student(student.id)

    def list_quiz_results(self, student: User) -> List[QuizResult]:
        return self.quiz_results.list_by_student(student.id)
