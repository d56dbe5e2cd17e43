"""Domain service for course authoring, publishing and favorites.

These helpers encapsulate business rules (e.g., only the owning teacher can
change a course or publish into it) and keep the CLI and other callers thin.
Mutating operations that touch several tables run inside one transaction so a
course and its children never disagree.
"""
from typing import Iterable, List
import logging

from LearningAssistantApp.core.exceptions import EntityNotFoundError, PermissionDeniedError, ValidationError
from LearningAssistantApp.core.validators import validate_enrollment_level, validate_required_text
from LearningAssistantApp.courses.models import Course, Exercise, PracticalWork
from LearningAssistantApp.courses.repositories import (
    CourseRepository,
    ExerciseRepository,
    FavoriteCourseRepository,
    PracticalWorkRepository,
)
from LearningAssistantApp.database.connection import DatabaseConnectionInterface, atomic
from LearningAssistantApp.learning.models import Answer, Notification, Question, Quiz
from LearningAssistantApp.learning.repositories import (
    AnswerRepository,
    NotificationRepository,
    QuestionRepository,
    QuizRepository,
)
from LearningAssistantApp.users.models import User
from LearningAssistantApp.users.repositories import UserRepository

logger = logging.getLogger(__name__)


def _ensure_teacher(user: User) -> None:
    """Raise PermissionDeniedError if user is not a teacher."""
    if not user.is_teacher:
        raise PermissionDeniedError("Teacher role required")


def _ensure_student(user: User) -> None:
    """Raise PermissionDeniedError if user is not a student."""
    if not user.is_student:
        raise PermissionDeniedError("Student role required")


def _ensure_course_owner(user: User, course: Course) -> None:
    """Raise PermissionDeniedError if user does not own the course."""
    _ensure_teacher(user)
    if course.teacher_id != user.id:
        raise PermissionDeniedError("Only the course owner can do this")


class CourseService:
    def __init__(
            self,
            provider: DatabaseConnectionInterface,
            users: UserRepository,
            courses: CourseRepository,
            exercises: ExerciseRepository,
            practical_works: PracticalWorkRepository,
            quizzes: QuizRepository,
            questions: QuestionRepository,
            answers: AnswerRepository,
            notifications: NotificationRepository,
            favorites: FavoriteCourseRepository
    ):
        self.provider = provider
        self.users = users
        self.courses = courses
        self.exercises = exercises
        self.practical_works = practical_works
        self.quizzes = quizzes
        self.questions = questions
        self.answers = answers
        self.notifications = notifications
        self.favorites = favorites

    def get_course(self, course_id: int) -> Course:
        """Return the course or raise EntityNotFoundError."""
        course = self.courses.get_by_id(course_id)
        if course is None:
            raise EntityNotFoundError("Course", course_id)
        return course

    def create_course(self, teacher: User, course: Course) -> Course:
        """Create a course owned by ``teacher``.

        Args:
            teacher: User creating (and owning) the course.
            course: Unsaved Course; its teacher_id is overwritten.

        Returns:
            The same Course with its id set.
        """
        _ensure_teacher(teacher)
        validate_required_text("title", course.title)
        course.target_level = validate_enrollment_level(course.target_level)
        course.teacher_id = teacher.id
        self.courses.add(course)
        logger.info(f"Teacher {teacher.matricule} created course {course.id}")
        return course

    @atomic
    def update_course(self, actor: User, course: Course) -> Course:
        """Update a course and copy its target level onto every item inside it.

        Args:
            actor: Must own the course.
            course: Course carrying the new values and an existing id.

        Returns:
            The updated Course.
        """
        existing = self.get_course(course.id)
        _ensure_course_owner(actor, existing)
        validate_required_text("title", course.title)
        course.target_level = validate_enrollment_level(course.target_level)
        course.teacher_id = existing.teacher_id
        self.courses.update(course)
        updated = self.courses.propagate_target_level(course.id, course.target_level)
        logger.info(f"Course {course.id} updated, target level propagated to {updated} items")
        return course

    def delete_course(self, actor: User, course_id: int) -> bool:
        """Delete a course; its exercises, practical works and quizzes go with it."""
        _ensure_course_owner(actor, self.get_course(course_id))
        deleted = self.courses.delete(course_id)
        logger.info(f"Course {course_id} deleted by {actor.matricule}")
        return deleted

    def list_courses_for(self, user: User) -> List[Course]:
        """Teachers see the courses they own, students the courses open to their level."""
        if user.is_teacher:
            return self.courses.list_by_teacher(user.id)
        return self.courses.list_for_level(user.enrollment_level)

    def _content(self, kind: str):
        repositories = {
            "course": self.courses,
            "exercise": self.exercises,
            "practical_work": self.practical_works,
            "quiz": self.quizzes,
        }
        if kind not in repositories:
            raise ValidationError("kind", kind, f"expected one of {', '.join(repositories)}")
        return repositories[kind]

    def list_teachers_for(self, student: User, kind: str = "course") -> List[User]:
        """Teachers who published at least one ``kind`` open to the student's level."""
        _ensure_student(student)
        return self.users.list_teachers_with_items_for_level(
            self._content(kind).table, student.enrollment_level, f"list_teachers_with_items_for_level[{kind}]"
        )

    def list_teacher_items_for(self, student: User, teacher_id: int, kind: str = "course") -> list:
        """One teacher's ``kind`` items open to the student's level, newest first."""
        _ensure_student(student)
        return self._content(kind).list_by_teacher_and_level(teacher_id, student.enrollment_level)

    def _notify_students(self, level: str | None, message: str) -> int:
        recipients = self.users.list_students_for_level(level)
        for student in recipients:
            self.notifications.add(Notification(user_id=student.id, message=message))
        return len(recipients)

    def _publish(self, actor: User, course_id: int, item, repository, kind: str):
        course = self.get_course(course_id)
        _ensure_course_owner(actor, course)
        validate_required_text("title", item.title)
        item.course_id = course.id
        item.teacher_id = course.teacher_id
        if item.target_level is None:
            item.target_level = course.target_level
        item.target_level = validate_enrollment_level(item.target_level)
        repository.add(item)
        notified = self._notify_students(item.target_level, f'New {kind} "{item.title}" in {course.title}')
        logger.info(f"Published {kind} {item.id} in course {course.id}, notified {notified} students")
        return item

    @atomic
    def publish_exercise(self, actor: User, course_id: int, exercise: Exercise) -> Exercise:
        return self._publish(actor, course_id, exercise, self.exercises, "exercise")

    @atomic
    def publish_practical_work(self, actor: User, course_id: int, practical_work: PracticalWork) -> PracticalWork:
        return self._publish(actor, course_id, practical_work, self.practical_works, "practical work")

    @atomic
    def publish_quiz(self, actor: User, course_id: int, quiz: Quiz) -> Quiz:
        return self._publish(actor, course_id, quiz, self.quizzes, "quiz")

    @atomic
    def add_question(self, actor: User, quiz_id: int, question_text: str, answers: Iterable[Answer]) -> Question:
        """Add a question and all of its candidate answers in one transaction.

        Args:
            actor: Must own the quiz.
            quiz_id: Target quiz.
            question_text: The question.
            answers: Unsaved Answers; their question_id is set here.

        Returns:
            The Question with ``answers`` populated.
        """
        quiz = self.quizzes.get_by_id(quiz_id)
        if quiz is None:
            raise EntityNotFoundError("Quiz", quiz_id)
        _ensure_teacher(actor)
        if quiz.teacher_id != actor.id:
            raise PermissionDeniedError("Only the quiz owner can add questions")
        validate_required_text("question_text", question_text)

        question = Question(quiz_id=quiz.id, question_text=question_text)
        self.questions.add(question)
        for answer in answers:
            validate_required_text("answer_text", answer.answer_text)
            answer.question_id = question.id
            self.answers.add(answer)
            question.answers.append(answer)
        return question

    def add_favorite(self, student: User, course_id: int) -> bool:
        """Raises FavoriteAlreadyExistsError when the course is already a favorite."""
        _ensure_student(student)
        self.get_course(course_id)
        return self.favorites.add(student.id, course_id)

    def remove_favorite(self, student: User, course_id: int) -> bool:
        _ensure_student(student)
        return self.favorites.remove(student.id, course_id)

    def list_favorites(self, student: User) -> List[Course]:
        _ensure_student(student)
        return self.favorites.list_courses(student.id)
