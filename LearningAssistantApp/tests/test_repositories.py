from datetime import date

import pytest
from sqlalchemy import UniqueConstraint, func, select

from LearningAssistantApp.core.choices import UserRole
from LearningAssistantApp.core.exceptions import (
    DatabaseConnectionError,
    DatabaseIntegrityError,
    FavoriteAlreadyExistsError,
    QuizAlreadyTakenError,
    TransactionError,
)
from LearningAssistantApp.courses.models import Course, Exercise, PracticalWork
from LearningAssistantApp.courses.repositories import CourseRepository
from LearningAssistantApp.database.connection import ConnectionProvider
from LearningAssistantApp.database.schema import favorite_courses, student_answers
from LearningAssistantApp.learning.models import Notification, QuizResult, StudentAnswer
from LearningAssistantApp.users.models import User, ValidRegistrationID


def count_rows(app, table) -> int:
    with app.provider.transaction() as connection:
        return connection.execute(select(func.count()).select_from(table)).scalar_one()


class TestUserRepository:
    def test_get_by_matricule_normalizes(self, app, student):
        found = app.users.get_by_matricule(" unst00000001 ")
        assert found.id == student.id
        assert found.role is UserRole.STUDENT
        assert found.created_at is not None

    def test_unknown_matricule_is_none(self, app):
        assert app.users.get_by_matricule("UNST99999999") is None

    def test_matricule_is_unique_in_storage(self, app, student):
        duplicate = User(name="Copy", matricule=student.matricule, role=UserRole.STUDENT, password_hash="x")
        with pytest.raises(DatabaseIntegrityError):
            app.users.add(duplicate)

    def test_list_by_role(self, app, student, other_student, teacher):
        assert [user.matricule for user in app.users.list_by_role(UserRole.STUDENT)] == [
            "UNST00000002", "UNST00000001"
        ]
        assert [user.id for user in app.users.list_by_role("teacher")] == [teacher.id]

    def test_list_teachers_with_courses_for_level(self, app, teacher, other_teacher):
        app.courses.add(Course(title="L2 only", teacher_id=teacher.id, target_level="L2"))
        app.courses.add(Course(title="Everyone", teacher_id=other_teacher.id))

        assert {user.id for user in app.users.list_teachers_with_courses_for_level("L2")} == {
            teacher.id, other_teacher.id
        }
        assert [user.id for user in app.users.list_teachers_with_courses_for_level("L1")] == [other_teacher.id]


class TestCourseRepository:
    def test_crud(self, app, teacher):
        course = Course(title="Algorithms", teacher_id=teacher.id, target_level="L1")
        assert app.courses.add(course) is True
        assert course.id is not None

        course.title = "Algorithms II"
        assert app.courses.update(course) is True
        assert app.courses.get_by_id(course.id).title == "Algorithms II"

        assert app.courses.delete(course.id) is True
        assert app.courses.get_by_id(course.id) is None
        assert app.courses.delete(course.id) is False

    def test_update_missing_row_is_false(self, app, teacher):
        assert app.courses.update(Course(title="Ghost", teacher_id=teacher.id, id=999)) is False
        assert app.courses.update(Course(title="Unsaved", teacher_id=teacher.id)) is False

    def test_lists_are_newest_first(self, app, teacher):
        for title in ("first", "second", "third"):
            app.courses.add(Course(title=title, teacher_id=teacher.id))
        assert [course.title for course in app.courses.list_by_teacher(teacher.id)] == ["third", "second", "first"]
        assert app.courses.count_by_teacher(teacher.id) == 3

    def test_list_for_level_includes_all_level_courses(self, app, teacher):
        app.courses.add(Course(title="L1", teacher_id=teacher.id, target_level="L1"))
        app.courses.add(Course(title="L2", teacher_id=teacher.id, target_level="L2"))
        app.courses.add(Course(title="Any", teacher_id=teacher.id))

        assert {course.title for course in app.courses.list_for_level("L1")} == {"L1", "Any"}
        assert app.courses.count_for_level("L2") == 2
        assert [course.title for course in app.courses.list_by_teacher_and_level(teacher.id, "L2")] == ["Any", "L2"]

    def test_propagate_target_level(self, app, course):
        app.exercises.add(Exercise(course_id=course.id, title="Ex"))
        app.practical_works.add(PracticalWork(course_id=course.id, title="TP", deadline=date(2026, 1, 15)))

        assert app.courses.propagate_target_level(course.id, "M1") == 2
        assert [item.target_level for item in app.exercises.list_by_course(course.id)] == ["M1"]
        practical_work = app.practical_works.list_by_course(course.id)[0]
        assert practical_work.target_level == "M1"
        assert practical_work.deadline == date(2026, 1, 15)

    def test_deleting_course_cascades(self, app, course, quiz):
        app.exercises.add(Exercise(course_id=course.id, title="Ex"))
        app.courses.delete(course.id)
        assert app.exercises.list_by_course(course.id) == []
        assert app.quizzes.get_by_id(quiz.id) is None
        assert app.questions.list_by_quiz(quiz.id) == []

    def test_connection_failure_is_not_an_empty_list(self, tmp_path):
        broken = ConnectionProvider(f"sqlite:///{tmp_path / 'no' / 'such' / 'dir.db'}")
        with pytest.raises(DatabaseConnectionError):
            CourseRepository(broken).list_all()


class TestCourseContentRepository:
    def test_level_scoped_items_by_teacher(self, app, teacher, other_teacher, course):
        app.exercises.add(Exercise(course_id=course.id, title="L1 ex", teacher_id=teacher.id, target_level="L1"))
        app.exercises.add(Exercise(course_id=course.id, title="Any ex", teacher_id=teacher.id))
        app.exercises.add(Exercise(course_id=course.id, title="L2 ex", teacher_id=teacher.id, target_level="L2"))
        app.practical_works.add(
            PracticalWork(course_id=course.id, title="L2 tp", teacher_id=other_teacher.id, target_level="L2")
        )

        assert [item.title for item in app.exercises.list_by_teacher_and_level(teacher.id, "L1")] == [
            "Any ex", "L1 ex"
        ]
        assert app.exercises.count_for_level("L2") == 2
        assert app.practical_works.count_for_level("L1") == 0
        assert app.practical_works.list_by_teacher_and_level(teacher.id, "L2") == []

    def test_teachers_with_items_for_level(self, app, teacher, other_teacher, course, quiz):
        app.practical_works.add(
            PracticalWork(course_id=course.id, title="TP", teacher_id=other_teacher.id, target_level="L2")
        )

        assert app.users.list_teachers_with_exercises_for_level("L1") == []
        assert [user.id for user in app.users.list_teachers_with_quizzes_for_level("L1")] == [teacher.id]
        assert [user.id for user in app.users.list_teachers_with_practical_works_for_level("L2")] == [
            other_teacher.id
        ]
        assert app.users.list_teachers_with_practical_works_for_level("L1") == []


class TestValidIDRepository:
    def test_add_stores_normalized_matricule(self, app):
        entry = ValidRegistrationID(" unst00000099 ", UserRole.STUDENT, "L3")
        assert app.valid_ids.add(entry) is True
        assert entry.matricule == "UNST00000099"
        assert app.valid_ids.get("UNST00000099").enrollment_level == "L3"

        result = app.auth.signup("Sara", "UNST00000099", "student", "pw")
        assert result.success
        assert result.user.enrollment_level == "L3"


class TestFavoriteCourseRepository:
    def test_add_remove(self, app, student, course):
        assert app.favorites.add(student.id, course.id) is True
        assert app.favorites.is_favorite(student.id, course.id)
        assert [favorite.title for favorite in app.favorites.list_courses(student.id)] == ["Java basics"]
        assert app.favorites.remove(student.id, course.id) is True
        assert app.favorites.remove(student.id, course.id) is False
        assert not app.favorites.is_favorite(student.id, course.id)

    def test_duplicate_is_a_conflict(self, app, student, course):
        app.favorites.add(student.id, course.id)
        with pytest.raises(FavoriteAlreadyExistsError) as excinfo:
            app.favorites.add(student.id, course.id)
        assert excinfo.value.error_code == "FAVORITE_EXISTS"
        assert len(app.favorites.list_by_student(student.id)) == 1

    def test_pair_uniqueness_comes_from_primary_key(self):
        assert [column.name for column in favorite_courses.primary_key] == ["student_id", "course_id"]
        assert not [c for c in favorite_courses.constraints if isinstance(c, UniqueConstraint)]

    def test_unknown_course_is_integrity_error(self, app, student):
        with pytest.raises(DatabaseIntegrityError) as excinfo:
            app.favorites.add(student.id, 424242)
        assert not isinstance(excinfo.value, FavoriteAlreadyExistsError)


class TestQuizRepositories:
    def test_answers_by_quiz(self, app, quiz):
        questions = app.questions.list_by_quiz(quiz.id)
        assert len(questions) == 2
        assert len(app.answers.list_by_quiz(quiz.id)) == 4
        assert [answer.answer_text for answer in app.answers.list_by_question(questions[0].id)] == ["do-while", "for"]

    def test_one_result_per_student_and_quiz(self, app, student, quiz):
        assert app.quiz_results.add(QuizResult(quiz_id=quiz.id, student_id=student.id, score=50))
        assert app.quiz_results.has_student_taken_quiz(student.id, quiz.id)

        with pytest.raises(QuizAlreadyTakenError):
            app.quiz_results.add(QuizResult(quiz_id=quiz.id, student_id=student.id, score=100))
        assert [result.score for result in app.quiz_results.list_by_quiz(quiz.id)] == [50]

    def test_save_student_answers_commits_batch(self, app, student, quiz):
        result = QuizResult(quiz_id=quiz.id, student_id=student.id)
        app.quiz_results.add(result)
        questions = app.questions.list_by_quiz(quiz.id)
        batch = [StudentAnswer(result.id, question.id, None, False) for question in questions]

        assert app.student_answers.save_student_answers(batch) is True
        assert all(answer.id is not None for answer in batch)
        assert len(app.student_answers.list_by_quiz_result(result.id)) == 2

    def test_save_student_answers_empty_batch(self, app):
        assert app.student_answers.save_student_answers([]) is True

    def test_save_student_answers_is_all_or_nothing(self, app, student, quiz):
        result = QuizResult(quiz_id=quiz.id, student_id=student.id)
        app.quiz_results.add(result)
        question = app.questions.list_by_quiz(quiz.id)[0]
        batch = [
            StudentAnswer(result.id, question.id, None, False),
            StudentAnswer(result.id, 987654, None, False),
        ]

        with pytest.raises(TransactionError):
            app.student_answers.save_student_answers(batch)
        assert count_rows(app, student_answers) == 0
        assert [answer.id for answer in batch] == [None, None]

    def test_failed_batch_inside_open_transaction_leaves_nothing(self, app, student, quiz):
        question = app.questions.list_by_quiz(quiz.id)[0]
        with app.provider.transaction():
            result = QuizResult(quiz_id=quiz.id, student_id=student.id)
            app.quiz_results.add(result)
            batch = [
                StudentAnswer(result.id, question.id, None, False),
                StudentAnswer(result.id, 987654, None, False),
            ]
            with pytest.raises(TransactionError):
                app.student_answers.save_student_answers(batch)

        assert app.quiz_results.has_student_taken_quiz(student.id, quiz.id)
        assert count_rows(app, student_answers) == 0

    def test_deleting_answer_keeps_student_answer(self, app, student, quiz):
        result = QuizResult(quiz_id=quiz.id, student_id=student.id)
        app.quiz_results.add(result)
        answer = app.answers.list_by_quiz(quiz.id)[0]
        app.student_answers.save_student_answers([StudentAnswer(result.id, answer.question_id, answer.id, True)])

        app.answers.delete(answer.id)
        kept = app.student_answers.list_by_quiz_result(result.id)
        assert len(kept) == 1
        assert kept[0].selected_answer_id is None


class TestNotificationRepository:
    def test_seen_flags(self, app, student):
        for message in ("one", "two", "three"):
            app.notifications.add(Notification(user_id=student.id, message=message))

        notifications = app.notifications.list_by_user(student.id)
        assert [notification.message for notification in notifications] == ["three", "two", "one"]
        assert app.notifications.count_unseen(student.id) == 3

        assert app.notifications.mark_as_seen(notifications[0].id) is True
        assert app.notifications.count_unseen(student.id) == 2
        assert len(app.notifications.list_by_user(student.id, unseen_only=True)) == 2

        assert app.notifications.mark_all_as_seen(student.id) == 2
        assert app.notifications.count_unseen(student.id) == 0
        assert app.notifications.mark_as_seen(31337) is False
