from typing import List, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from LearningAssistantApp.core.exceptions import DatabaseIntegrityError, FavoriteAlreadyExistsError
from LearningAssistantApp.courses.models import Course, Exercise, FavoriteCourse, PracticalWork
from LearningAssistantApp.database.repository import BaseRepository, TableRepository
from LearningAssistantApp.database.schema import courses, exercises, favorite_courses, practical_works, quizzes

T = TypeVar("T")


def _visible_to(column, level: str | None):
    """Rows aimed at ``level`` plus rows aimed at every level (NULL)."""
    return or_(column == level, column.is_(None))


class CourseRepository(BaseRepository[Course]):
    table = courses
    model = Course
    entity_name = "course"

    def list_by_teacher(self, teacher_id: int) -> List[Course]:
        return self._fetch_all("list_by_teacher", courses.c.teacher_id == teacher_id)

    def list_for_level(self, level: str | None) -> List[Course]:
        return self._fetch_all("list_for_level", _visible_to(courses.c.target_level, level))

    def list_by_teacher_and_level(self, teacher_id: int, level: str | None) -> List[Course]:
        return self._fetch_all(
            "list_by_teacher_and_level",
            courses.c.teacher_id == teacher_id,
            _visible_to(courses.c.target_level, level),
        )

    def count_by_teacher(self, teacher_id: int) -> int:
        return self._count("count_by_teacher", courses.c.teacher_id == teacher_id)

    def count_for_level(self, level: str | None) -> int:
        return self._count("count_for_level", _visible_to(courses.c.target_level, level))

    def propagate_target_level(self, course_id: int, level: str | None) -> int:
        """Copy a course's target level onto its exercises, practical works and quizzes.

        Returns the number of child rows updated.
        """
        def work(connection: Connection) -> int:
            updated = 0
            for child in (exercises, practical_works, quizzes):
                result = connection.execute(
                    child.update().where(child.c.course_id == course_id).values(target_level=level)
                )
                updated += result.rowcount
            return updated

        return self._run("propagate_target_level", work)


class CourseContentRepository(BaseRepository[T]):
    """Shared queries for the items published inside a course."""

    def list_by_course(self, course_id: int) -> List[T]:
        return self._fetch_all("list_by_course", self.table.c.course_id == course_id)

    def list_by_teacher(self, teacher_id: int) -> List[T]:
        return self._fetch_all("list_by_teacher", self.table.c.teacher_id == teacher_id)

    def list_for_level(self, level: str | None) -> List[T]:
        return self._fetch_all("list_for_level", _visible_to(self.table.c.target_level, level))

    def list_by_teacher_and_level(self, teacher_id: int, level: str | None) -> List[T]:
        return self._fetch_all(
            "list_by_teacher_and_level",
            self.table.c.teacher_id == teacher_id,
            _visible_to(self.table.c.target_level, level),
        )

    def count_by_teacher(self, teacher_id: int) -> int:
        return self._count("count_by_teacher", self.table.c.teacher_id == teacher_id)

    def count_for_level(self, level: str | None) -> int:
        return self._count("count_for_level", _visible_to(self.table.c.target_level, level))


class ExerciseRepository(CourseContentRepository[Exercise]):
    table = exercises
    model = Exercise
    entity_name = "exercise"


class PracticalWorkRepository(CourseContentRepository[PracticalWork]):
    table = practical_works
    model = PracticalWork
    entity_name = "practical_work"


class FavoriteCourseRepository(TableRepository[FavoriteCourse]):
    table = favorite_courses
    model = FavoriteCourse
    entity_name = "favorite_course"

    def default_order(self) -> list:
        return [favorite_courses.c.created_at.desc(), favorite_courses.c.course_id.desc()]

    def _pair(self, student_id: int, course_id: int) -> list:
        return [favorite_courses.c.student_id == student_id, favorite_courses.c.course_id == course_id]

    def add(self, student_id: int, course_id: int) -> bool:
        """Mark a course as favorite.

        Raises:
            FavoriteAlreadyExistsError: If the pair is already stored.
        """
        def work(connection: Connection) -> bool:
            result = connection.execute(
                favorite_courses.insert().values(student_id=student_id, course_id=course_id)
            )
            return result.rowcount > 0

        try:
            return self._run("add", work)
        except DatabaseIntegrityError:
            if self.is_favorite(student_id, course_id):
                raise FavoriteAlreadyExistsError(student_id, course_id)
            raise

    def remove(self, student_id: int, course_id: int) -> bool:
        statement = favorite_courses.delete().where(*self._pair(student_id, course_id))
        return self._run("remove", lambda connection: connection.execute(statement).rowcount > 0)

    def is_favorite(self, student_id: int, course_id: int) -> bool:
        return self._count("is_favorite", *self._pair(student_id, course_id)) > 0

    def list_by_student(self, student_id: int) -> List[FavoriteCourse]:
        return self._fetch_all("list_by_student", favorite_courses.c.student_id == student_id)

    def list_courses(self, student_id: int) -> List[Course]:
        """The student's favorite courses, most recently favorited first."""
        statement = (
            select(courses)
            .join(favorite_courses, favorite_courses.c.course_id == courses.c.id)
            .where(favorite_courses.c.student_id == student_id)
            .order_by(favorite_courses.c.created_at.desc(), courses.c.id.desc())
        )

        def work(connection: Connection) -> List[Course]:
            return [Course.from_row(row) for row in connection.execute(statement).mappings()]

        return self._run("list_courses", work)
