from typing import List

from sqlalchemy import Table, or_, select

from LearningAssistantApp.core.choices import UserRole
from LearningAssistantApp.core.validators import normalize_matricule
from LearningAssistantApp.database.repository import BaseRepository
from LearningAssistantApp.database.schema import courses, exercises, practical_works, quizzes, users, valid_ids
from LearningAssistantApp.users.models import User, ValidRegistrationID


class UserRepository(BaseRepository[User]):
    table = users
    model = User
    entity_name = "user"

    def get_by_matricule(self, matricule: str) -> User | None:
        return self._fetch_one("get_by_matricule", users.c.matricule == normalize_matricule(matricule))

    def list_by_role(self, role: UserRole) -> List[User]:
        return self._fetch_all("list_by_role", users.c.role == UserRole(role).value)

    def list_students_for_level(self, level: str | None) -> List[User]:
        """Students of one level, or every student when ``level`` is None."""
        criteria = [users.c.role == UserRole.STUDENT.value]
        if level is not None:
            criteria.append(users.c.enrollment_level == level)
        return self._fetch_all("list_students_for_level", *criteria)

    def list_teachers_with_items_for_level(self, items: Table, level: str | None,
                                           operation: str = "list_teachers_with_items_for_level") -> List[User]:
        """Teachers with at least one row of ``items`` visible to ``level``.

        ``items`` is any table carrying ``teacher_id`` and ``target_level``
        (courses, exercises, practical works, quizzes).
        """
        visible_item = (
            select(items.c.id)
            .where(items.c.teacher_id == users.c.id)
            .where(or_(items.c.target_level == level, items.c.target_level.is_(None)))
            .exists()
        )
        return self._fetch_all(
            operation,
            users.c.role == UserRole.TEACHER.value,
            visible_item,
            order_by=[users.c.name, users.c.id],
        )

    def list_teachers_with_courses_for_level(self, level: str | None) -> List[User]:
        return self.list_teachers_with_items_for_level(courses, level, "list_teachers_with_courses_for_level")

    def list_teachers_with_exercises_for_level(self, level: str | None) -> List[User]:
        return self.list_teachers_with_items_for_level(exercises, level, "list_teachers_with_exercises_for_level")

    def list_teachers_with_practical_works_for_level(self, level: str | None) -> List[User]:
        return self.list_teachers_with_items_for_level(
            practical_works, level, "list_teachers_with_practical_works_for_level"
        )

    def list_teachers_with_quizzes_for_level(self, level: str | None) -> List[User]:
        return self.list_teachers_with_items_for_level(quizzes, level, "list_teachers_with_quizzes_for_level")


class ValidIDRepository(BaseRepository[ValidRegistrationID]):
    table = valid_ids
    model = ValidRegistrationID
    entity_name = "valid_id"
    key_column = "matricule"
    assigns_id = False

    def default_order(self) -> list:
        return [valid_ids.c.matricule]

    def get(self, matricule: str) -> ValidRegistrationID | None:
        return self.get_by_id(normalize_matricule(matricule))

    def exists(self, matricule: str) -> bool:
        return self._count("exists", valid_ids.c.matricule == normalize_matricule(matricule)) > 0

    def delete(self, matricule: str) -> bool:
        return super().delete(normalize_matricule(matricule))

    def add(self, entity: ValidRegistrationID) -> bool:
        entity.matricule = normalize_matricule(entity.matricule)
        return super().add(entity)
