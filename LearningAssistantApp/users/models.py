"""User accounts and the registration allowlist."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from LearningAssistantApp.core.choices import UserRole


@dataclass
class User:
    """A registered student or teacher, keyed by a unique matricule."""
    name: str
    matricule: str
    role: UserRole
    password_hash: str = ""
    enrollment_level: str | None = None
    university_name: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=row["id"],
            name=row["name"],
            password_hash=row["password_hash"],
            matricule=row["matricule"],
            role=UserRole(row["role"]),
            enrollment_level=row["enrollment_level"],
            university_name=row["university_name"],
            created_at=row["created_at"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "password_hash": self.password_hash,
            "matricule": self.matricule,
            "role": UserRole(self.role).value,
            "enrollment_level": self.enrollment_level,
            "university_name": self.university_name,
        }


@dataclass
class ValidRegistrationID:
    """An allowlisted matricule that may be used once to sign up."""
    matricule: str
    role: UserRole
    enrollment_level: str | None = None
    university_name: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ValidRegistrationID":
        return cls(
            matricule=row["matricule"],
            role=UserRole(row["role"]),
            enrollment_level=row["enrollment_level"],
            university_name=row["university_name"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "matricule": self.matricule,
            "role": UserRole(self.role).value,
            "enrollment_level": self.enrollment_level,
            "university_name": self.university_name,
        }
