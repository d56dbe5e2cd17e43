"""Typed enumerations for user roles and enrollment levels."""
from enum import Enum


class UserRole(str, Enum):
    """System-level role assigned to a user account."""
    STUDENT = "student"
    TEACHER = "teacher"

    @property
    def matricule_prefix(self) -> str:
        """Registration identifiers of this role family start with this prefix."""
        return MATRICULE_PREFIXES[self]


class EnrollmentLevel(str, Enum):
    """Ordered enrollment tiers a course or assignment can target."""
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    M1 = "M1"
    M2 = "M2"


MATRICULE_PREFIXES: dict[UserRole, str] = {
    UserRole.STUDENT: "UNST",
    UserRole.TEACHER: "UNTS",
}
