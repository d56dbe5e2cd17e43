"""Validation helpers for registration identifiers, enrollment levels and free-text fields."""

import re

from LearningAssistantApp.core.choices import EnrollmentLevel, UserRole
from LearningAssistantApp.core.exceptions import MatriculeFormatError, ValidationError

MATRICULE_PATTERN = re.compile(r"^[A-Z]{4}\d+$")


def normalize_matricule(matricule: str) -> str:
    """Strip surrounding whitespace and uppercase the identifier."""
    return (matricule or "").strip().upper()


def validate_matricule(matricule: str, role: UserRole) -> str:
    """Return the normalized matricule if it is well-formed for the role family.

    Raises:
        MatriculeFormatError: If the format or the role prefix is wrong.
    """
    normalized = normalize_matricule(matricule)
    if not MATRICULE_PATTERN.match(normalized):
        raise MatriculeFormatError(normalized, "expected four letters followed by digits")
    if not normalized.startswith(UserRole(role).matricule_prefix):
        raise MatriculeFormatError(
            normalized, f"{UserRole(role).value} identifiers must start with {UserRole(role).matricule_prefix}"
        )
    return normalized


def validate_role(role: str | UserRole) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationError("role", role, "expected student or teacher")


def validate_enrollment_level(level: str | None) -> str | None:
    """Accept None (all levels) or one of L1..M2."""
    if level is None:
        return None
    try:
        return EnrollmentLevel(level).value
    except ValueError:
        raise ValidationError("enrollment_level", level, "expected one of L1, L2, L3, M1, M2")


def validate_required_text(field: str, value: str | None) -> str:
    """Ensure a text field is present and not blank."""
    if value is None or not value.strip():
        raise ValidationError(field, value, "required")
    return value


def validate_score(score: int) -> int:
    if not (0 <= score <= 100):
        raise ValidationError("score", score, "must be 0-100")
    return score
