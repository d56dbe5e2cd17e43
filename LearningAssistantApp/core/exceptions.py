"""
Exception hierarchy for the learning assistant.

Connectivity, integrity and transactional failures are raised as distinct
types so callers can tell "no data" apart from "system broken". Expected
domain outcomes (bad credentials, unknown matricule) are returned as result
values by the services instead.
"""

from typing import Any, Dict

from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, InterfaceError, OperationalError


class LearningAssistantError(Exception):
    """Base exception class for all application-specific errors"""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ==============================================================================
# Database-related exceptions
# ==============================================================================

class DatabaseConnectionError(LearningAssistantError):
    """Raised when the database connection is absent, closed or cannot be opened"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DB_CONNECTION", details)


class DatabaseOperationError(LearningAssistantError):
    """Raised when a database operation fails"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DB_OPERATION", details)


class DatabaseIntegrityError(LearningAssistantError):
    """Raised when database integrity constraints are violated"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DB_INTEGRITY", details)


class TransactionError(LearningAssistantError):
    """Raised when a multi-statement transaction is rolled back"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "TRANSACTION_FAILED", details)


# ==============================================================================
# Conflict exceptions (unique constraints)
# ==============================================================================

class ConflictError(DatabaseIntegrityError):
    """Raised when a row would duplicate a storage-level unique key"""
    pass


class QuizAlreadyTakenError(ConflictError):
    """Raised when a student already has a result for a quiz"""

    def __init__(self, student_id: int, quiz_id: int):
        message = f"Student {student_id} has already taken quiz {quiz_id}"
        super().__init__(message, {"student_id": student_id, "quiz_id": quiz_id})
        self.error_code = "QUIZ_ALREADY_TAKEN"


class FavoriteAlreadyExistsError(ConflictError):
    """Raised when a course is already in a student's favorites"""

    def __init__(self, student_id: int, course_id: int):
        message = f"Course {course_id} is already a favorite of student {student_id}"
        super().__init__(message, {"student_id": student_id, "course_id": course_id})
        self.error_code = "FAVORITE_EXISTS"


# ==============================================================================
# Validation / lookup exceptions
# ==============================================================================

class ValidationError(LearningAssistantError):
    """Raised when input data is invalid"""

    def __init__(self, field: str, value: Any, reason: str = None):
        message = f"Invalid {field}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value, "reason": reason})


class MatriculeFormatError(ValidationError):
    """Raised when a matricule does not follow the role-prefixed format"""

    def __init__(self, matricule: str, reason: str):
        super().__init__("matricule", matricule, reason)
        self.error_code = "INVALID_MATRICULE"


class EntityNotFoundError(LearningAssistantError):
    """Raised by services when an operation targets a missing row"""

    def __init__(self, entity: str, identifier: Any):
        message = f"{entity} not found: {identifier}"
        super().__init__(message, "NOT_FOUND", {"entity": entity, "identifier": identifier})


# ==============================================================================
# Access exceptions
# ==============================================================================

class PermissionDeniedError(LearningAssistantError):
    """Raised when the acting user lacks the role or ownership required"""

    def __init__(self, message: str):
        super().__init__(message, "PERMISSION_DENIED")


class NotAuthenticatedError(LearningAssistantError):
    """Raised when an operation needs a logged-in user and there is none"""

    def __init__(self, message: str = "No user is logged in"):
        super().__init__(message, "NOT_AUTHENTICATED")


class ConfigurationError(LearningAssistantError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, config_key: str, config_value: Any, reason: str = None):
        message = f"Invalid configuration - {config_key}: {config_value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, "INVALID_CONFIG", {"key": config_key, "value": config_value, "reason": reason})


# ==============================================================================
# Utility functions for exception handling
# ==============================================================================

# MySQL client/server codes meaning the server cannot be reached or the session is gone
MYSQL_CONNECTION_ERRNOS = frozenset({1040, 1045, 1049, 1152, 1153, 2002, 2003, 2005, 2006, 2013, 2055})


def is_disconnect(exc: DBAPIError) -> bool:
    """True when ``exc`` means the connection itself is unusable, not just the statement."""
    if exc.connection_invalidated or isinstance(exc, InterfaceError):
        return True
    if getattr(exc.orig, "errno", None) in MYSQL_CONNECTION_ERRNOS:
        return True
    return "unable to open database file" in str(exc.orig)


def handle_database_error(exc: Exception, operation: str = None) -> LearningAssistantError:
    """
    Convert a SQLAlchemy exception to the matching application exception.

    Args:
        exc: The original database exception
        operation: The database operation that failed

    Returns:
        Appropriate LearningAssistantError subclass
    """
    context = f" during {operation}" if operation else ""
    details = {"operation": operation, "cause": exc.__class__.__name__}

    if isinstance(exc, IntegrityError):
        return DatabaseIntegrityError(f"Integrity constraint violated{context}: {exc}", details)
    if isinstance(exc, DBAPIError) and is_disconnect(exc):
        return DatabaseConnectionError(f"Database unavailable{context}: {exc}", details)
    if isinstance(exc, OperationalError):
        return DatabaseOperationError(f"Database statement failed{context}: {exc}", details)
    if isinstance(exc, DataError):
        return DatabaseOperationError(f"Database data error{context}: {exc}", details)
    return DatabaseOperationError(f"Database operation failed{context}: {exc}", details)
