"""Signup gated by the matricule allowlist, and login against stored password hashes.

Expected outcomes (unknown matricule, wrong password, identifier already bound)
come back as ``SignupResult`` / ``LoginResult`` values; database and
connectivity failures propagate as exceptions.
"""
from dataclasses import dataclass
from enum import Enum
import logging

from LearningAssistantApp.core.choices import UserRole
from LearningAssistantApp.core.exceptions import DatabaseIntegrityError
from LearningAssistantApp.core.security import PasswordHasher
from LearningAssistantApp.core.session import SessionState
from LearningAssistantApp.core.validators import MATRICULE_PATTERN, normalize_matricule
from LearningAssistantApp.users.models import User
from LearningAssistantApp.users.repositories import UserRepository, ValidIDRepository

logger = logging.getLogger(__name__)


class SignupFailure(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_FORMAT = "invalid_format"
    ROLE_PREFIX_MISMATCH = "role_prefix_mismatch"
    NOT_ALLOWLISTED = "not_allowlisted"
    ROLE_MISMATCH = "role_mismatch"
    ALREADY_USED = "already_used"
    INSERT_FAILED = "insert_failed"


class LoginFailure(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"


@dataclass(frozen=True)
class SignupResult:
    success: bool
    user: User | None = None
    failure: SignupFailure | None = None

    @classmethod
    def ok(cls, user: User) -> "SignupResult":
        return cls(True, user=user)

    @classmethod
    def fail(cls, failure: SignupFailure) -> "SignupResult":
        return cls(False, failure=failure)


@dataclass(frozen=True)
class LoginResult:
    success: bool
    user: User | None = None
    failure: LoginFailure | None = None


class AuthService:
    def __init__(self, users: UserRepository, valid_ids: ValidIDRepository,
                 hasher: PasswordHasher, session: SessionState):
        self.users = users
        self.valid_ids = valid_ids
        self.hasher = hasher
        self.session = session

    def signup(self, name: str, matricule: str, role: UserRole | str, password: str) -> SignupResult:
        """Register a user whose matricule is allowlisted for the declared role.

        Args:
            name: Display name.
            matricule: Registration identifier, any case; stored uppercased.
            role: Declared role, ``student`` or ``teacher``.
            password: Plaintext password, hashed before storage.

        Returns:
            SignupResult carrying the created User or the failure reason.
        """
        if not name or not name.strip() or not password:
            return SignupResult.fail(SignupFailure.INVALID_INPUT)
        try:
            role = UserRole(role)
        except ValueError:
            return SignupResult.fail(SignupFailure.INVALID_INPUT)

        normalized = normalize_matricule(matricule)
        if not MATRICULE_PATTERN.match(normalized):
            logger.info(f"Signup rejected: malformed matricule {normalized!r}")
            return SignupResult.fail(SignupFailure.INVALID_FORMAT)
        if not normalized.startswith(role.matricule_prefix):
            logger.info(f"Signup rejected: {normalized} does not carry the {role.value} prefix")
            return SignupResult.fail(SignupFailure.ROLE_PREFIX_MISMATCH)

        allowed = self.valid_ids.get(normalized)
        if allowed is None:
            logger.info(f"Signup rejected: {normalized} is not allowlisted")
            return SignupResult.fail(SignupFailure.NOT_ALLOWLISTED)
        if allowed.role != role:
            logger.info(f"Signup rejected: {normalized} is allowlisted as {allowed.role.value}")
            return SignupResult.fail(SignupFailure.ROLE_MISMATCH)
        if self.users.get_by_matricule(normalized) is not None:
            logger.info(f"Signup rejected: {normalized} is already used")
            return SignupResult.fail(SignupFailure.ALREADY_USED)

        user = User(
            name=name.strip(),
            matricule=normalized,
            role=allowed.role,
            password_hash=self.hasher.hash(password),
            enrollment_level=allowed.enrollment_level,
            university_name=allowed.university_name,
        )
        try:
            inserted = self.users.add(user)
        except DatabaseIntegrityError:
            if self.users.get_by_matricule(normalized) is not None:
                logger.info(f"Signup rejected: {normalized} was taken concurrently")
                return SignupResult.fail(SignupFailure.ALREADY_USED)
            raise
        if not inserted:
            return SignupResult.fail(SignupFailure.INSERT_FAILED)

        logger.info(f"Registered {role.value} {normalized}")
        return SignupResult.ok(user)

    def login(self, matricule: str, password: str) -> LoginResult:
        """Authenticate and open the session; both failure causes look identical to the caller."""
        normalized = normalize_matricule(matricule)
        user = self.users.get_by_matricule(normalized) if normalized else None
        if user is None:
            logger.warning(f"Login failed: unknown matricule {normalized!r}")
            return LoginResult(False, failure=LoginFailure.INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.password_hash):
            logger.warning(f"Login failed: wrong password for {normalized}")
            return LoginResult(False, failure=LoginFailure.INVALID_CREDENTIALS)

        self.session.set_current_user(user)
        return LoginResult(True, user=user)

    def logout(self) -> None:
        self.session.logout()

    @property
    def current_user(self) -> User | None:
        return self.session.get_current_user()
