"""Holder for the currently authenticated user of one application instance."""

import logging

from LearningAssistantApp.core.exceptions import NotAuthenticatedError
from LearningAssistantApp.users.models import User

logger = logging.getLogger(__name__)


class SessionState:
    """At most one authenticated identity; created per application, never shared globally."""

    def __init__(self):
        self._current_user: User | None = None

    def set_current_user(self, user: User) -> None:
        self._current_user = user
        logger.info("Session opened for %s", user.matricule)

    def get_current_user(self) -> User | None:
        return self._current_user

    def require_user(self) -> User:
        if self._current_user is None:
            raise NotAuthenticatedError()
        return self._current_user

    def logout(self) -> None:
        if self._current_user is not None:
            logger.info("Session closed for %s", self._current_user.matricule)
        self._current_user = None

    def is_logged_in(self) -> bool:
        return self._current_user is not None
