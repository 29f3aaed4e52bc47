from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Answers whether a user session exists; data access is gated on it."""

    name: str = "auth"

    @abstractmethod
    def current_user_id(self) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def sign_out(self) -> None:
        raise NotImplementedError

    def is_authenticated(self) -> bool:
        return bool(self.current_user_id())


class StaticAuth(AuthProvider):
    """Fixed local user, for offline runs against the in-memory store."""

    name = "static"

    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return self._user_id

    def sign_out(self) -> None:
        logger.info("StaticAuth sign out user_id=%s", self._user_id)
        self._user_id = None
