import secrets
import string
import threading
import time
from typing import Dict, List, Optional

from ..models.user import User


_ID_ALPHABET = string.ascii_lowercase + string.digits


def _new_user_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


class DuplicateEmailError(ValueError):
    """Raised when creating a user whose email is already registered."""

    def __init__(self, email: str) -> None:
        super().__init__(f"email already registered: {email}")
        self.email = email


class UserStore:
    """In-memory user table. Lookups return copies so callers cannot mutate stored users."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def create(self, name: str, email: str, password_hash: str, preferences: List[str] | None = None) -> User:
        user = User(
            id=_new_user_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            preferences=list(preferences or []),
        )
        with self._lock:
            # Uniqueness is checked under the same lock as the insert.
            if any(existing.email == email for existing in self._users.values()):
                raise DuplicateEmailError(email)
            self._users[user.id] = user
        return user.model_copy(deep=True)

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy(deep=True)
        return None

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    def update_preferences(self, user_id: str, preferences: List[str]) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user.preferences = list(preferences)
            return user.model_copy(deep=True)

    def all(self) -> List[User]:
        with self._lock:
            return [user.model_copy(deep=True) for user in self._users.values()]

    def clear(self) -> None:
        with self._lock:
            self._users.clear()
