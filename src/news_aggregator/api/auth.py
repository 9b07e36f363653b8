from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException

from ..config import settings
from ..core.user_store import UserStore
from ..models.user import User
from ..logging_config import get_logger


logger = get_logger("api.auth")

user_store = UserStore()


def get_user_store() -> UserStore:
    return user_store


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt_expires_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"error": error, "message": message})


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    store: UserStore = Depends(get_user_store),
) -> User:
    """Resolve the user from an ``Authorization: Bearer <token>`` header."""

    if not authorization:
        raise _unauthorized("Access denied", "No authorization token provided")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise _unauthorized(
            "Invalid token format",
            "Authorization header must be in format: Bearer <token>",
        )

    try:
        claims = jwt.decode(parts[1], settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired", "Please login again")
    except jwt.InvalidTokenError as exc:
        logger.info("token_rejected", error=str(exc))
        raise _unauthorized("Invalid token", "Token verification failed")

    user = store.find_by_id(claims.get("sub", ""))
    if user is None:
        raise _unauthorized("Invalid token", "User not found")
    return user
