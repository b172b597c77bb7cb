"""Password hashing (bcrypt) and access tokens (PyJWT, HS256)."""
from datetime import timedelta

import bcrypt
import jwt

from myblog.config import settings
from myblog.errors import AuthenticationError
from myblog.models import utcnow


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash.
        return False


def create_access_token(user_id: str, expires_in: timedelta | None = None) -> str:
    expires_in = expires_in or timedelta(hours=settings.JWT_EXPIRE_HOURS)
    payload = {"id": user_id, "exp": utcnow() + expires_in}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id carried by *token*; raise AuthenticationError otherwise."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise AuthenticationError("invalid token", operation="decode_access_token") from exc
    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise AuthenticationError("invalid token", operation="decode_access_token")
    return user_id
