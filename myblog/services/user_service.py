"""
User service: registration, login and self-service profile management.

Users may only read, update or delete their own record; the caller's id
comes from the verified access token.  Users are not cached: they are
read rarely and carry credentials.
"""
import logging

from myblog.cache import cache
from myblog.database import DBHandle
from myblog.errors import AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError
from myblog.models import User, new_id, utcnow
from myblog.repositories import user_repository
from myblog.schemas import UserLogin, UserRegister, UserUpdate
from myblog.security import create_access_token, hash_password, verify_password
from myblog.unit_of_work import run_in_transaction

logger = logging.getLogger(__name__)


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


def _ensure_self(user_id: str, current_user_id: str) -> None:
    if user_id != current_user_id:
        raise PermissionDeniedError("cannot access another user's account", entity_id=user_id)


async def _find_by_email_or_none(db: DBHandle, email: str) -> User | None:
    try:
        return await user_repository.find_by_email(db, email)
    except NotFoundError:
        return None


async def register(db: DBHandle, data: UserRegister) -> dict:
    """
    Create a user with a bcrypt-hashed password.

    The email check and the insert share one transaction; the unique
    constraint on ``users.email`` still turns a concurrent duplicate into
    ``ConflictError``.
    """

    async def work(tx: DBHandle) -> User:
        if await _find_by_email_or_none(tx, data.email) is not None:
            raise ConflictError("email address already in use", operation="user_service.register")
        now = utcnow()
        user = User(
            id=new_id(),
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            created_at=now,
            updated_at=now,
        )
        return await user_repository.save(tx, user)

    user = await run_in_transaction(db, work)
    logger.info("User registered: %s", user.id)
    return _user_to_dict(user)


async def login(db: DBHandle, data: UserLogin) -> str:
    """Return a signed access token.  Unknown email and wrong password look the same."""
    user = await _find_by_email_or_none(db, data.email)
    if user is None or not verify_password(data.password, user.password_hash):
        raise AuthenticationError("incorrect email address or password", operation="user_service.login")
    return create_access_token(user.id)


async def get_user(db: DBHandle, user_id: str, current_user_id: str) -> dict:
    _ensure_self(user_id, current_user_id)
    return _user_to_dict(await user_repository.find_by_id(db, user_id))


async def update_user(db: DBHandle, user_id: str, current_user_id: str, data: UserUpdate) -> dict:
    """Apply the non-empty fields of *data*; a new email must not belong to anyone else."""
    _ensure_self(user_id, current_user_id)

    async def work(tx: DBHandle) -> User:
        user = await user_repository.find_by_id(tx, user_id)

        if data.username and data.username != user.username:
            user.username = data.username

        if data.email and data.email != user.email:
            other = await _find_by_email_or_none(tx, data.email)
            if other is not None and other.id != user_id:
                raise ConflictError(
                    "email address already in use", operation="user_service.update_user", entity_id=user_id
                )
            user.email = data.email

        if data.password:
            user.password_hash = hash_password(data.password)

        await user_repository.update(tx, user)
        return user

    return _user_to_dict(await run_in_transaction(db, work))


async def delete_user(db: DBHandle, user_id: str, current_user_id: str) -> None:
    _ensure_self(user_id, current_user_id)
    await user_repository.delete_by_id(db, user_id)
    # The user's blogs go with them (ON DELETE CASCADE).
    await cache.invalidate_all_blogs()
    logger.info("User deleted: %s", user_id)
