from sqlalchemy import delete, func, select
from sqlalchemy import update as sa_update

from myblog.database import DBHandle
from myblog.errors import NotFoundError, storage_errors
from myblog.models import User, utcnow


async def save(db: DBHandle, user: User) -> User:
    with storage_errors("user_repository.save", user.id):
        async with db.session() as session:
            session.add(user)
            await session.flush()
    return user


async def find_by_id(db: DBHandle, user_id: str) -> User:
    with storage_errors("user_repository.find_by_id", user_id):
        async with db.session() as session:
            user = (await session.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"user not found with id: {user_id}", operation="user_repository.find_by_id", entity_id=user_id)
    return user


async def find_by_email(db: DBHandle, email: str) -> User:
    with storage_errors("user_repository.find_by_email"):
        async with db.session() as session:
            user = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"user not found with email: {email}", operation="user_repository.find_by_email")
    return user


async def update(db: DBHandle, user: User) -> None:
    user.updated_at = utcnow()
    stmt = (
        sa_update(User)
        .where(User.id == user.id)
        .values(
            username=user.username,
            email=user.email,
            password_hash=user.password_hash,
            updated_at=user.updated_at,
        )
        .execution_options(synchronize_session=False)
    )
    with storage_errors("user_repository.update", user.id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise NotFoundError(f"user not found with id: {user.id}", operation="user_repository.update", entity_id=user.id)


async def delete_by_id(db: DBHandle, user_id: str) -> None:
    stmt = delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
    with storage_errors("user_repository.delete", user_id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise NotFoundError(f"user not found with id: {user_id}", operation="user_repository.delete", entity_id=user_id)


async def count(db: DBHandle) -> int:
    with storage_errors("user_repository.count"):
        async with db.session() as session:
            return (await session.execute(select(func.count()).select_from(User))).scalar_one()
