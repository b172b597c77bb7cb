from sqlalchemy import delete, func, select
from sqlalchemy import update as sa_update

from myblog.database import DBHandle
from myblog.errors import NotFoundError, storage_errors
from myblog.models import Comment, utcnow


def _not_found(comment_id: str, operation: str) -> NotFoundError:
    return NotFoundError(f"comment not found with id: {comment_id}", operation=operation, entity_id=comment_id)


async def save(db: DBHandle, comment: Comment) -> Comment:
    with storage_errors("comment_repository.save", comment.id):
        async with db.session() as session:
            session.add(comment)
            await session.flush()
    return comment


async def find_by_id(db: DBHandle, comment_id: str) -> Comment:
    with storage_errors("comment_repository.find_by_id", comment_id):
        async with db.session() as session:
            comment = (
                await session.execute(select(Comment).where(Comment.id == comment_id))
            ).scalar_one_or_none()
    if comment is None:
        raise _not_found(comment_id, "comment_repository.find_by_id")
    return comment


async def find_by_blog_id(db: DBHandle, blog_id: str) -> list[Comment]:
    """Comments on *blog_id*, oldest first (reading order)."""
    q = select(Comment).where(Comment.blog_id == blog_id).order_by(Comment.created_at.asc())
    with storage_errors("comment_repository.find_by_blog_id", blog_id):
        async with db.session() as session:
            return list((await session.execute(q)).scalars().all())


async def find_by_user_id(db: DBHandle, user_id: str) -> list[Comment]:
    q = select(Comment).where(Comment.user_id == user_id).order_by(Comment.created_at.desc())
    with storage_errors("comment_repository.find_by_user_id", user_id):
        async with db.session() as session:
            return list((await session.execute(q)).scalars().all())


async def update(db: DBHandle, comment: Comment) -> None:
    comment.updated_at = utcnow()
    stmt = (
        sa_update(Comment)
        .where(Comment.id == comment.id)
        .values(content=comment.content, updated_at=comment.updated_at)
        .execution_options(synchronize_session=False)
    )
    with storage_errors("comment_repository.update", comment.id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise _not_found(comment.id, "comment_repository.update")


async def delete_by_id(db: DBHandle, comment_id: str) -> None:
    stmt = delete(Comment).where(Comment.id == comment_id).execution_options(synchronize_session=False)
    with storage_errors("comment_repository.delete", comment_id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise _not_found(comment_id, "comment_repository.delete")


async def count(db: DBHandle) -> int:
    with storage_errors("comment_repository.count"):
        async with db.session() as session:
            return (await session.execute(select(func.count()).select_from(Comment))).scalar_one()
