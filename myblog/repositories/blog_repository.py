from sqlalchemy import delete, func, select
from sqlalchemy import update as sa_update

from myblog.database import DBHandle
from myblog.errors import NotFoundError, storage_errors
from myblog.models import Blog, utcnow


def _not_found(blog_id: str, operation: str) -> NotFoundError:
    return NotFoundError(f"blog not found with id: {blog_id}", operation=operation, entity_id=blog_id)


async def save(db: DBHandle, blog: Blog) -> Blog:
    with storage_errors("blog_repository.save", blog.id):
        async with db.session() as session:
            session.add(blog)
            await session.flush()
    return blog


async def find_by_id(db: DBHandle, blog_id: str) -> Blog:
    with storage_errors("blog_repository.find_by_id", blog_id):
        async with db.session() as session:
            blog = (await session.execute(select(Blog).where(Blog.id == blog_id))).scalar_one_or_none()
    if blog is None:
        raise _not_found(blog_id, "blog_repository.find_by_id")
    return blog


async def find_by_user_id(db: DBHandle, user_id: str) -> list[Blog]:
    q = select(Blog).where(Blog.user_id == user_id).order_by(Blog.created_at.desc())
    with storage_errors("blog_repository.find_by_user_id", user_id):
        async with db.session() as session:
            return list((await session.execute(q)).scalars().all())


async def find_all(db: DBHandle, offset: int, limit: int) -> list[Blog]:
    q = select(Blog).order_by(Blog.created_at.desc(), Blog.id).offset(offset).limit(limit)
    with storage_errors("blog_repository.find_all"):
        async with db.session() as session:
            return list((await session.execute(q)).scalars().all())


async def update(db: DBHandle, blog: Blog) -> None:
    """Persist title/content; a missing row is a NotFoundError, not a no-op."""
    blog.updated_at = utcnow()
    stmt = (
        sa_update(Blog)
        .where(Blog.id == blog.id)
        .values(title=blog.title, content=blog.content, updated_at=blog.updated_at)
        .execution_options(synchronize_session=False)
    )
    with storage_errors("blog_repository.update", blog.id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise _not_found(blog.id, "blog_repository.update")


async def delete_by_id(db: DBHandle, blog_id: str) -> None:
    stmt = delete(Blog).where(Blog.id == blog_id).execution_options(synchronize_session=False)
    with storage_errors("blog_repository.delete", blog_id):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    if rowcount == 0:
        raise _not_found(blog_id, "blog_repository.delete")


async def count(db: DBHandle) -> int:
    with storage_errors("blog_repository.count"):
        async with db.session() as session:
            return (await session.execute(select(func.count()).select_from(Blog))).scalar_one()
