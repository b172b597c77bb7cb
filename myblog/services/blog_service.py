"""
Blog service: business logic for the Blog aggregate.

Design notes
------------
- Detail and list reads go through the cache-aside pattern (Redis, then
  the database).  List keys encode page and page size.
- Update and delete read the blog, check ownership, then write; both steps
  run in one ``run_in_transaction`` so a concurrent delete turns into
  ``NotFoundError`` rather than a silent no-op.
- Every write invalidates the list pages and, where relevant, the detail
  entry.
"""
import logging

from myblog.cache import blog_detail_key, blog_list_key, cache
from myblog.config import settings
from myblog.database import DBHandle
from myblog.errors import PermissionDeniedError
from myblog.models import Blog, new_id, utcnow
from myblog.repositories import blog_repository, user_repository
from myblog.schemas import BlogCreate, BlogUpdate
from myblog.unit_of_work import run_in_transaction

logger = logging.getLogger(__name__)


def _blog_to_dict(blog: Blog) -> dict:
    return {
        "id": blog.id,
        "user_id": blog.user_id,
        "title": blog.title,
        "content": blog.content,
        "created_at": blog.created_at.isoformat(),
        "updated_at": blog.updated_at.isoformat(),
    }


def _ensure_owner(blog: Blog, user_id: str, action: str) -> None:
    if blog.user_id != user_id:
        raise PermissionDeniedError(f"not allowed to {action} this blog", entity_id=blog.id)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_blog(db: DBHandle, user_id: str, data: BlogCreate) -> dict:
    async def work(tx: DBHandle) -> Blog:
        author = await user_repository.find_by_id(tx, user_id)
        now = utcnow()
        blog = Blog(
            id=new_id(),
            user_id=author.id,
            title=data.title,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        return await blog_repository.save(tx, blog)

    blog = await run_in_transaction(db, work)
    await cache.invalidate_blog()
    return _blog_to_dict(blog)


async def get_blog(db: DBHandle, blog_id: str) -> dict:
    cache_key = blog_detail_key(blog_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    data = _blog_to_dict(await blog_repository.find_by_id(db, blog_id))
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def get_blogs_by_user(db: DBHandle, user_id: str) -> list[dict]:
    return [_blog_to_dict(b) for b in await blog_repository.find_by_user_id(db, user_id)]


async def get_all_blogs(db: DBHandle, page: int = 0, per_page: int | None = None) -> list[dict]:
    """
    Return one page of blogs, newest first.

    *page* is 0-based.  Out-of-range values are clamped rather than
    rejected: a negative page becomes 0 and a non-positive page size
    becomes the default.
    """
    page = max(page, 0)
    if not per_page or per_page <= 0:
        per_page = settings.DEFAULT_PAGE_SIZE
    per_page = min(per_page, settings.MAX_PAGE_SIZE)

    async def load() -> list[dict]:
        blogs = await blog_repository.find_all(db, offset=page * per_page, limit=per_page)
        return [_blog_to_dict(b) for b in blogs]

    return await cache.get_or_load(blog_list_key(page, per_page), load, ttl=settings.CACHE_TTL_LIST)


async def update_blog(db: DBHandle, blog_id: str, user_id: str, data: BlogUpdate) -> dict:
    """Owner-only partial update; empty title or content leaves that field unchanged."""

    async def work(tx: DBHandle) -> Blog:
        blog = await blog_repository.find_by_id(tx, blog_id)
        _ensure_owner(blog, user_id, "update")
        if data.title:
            blog.title = data.title
        if data.content:
            blog.content = data.content
        await blog_repository.update(tx, blog)
        return blog

    blog = await run_in_transaction(db, work)
    await cache.invalidate_blog(blog_id)
    return _blog_to_dict(blog)


async def delete_blog(db: DBHandle, blog_id: str, user_id: str) -> None:
    async def work(tx: DBHandle) -> None:
        blog = await blog_repository.find_by_id(tx, blog_id)
        _ensure_owner(blog, user_id, "delete")
        await blog_repository.delete_by_id(tx, blog_id)

    await run_in_transaction(db, work)
    await cache.invalidate_blog(blog_id)
    logger.info("Blog deleted: %s", blog_id)
