"""
Comment service: comments belong to one blog and one author.

Only the author may edit or delete a comment.  Comments are not cached;
they feed the ranking batch, which always reads them from the database.
"""
from myblog.database import DBHandle
from myblog.errors import PermissionDeniedError
from myblog.models import Comment, new_id, utcnow
from myblog.repositories import blog_repository, comment_repository, user_repository
from myblog.schemas import CommentCreate, CommentUpdate
from myblog.unit_of_work import run_in_transaction


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "blog_id": comment.blog_id,
        "user_id": comment.user_id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat(),
        "updated_at": comment.updated_at.isoformat(),
    }


def _ensure_author(comment: Comment, user_id: str, action: str) -> None:
    if comment.user_id != user_id:
        raise PermissionDeniedError(f"not allowed to {action} this comment", entity_id=comment.id)


async def create_comment(db: DBHandle, blog_id: str, user_id: str, data: CommentCreate) -> dict:
    """Add a comment to *blog_id*; both the blog and the author must exist."""

    async def work(tx: DBHandle) -> Comment:
        await blog_repository.find_by_id(tx, blog_id)
        author = await user_repository.find_by_id(tx, user_id)
        now = utcnow()
        comment = Comment(
            id=new_id(),
            blog_id=blog_id,
            user_id=author.id,
            content=data.content,
            created_at=now,
            updated_at=now,
        )
        return await comment_repository.save(tx, comment)

    return _comment_to_dict(await run_in_transaction(db, work))


async def get_comment(db: DBHandle, comment_id: str) -> dict:
    return _comment_to_dict(await comment_repository.find_by_id(db, comment_id))


async def get_comments_by_blog(db: DBHandle, blog_id: str) -> list[dict]:
    # 404 for an unknown blog rather than an empty list.
    await blog_repository.find_by_id(db, blog_id)
    return [_comment_to_dict(c) for c in await comment_repository.find_by_blog_id(db, blog_id)]


async def update_comment(db: DBHandle, comment_id: str, user_id: str, data: CommentUpdate) -> dict:
    async def work(tx: DBHandle) -> Comment:
        comment = await comment_repository.find_by_id(tx, comment_id)
        _ensure_author(comment, user_id, "update")
        comment.content = data.content
        await comment_repository.update(tx, comment)
        return comment

    return _comment_to_dict(await run_in_transaction(db, work))


async def delete_comment(db: DBHandle, comment_id: str, user_id: str) -> None:
    async def work(tx: DBHandle) -> None:
        comment = await comment_repository.find_by_id(tx, comment_id)
        _ensure_author(comment, user_id, "delete")
        await comment_repository.delete_by_id(tx, comment_id)

    await run_in_transaction(db, work)
