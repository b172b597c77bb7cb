"""
Blog statistics feeding the popular-posts ranking.

Every blog appears in the result, including blogs with no comments in the
window (outer join, count 0).  Ordering is score descending with blog id
ascending as the tie-break, so equal scores rank the same way on every run
and on every storage engine.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import func, select

from myblog.database import DBHandle
from myblog.errors import storage_errors
from myblog.models import Blog, Comment, utcnow


@dataclass(frozen=True)
class BlogRankingData:
    blog_id: str
    comment_count: int
    score: int


def comment_count_score(comment_count: int) -> int:
    """Current scoring policy: one point per comment in the window."""
    return comment_count


async def get_ranking_data(
    db: DBHandle,
    window_days: int,
    *,
    now: datetime | None = None,
    score_policy: Callable[[int], int] = comment_count_score,
) -> list[BlogRankingData]:
    cutoff = (now or utcnow()) - timedelta(days=window_days)

    recent = (
        select(Comment.blog_id, func.count().label("comment_count"))
        .where(Comment.created_at >= cutoff)
        .group_by(Comment.blog_id)
        .subquery()
    )
    comment_count = func.coalesce(recent.c.comment_count, 0)
    q = (
        select(Blog.id, comment_count.label("comment_count"))
        .outerjoin(recent, Blog.id == recent.c.blog_id)
        .order_by(comment_count.desc(), Blog.id.asc())
    )

    with storage_errors("blog_stats.get_ranking_data"):
        async with db.session() as session:
            rows = (await session.execute(q)).all()

    data = [
        BlogRankingData(blog_id=row.id, comment_count=row.comment_count, score=score_policy(row.comment_count))
        for row in rows
    ]
    # A policy other than the identity can reorder blogs, so sort again on the final score.
    return sorted(data, key=lambda d: (-d.score, d.blog_id))
