from fastapi import APIRouter, Depends

from myblog.cache import cache
from myblog.database import DBHandle, get_read_db
from myblog.repositories import blog_repository, comment_repository, user_repository
from myblog.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: DBHandle = Depends(get_read_db)):
    total_blogs = await blog_repository.count(db)
    total_comments = await comment_repository.count(db)
    total_users = await user_repository.count(db)

    avg_comments = total_comments / total_blogs if total_blogs > 0 else 0

    return MetricsResponse(
        total_blogs=total_blogs,
        total_comments=total_comments,
        total_users=total_users,
        avg_comments_per_blog=round(avg_comments, 2),
        cache_info=cache.stats,
    )
