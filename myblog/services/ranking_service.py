"""
Ranking service: the popular-posts ranking.

``calculate_popular_ranking`` is the batch write path: aggregate recent
comment counts, number the blogs 1..N in score order and replace the
stored generation inside one transaction.  Running it twice over the same
comments yields the same positions and scores (only timestamps differ).

It does not guard against concurrent runs; ``myblog.batch`` holds the
exclusive lock around it.
"""
import logging
from datetime import datetime

from myblog.cache import cache, ranking_key
from myblog.config import settings
from myblog.database import DBHandle
from myblog.models import Ranking
from myblog.queries import blog_stats
from myblog.repositories import ranking_repository
from myblog.unit_of_work import run_in_transaction

logger = logging.getLogger(__name__)


def _ranking_to_dict(ranking: Ranking) -> dict:
    return {
        "blog_id": ranking.blog_id,
        "ranking_position": ranking.ranking_position,
        "score": ranking.score,
        "created_at": ranking.created_at.isoformat(),
        "updated_at": ranking.updated_at.isoformat(),
    }


def build_rankings(stats: list[blog_stats.BlogRankingData]) -> list[Ranking]:
    """Position is the 1-based index in *stats*, which is already in rank order."""
    return [
        Ranking(blog_id=stat.blog_id, ranking_position=i, score=stat.score)
        for i, stat in enumerate(stats, start=1)
    ]


async def calculate_popular_ranking(
    db: DBHandle,
    window_days: int,
    *,
    now: datetime | None = None,
) -> list[Ranking]:
    """
    Recompute the ranking from comments of the last *window_days* days.

    Any failure leaves the previous generation in place.  Zero blogs is a
    valid, empty generation.  *window_days* is validated by the caller.
    """
    stats = await blog_stats.get_ranking_data(db, window_days, now=now)
    rankings = build_rankings(stats)

    async def work(tx: DBHandle) -> None:
        await ranking_repository.replace_all(tx, rankings)

    await run_in_transaction(db, work)
    await cache.invalidate_rankings()
    logger.info("Ranking generation stored: %d blog(s), window=%d day(s)", len(rankings), window_days)
    return rankings


async def get_rankings(db: DBHandle, limit: int = 10) -> list[dict]:
    """Return the top *limit* entries of the current generation."""
    async def load() -> list[dict]:
        return [_ranking_to_dict(r) for r in await ranking_repository.get_rankings(db, limit)]

    return await cache.get_or_load(ranking_key(limit), load, ttl=settings.CACHE_TTL_RANKING)
