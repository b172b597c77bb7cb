"""
Ranking repository: the ``rankings`` table holds exactly one generation.

``replace_all`` swaps generations with a delete followed by one insert per
entry.  Readers only ever see a complete generation when it is run through
``run_in_transaction``; with a pool-bound handle each statement commits on
its own.
"""
from sqlalchemy import delete, insert, select

from myblog.database import DBHandle
from myblog.errors import storage_errors
from myblog.models import Ranking, utcnow


async def delete_all(db: DBHandle) -> int:
    stmt = delete(Ranking).execution_options(synchronize_session=False)
    with storage_errors("ranking_repository.delete_all"):
        async with db.session() as session:
            rowcount = (await session.execute(stmt)).rowcount
    return rowcount


async def insert_one(db: DBHandle, ranking: Ranking) -> Ranking:
    now = utcnow()
    ranking.created_at = now
    ranking.updated_at = now
    stmt = insert(Ranking).values(
        ranking_position=ranking.ranking_position,
        blog_id=ranking.blog_id,
        score=ranking.score,
        created_at=now,
        updated_at=now,
    )
    with storage_errors("ranking_repository.insert_one", ranking.blog_id):
        async with db.session() as session:
            await session.execute(stmt)
    return ranking


async def replace_all(db: DBHandle, rankings: list[Ranking]) -> None:
    await delete_all(db)
    for ranking in rankings:
        await insert_one(db, ranking)


async def get_rankings(db: DBHandle, limit: int) -> list[Ranking]:
    q = select(Ranking).order_by(Ranking.ranking_position.asc()).limit(limit)
    with storage_errors("ranking_repository.get_rankings"):
        async with db.session() as session:
            return list((await session.execute(q)).scalars().all())
