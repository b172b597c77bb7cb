"""
Batch entry point.

    myblog-batch calculate-popular-ranking DAYS

Recomputes the popular-posts ranking from the comments of the last DAYS
days while holding an exclusive lock, so overlapping runs (cron firing
while a slow run is still going, a manual re-run) are refused instead of
interleaving.  Exit status is 0 on success and 1 on any failure, with the
reason on stderr; argparse exits 2 on a malformed argument.
"""
import argparse
import asyncio
import logging
import sys
import time
from datetime import timedelta

from myblog.cache import cache
from myblog.config import settings
from myblog.database import Database
from myblog.errors import AlreadyLockedError, AppError, ValidationError
from myblog.models import Ranking
from myblog.mutex import Mutex, create_lock_store
from myblog.services import ranking_service

logger = logging.getLogger(__name__)


def validate_days(days: int) -> int:
    if days <= 0:
        raise ValidationError("days must be 1 or greater", operation="calculate-popular-ranking")
    return days


def _positive_days(value: str) -> int:
    try:
        return validate_days(int(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid day count: {value!r}")
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(exc.message)


async def calculate_popular_ranking(
    days: int,
    *,
    database: Database,
    mutex: Mutex,
    lock_ttl: timedelta | None = None,
) -> list[Ranking]:
    """Run one ranking generation under the batch lock."""
    validate_days(days)
    lock_ttl = lock_ttl or timedelta(seconds=settings.RANKING_LOCK_TTL_SECONDS)
    async with mutex.lock(settings.RANKING_LOCK_ID, lock_ttl):
        return await ranking_service.calculate_popular_ranking(database.write(), days)


async def _run_calculate_popular_ranking(args: argparse.Namespace) -> None:
    database = Database(settings.DATABASE_URL)
    store = create_lock_store(settings.LOCK_BACKEND, database=database, redis_url=settings.REDIS_URL)
    # Connected so the new generation evicts the API's cached rankings.
    await cache.connect()
    try:
        await calculate_popular_ranking(args.days, database=database, mutex=Mutex(store))
    finally:
        await cache.disconnect()
        await store.close()
        await database.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="myblog-batch", description="MyBlog batch jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ranking = subparsers.add_parser(
        "calculate-popular-ranking",
        help="Recompute the popular-posts ranking",
        description="Rank every blog by the number of comments it received in the last DAYS days.",
        epilog="example: myblog-batch calculate-popular-ranking 7",
    )
    ranking.add_argument("days", type=_positive_days, help="Aggregation window in days (>= 1)")
    ranking.set_defaults(handler=_run_calculate_popular_ranking)
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)

    start = time.perf_counter()
    try:
        asyncio.run(args.handler(args))
    except AlreadyLockedError as exc:
        print(f"{args.command} is already running (lock {exc.entity_id!r}); skipped", file=sys.stderr)
        return 1
    except AppError as exc:
        print(f"{args.command} failed: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("Batch %s crashed", args.command)
        print(f"{args.command} failed: unexpected error: {exc}", file=sys.stderr)
        return 1

    logger.info("Batch finished: %s (%.2fs)", args.command, time.perf_counter() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
