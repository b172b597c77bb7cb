"""
Unit of work: run a callable inside one database transaction.

The transaction is exposed to the callable as a transaction-bound
``DBHandle`` passed explicitly as its only argument.  Everything the
callable does through that handle commits or rolls back together.

Units of work do not nest.  Passing a handle that is already bound to a
transaction raises ``NestedTransactionError`` instead of quietly opening a
second, independent transaction.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from myblog.database import DBHandle
from myblog.errors import (
    NestedTransactionError,
    TransactionCommitError,
    TransactionError,
    TransactionRollbackError,
    TransactionStartError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_transaction(db: DBHandle, work: Callable[[DBHandle], Awaitable[T]]) -> T:
    """
    Begin a transaction, await ``work(tx_db)``, then commit.

    - ``work`` raises: the transaction is rolled back and the original
      exception propagates.  If the rollback fails too,
      ``TransactionRollbackError`` is raised with the original attached.
    - commit fails: ``TransactionCommitError``; the result of ``work`` is
      discarded.
    """
    if db.closed:
        raise TransactionError(
            "transaction handle used after the transaction ended", operation="run_in_transaction"
        )
    if db.in_transaction:
        raise NestedTransactionError(
            "run_in_transaction called with a handle already bound to a transaction",
            operation="run_in_transaction",
        )

    session = db.sessions()
    try:
        await session.begin()
        # Check out the connection now so a dead pool fails here, not mid-work.
        await session.connection()
    except SQLAlchemyError as exc:
        await session.close()
        raise TransactionStartError("failed to begin transaction", operation="begin") from exc

    tx_db = DBHandle(db.sessions, session=session)
    logger.debug("Transaction started")
    try:
        try:
            result = await work(tx_db)
        except Exception as exc:
            try:
                await session.rollback()
            except SQLAlchemyError as rb_exc:
                logger.error("Rollback failed after %r: %s", exc, rb_exc)
                raise TransactionRollbackError(
                    "failed to rollback transaction", operation="rollback", original=exc
                ) from rb_exc
            logger.warning("Transaction rolled back: %s", exc)
            raise

        try:
            await session.commit()
        except SQLAlchemyError as exc:
            raise TransactionCommitError("failed to commit transaction", operation="commit") from exc
        logger.debug("Transaction committed")
        return result
    finally:
        tx_db.close()
        await session.close()
