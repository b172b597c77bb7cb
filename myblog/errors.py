"""
Error taxonomy shared by every layer.

Lower layers raise these with the operation name and, where there is one,
the entity id.  Nothing below the HTTP layer or the batch entry point
retries or translates them; ``main.py`` maps ``status_code`` onto the
response and ``batch.py`` maps any of them onto a non-zero exit.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class AppError(Exception):
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        entity_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.entity_id = entity_id

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class ConflictError(AppError):
    status_code = 409


class AlreadyLockedError(AppError):
    """Another holder owns a live lock for the same id."""

    status_code = 409


class InfrastructureError(AppError):
    """Opaque storage failure.  Callers must not interpret the cause."""


class TransactionError(AppError):
    pass


class TransactionStartError(TransactionError):
    pass


class TransactionCommitError(TransactionError):
    pass


class TransactionRollbackError(TransactionError):
    """
    Rollback failed after the unit of work had already failed.

    ``original`` is the exception raised by the work; the rollback failure
    itself is the ``__cause__``.
    """

    def __init__(self, message: str, *, original: BaseException, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.original = original

    def __str__(self) -> str:
        return f"{super().__str__()} (original error: {self.original!r})"


class NestedTransactionError(TransactionError):
    pass


@contextmanager
def storage_errors(operation: str, entity_id: str | None = None) -> Iterator[None]:
    """
    Translate driver exceptions raised inside the block into
    ``InfrastructureError``.  Application errors pass through untouched.
    """
    try:
        yield
    except IntegrityError as exc:
        raise ConflictError(
            "constraint violation", operation=operation, entity_id=entity_id
        ) from exc
    except SQLAlchemyError as exc:
        raise InfrastructureError(
            "storage failure", operation=operation, entity_id=entity_id
        ) from exc
