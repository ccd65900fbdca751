"""
Storage helpers for the managers.
- storage_errors: driver/connection failures -> StorageError (safe to retry).
- mutate_with_retry: optimistic compare-and-swap on the row `version` column.
  UPDATE ... WHERE id = :id AND version = :seen; 0 rows = another writer won,
  so the row is re-read and the change recomputed (up to OCC_MAX_RETRIES).
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional, Type, TypeVar, Union
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.config import get_settings
from truck_social.db import Base
from truck_social.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from truck_social.logging_config import get_logger

logger = get_logger(__name__)

RowT = TypeVar("RowT", bound=Base)
# Computes the column values to write from the current row; None = nothing to change.
# Must not assign attributes on the row itself.
Mutation = Callable[[Any], Optional[Dict[str, Any]]]


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    """Wrap connectivity failures of the block as StorageError."""
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError, OSError) as e:
        logger.warning("storage.unavailable", operation=operation, error=str(e))
        raise StorageError(
            f"Storage unavailable during {operation}",
            extra={"operation": operation},
        ) from e


def coerce_uuid(value: Union[str, UUID], label: str = "id") -> UUID:
    """Parse an id given as str or UUID; malformed ids are a ValidationError."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise ValidationError(f"Malformed {label}: {value!r}", code="invalid_id") from e


async def load_row(db: AsyncSession, model: Type[RowT], row_id: UUID, *, fresh: bool = False) -> RowT:
    """SELECT one row by id; NotFoundError if absent. fresh=True overwrites the identity-map copy."""
    q = select(model).where(model.id == row_id)
    if fresh:
        q = q.execution_options(populate_existing=True)
    r = await db.execute(q)
    row = r.scalar_one_or_none()
    if row is None:
        raise NotFoundError(
            f"{model.__name__} not found",
            code=f"{model.__tablename__}_not_found",
            extra={"id": str(row_id)},
        )
    return row


async def compare_and_swap(db: AsyncSession, row: Base, values: Dict[str, Any], seen_version: int) -> bool:
    """
    Apply values only if the stored version is still seen_version (the one read). True on success.
    seen_version is passed in: row.version may already reflect a synchronized write by then.
    """
    model = type(row)
    stmt = (
        update(model)
        .where(model.id == row.id, model.version == seen_version)
        .values(**values, version=seen_version + 1)
        .execution_options(synchronize_session=False)
    )
    r = await db.execute(stmt)
    return r.rowcount == 1


async def mutate_with_retry(
    db: AsyncSession,
    model: Type[RowT],
    row_id: UUID,
    mutation: Mutation,
    *,
    operation: str,
    max_attempts: Optional[int] = None,
) -> RowT:
    """
    Read-modify-write loop under optimistic concurrency.
    Returns the row as stored after the write (or unchanged when mutation returns None).
    Raises NotFoundError, whatever mutation raises, ConflictError after max_attempts collisions.
    """
    attempts = max_attempts or get_settings().occ_max_retries
    async with storage_errors(operation):
        for attempt in range(1, attempts + 1):
            row = await load_row(db, model, row_id, fresh=True)
            seen = row.version
            values = mutation(row)
            if not values:
                return row
            if await compare_and_swap(db, row, values, seen):
                await db.refresh(row)
                return row
            logger.info("occ.conflict_retry", operation=operation, id=str(row_id), attempt=attempt)
    logger.warning("occ.conflict_exhausted", operation=operation, id=str(row_id), attempts=attempts)
    raise ConflictError(
        f"Concurrent updates kept colliding during {operation}",
        extra={"id": str(row_id), "attempts": attempts},
    )
