"""Permission storage: snapshot reads and batched writes."""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from permsync.core.logging import get_logger
from permsync.models.permissions import Permission

logger = get_logger(__name__)


class PermissionRepository(Protocol):
    """Storage operations the sync pass depends on."""

    async def list_active(self) -> list[Permission]: ...

    async def batch_upsert_or_soft_delete(
        self, permissions: Sequence[Permission], batch_size: int
    ) -> bool: ...


class SqlPermissionRepository:
    """PermissionRepository backed by the permission table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def list_active(self) -> list[Permission]:
        """
        Fetch all permissions that are not soft-deleted.

        Returns:
            Permission rows ordered by id
        """
        async with self.session_factory() as db:
            result = await db.execute(
                select(Permission)
                .where(Permission.deleted == False)  # noqa: E712
                .order_by(Permission.id)  # type: ignore[arg-type]
            )
            return list(result.scalars().all())

    async def batch_upsert_or_soft_delete(
        self, permissions: Sequence[Permission], batch_size: int
    ) -> bool:
        """
        Insert, update or soft-delete permissions in one transaction.

        Rows without an id are inserted; rows with an id overwrite the stored
        row (which covers both updates and soft-deletes). The session is
        flushed every batch_size rows.

        Args:
            permissions: Rows to write
            batch_size: Rows per flush

        Returns:
            True if the transaction committed, False if it was rolled back
        """
        if not permissions:
            return True

        async with self.session_factory() as db:
            try:
                for i, permission in enumerate(permissions, start=1):
                    if permission.id is None:
                        db.add(Permission(**permission.model_dump(exclude={"id"})))
                    else:
                        await db.merge(Permission(**permission.model_dump()))
                    if i % batch_size == 0:
                        await db.flush()
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(
                    "permission_batch_write_failed",
                    size=len(permissions),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return False

        return True
