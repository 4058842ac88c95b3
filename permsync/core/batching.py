"""
Batched persistence of reconciled permission changes.

Batches are written independently: a failed or timed-out batch is logged
and recorded, and the remaining batches still run. There is no atomicity
across batches.
"""

import asyncio
from collections.abc import Iterator, Sequence
from typing import TypeVar

from permsync.core.logging import get_logger
from permsync.models.permissions import Permission
from permsync.schemas.sync import BatchReport, BatchResult
from permsync.services.permission_store import PermissionRepository

logger = get_logger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive chunks of at most size items."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


async def apply_in_batches(
    repository: PermissionRepository,
    changes: Sequence[Permission],
    batch_size: int,
    timeout: float | None = None,
) -> BatchReport:
    """
    Write changes to the repository in fixed-size batches.

    Args:
        repository: Permission storage
        changes: Inserts, updates and soft-deletes to persist
        batch_size: Maximum permissions per batch
        timeout: Seconds allowed per batch (None waits forever)

    Returns:
        Report with one BatchResult per batch
    """
    batches = list(chunked(changes, batch_size))
    report = BatchReport()

    for index, batch in enumerate(batches, start=1):
        error: str | None = None
        try:
            success = await asyncio.wait_for(
                repository.batch_upsert_or_soft_delete(batch, batch_size), timeout
            )
        except asyncio.TimeoutError:
            success = False
            error = f"timed out after {timeout}s"
        except Exception as e:
            success = False
            error = f"{type(e).__name__}: {e}"

        report.batches.append(
            BatchResult(index=index, size=len(batch), success=success, error=error)
        )

        if success:
            logger.debug("permission_batch_applied", batch=index, batches=len(batches), size=len(batch))
        else:
            logger.error(
                "permission_batch_failed",
                batch=index,
                batches=len(batches),
                size=len(batch),
                error=error,
            )

    return report
