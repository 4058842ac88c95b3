"""
Reconciliation of declared permissions against the persisted snapshot.

For every persisted permission:
- Declared and different: update it (the descriptor takes the row's id)
- Declared and identical: nothing to do
- Not declared: soft-delete it under DELETE_ON_MISSING, keep it otherwise

Declared permissions with no persisted row are inserted.
"""

from collections.abc import Iterable

from permsync.config import DeletionPolicy
from permsync.core.logging import get_logger
from permsync.models.permissions import COMPARED_FIELDS, Permission, PermissionDescriptor
from permsync.schemas.sync import ReconcileCounts

logger = get_logger(__name__)

__all__ = ["DeletionPolicy", "build_snapshot", "needs_modify", "reconcile"]


def build_snapshot(records: Iterable[Permission]) -> dict[str, Permission]:
    """Key active permission rows by permission_code."""
    return {record.permission_code: record for record in records if record.permission_code}


def needs_modify(permission: Permission, descriptor: PermissionDescriptor) -> bool:
    """Return True if any compared field differs (None equals None)."""
    return any(
        getattr(permission, field) != getattr(descriptor, field) for field in COMPARED_FIELDS
    )


def _soft_deleted(permission: Permission) -> Permission:
    return Permission(**{**permission.model_dump(), "deleted": True})


def reconcile(
    snapshot: dict[str, Permission],
    declared: dict[str, PermissionDescriptor],
    policy: DeletionPolicy = DeletionPolicy.RETAIN_ON_MISSING,
) -> tuple[list[Permission], ReconcileCounts]:
    """
    Diff declared permissions against the persisted snapshot.

    Neither input is modified.

    Args:
        snapshot: Active persisted permissions keyed by code
        declared: Collected descriptors keyed by code
        policy: What to do with persisted codes that are no longer declared

    Returns:
        Tuple of (change list, counts). Soft-deletes come first in snapshot
        order, followed by inserts and updates in collection order.
    """
    policy = DeletionPolicy(policy)
    pending = dict(declared)
    changes: list[Permission] = []
    modified = removed = 0

    for code, permission in snapshot.items():
        descriptor = pending.get(code)
        if descriptor is not None:
            if needs_modify(permission, descriptor):
                modified += 1
                pending[code] = descriptor.model_copy(update={"id": permission.id})
            else:
                del pending[code]
        elif policy == DeletionPolicy.DELETE_ON_MISSING:
            removed += 1
            changes.append(_soft_deleted(permission))
        else:
            logger.debug("permission_retained", permission_code=code, policy=policy.value)

    changes.extend(descriptor.to_permission() for descriptor in pending.values())

    counts = ReconcileCounts(
        total=len(declared),
        inserted=len(changes) - modified - removed,
        modified=modified,
        removed=removed,
    )
    return changes, counts
