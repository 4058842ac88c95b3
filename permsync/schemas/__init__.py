"""
Pydantic schemas for declarations and sync results
"""
from permsync.schemas.declarations import (
    DeclarationSite,
    PermissionDeclaration,
    PermissionGroup,
)
from permsync.schemas.sync import (
    BatchReport,
    BatchResult,
    ReconcileCounts,
    SyncOutcome,
    SyncStatus,
)

__all__ = [
    "BatchReport",
    "BatchResult",
    "DeclarationSite",
    "PermissionDeclaration",
    "PermissionGroup",
    "ReconcileCounts",
    "SyncOutcome",
    "SyncStatus",
]
