"""
Permission sync: Keep the permission table in step with code-declared permissions.

This module makes the declaration registry the single source of truth for
permissions. On startup, it:
- Inserts permissions declared in code but not in the DB
- Updates permissions whose menu or name changed
- Soft-deletes permissions no longer declared (DELETE_ON_MISSING only)

A failed sync never fails startup; the outcome is returned to the host
application, which decides what to log or expose.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from permsync.config import DeletionPolicy, Settings, settings
from permsync.core.batching import apply_in_batches
from permsync.core.collector import collect
from permsync.core.logging import bind_context, clear_sync_pass, get_logger, set_sync_pass, unbind_context
from permsync.core.reconciler import build_snapshot, reconcile
from permsync.core.registry import DeclarationRegistry
from permsync.schemas.sync import BatchReport, SyncOutcome, SyncStatus
from permsync.services.permission_store import PermissionRepository

logger = get_logger(__name__)


@dataclass
class StartupContext:
    """The application context that triggered a sync, and its parent if nested."""

    app: Any = None
    parent: "StartupContext | None" = None

    @property
    def is_root(self) -> bool:
        return self.parent is None


class PermissionSyncListener(ABC):
    """
    Runs caller startup logic, then syncs declared permissions to the database.

    Subclasses implement custom_execute() for their own startup work.
    Permission sync runs once per root startup context; nested contexts
    are ignored.
    """

    def __init__(
        self,
        repository: PermissionRepository,
        registry: DeclarationRegistry,
        storage_permissions: bool | None = True,
        policy: DeletionPolicy | None = DeletionPolicy.RETAIN_ON_MISSING,
        batch_size: int | None = None,
        menu_id: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.repository = repository
        self.registry = registry
        self.storage_permissions = True if storage_permissions is None else storage_permissions
        self.policy = DeletionPolicy.RETAIN_ON_MISSING if policy is None else DeletionPolicy(policy)
        self.batch_size = settings.BATCH_SIZE if batch_size is None else batch_size
        self.menu_id = menu_id
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls,
        repository: PermissionRepository,
        registry: DeclarationRegistry,
        config: Settings,
    ) -> "PermissionSyncListener":
        return cls(
            repository,
            registry,
            storage_permissions=config.STORAGE_PERMISSIONS,
            policy=config.deletion_policy,
            batch_size=config.BATCH_SIZE,
            menu_id=config.PERMISSION_MENU_ID,
            timeout=config.PERMISSION_SYNC_TIMEOUT_SECONDS,
        )

    async def run(self, context: StartupContext) -> SyncOutcome:
        """
        Handle an application startup.

        Args:
            context: Startup context; ignored if it has a parent

        Returns:
            Outcome of the pass (SKIPPED for nested contexts,
            DISABLED when storage_permissions is off)
        """
        if not context.is_root:
            return SyncOutcome(status=SyncStatus.SKIPPED)

        await self.custom_execute(context)

        if not self.storage_permissions:
            logger.info("permission_sync_disabled")
            return SyncOutcome(status=SyncStatus.DISABLED)

        return await self.sync_permissions()

    @abstractmethod
    async def custom_execute(self, context: StartupContext) -> None:
        """Caller-specific startup logic, run before permission sync."""

    async def sync_permissions(self) -> SyncOutcome:
        """
        Snapshot, collect, reconcile and persist declared permissions.

        - Idempotent - safe to run on every startup
        - Never raises: any error is logged and returned as an ERROR outcome

        Returns:
            SUCCESS, PARTIAL_FAILURE (some batches failed) or ERROR
        """
        set_sync_pass(uuid.uuid4().hex[:12])
        bind_context(policy=self.policy.value)
        try:
            snapshot = build_snapshot(await self.repository.list_active())
            declared = collect(self.registry.sites(), menu_id=self.menu_id)
            changes, counts = reconcile(snapshot, declared, self.policy)

            logger.info(
                "permissions_reconciled",
                total=counts.total,
                inserted=counts.inserted,
                modified=counts.modified,
                removed=counts.removed,
            )
            if self.policy == DeletionPolicy.RETAIN_ON_MISSING:
                logger.debug("permission_deletes_disabled", hint="Missing permissions are kept")

            if not changes:
                return SyncOutcome(status=SyncStatus.SUCCESS, counts=counts, report=BatchReport())

            report = await apply_in_batches(
                self.repository, changes, self.batch_size, timeout=self.timeout
            )
            status = SyncStatus.SUCCESS if report.all_succeeded else SyncStatus.PARTIAL_FAILURE
            logger.info(
                "permissions_synced",
                status=status.value,
                batches=report.total,
                failed_batches=report.failed,
            )
            return SyncOutcome(status=status, counts=counts, report=report)

        except Exception as e:
            logger.error("permission_sync_error", error=str(e), error_type=type(e).__name__, exc_info=True)
            return SyncOutcome(status=SyncStatus.ERROR, error=f"{type(e).__name__}: {e}")

        finally:
            unbind_context("policy")
            clear_sync_pass()
