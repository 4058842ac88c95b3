"""Pydantic schemas describing the result of a permission sync pass."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class ReconcileCounts(BaseModel):
    """How many declared permissions a pass inserts, modifies and removes."""

    total: int = 0
    inserted: int = 0
    modified: int = 0
    removed: int = 0


class BatchResult(BaseModel):
    """Outcome of writing one batch of permissions."""

    index: int = Field(description="1-based batch number")
    size: int
    success: bool
    error: str | None = None


class BatchReport(BaseModel):
    """Aggregated outcome of all batches in a pass."""

    batches: list[BatchResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return len(self.batches)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return sum(1 for batch in self.batches if batch.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


class SyncStatus(str, Enum):
    """Final state of a sync pass"""

    SKIPPED = "skipped"  # nested startup context
    DISABLED = "disabled"  # STORAGE_PERMISSIONS is off
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    ERROR = "error"


class SyncOutcome(BaseModel):
    """What the host application gets back from a sync pass."""

    status: SyncStatus
    counts: ReconcileCounts | None = None
    report: BatchReport | None = None
    error: str | None = None
