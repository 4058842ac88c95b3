"""
SQLModel-based Permission models

This module defines the permission table and its in-memory staging type:
- PermissionBase: Fields shared by persisted and declared permissions
- Permission: The persisted permission row (soft-deletable)
- PermissionDescriptor: A permission as declared in code, before persistence

Descriptors are rebuilt on every sync pass and never written directly;
they are converted to Permission rows once reconciliation decides they
need to be inserted or updated.
"""

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

# Fields compared between a persisted row and its declared counterpart
COMPARED_FIELDS = (
    "menu_id",
    "menu_code",
    "menu_name",
    "permission_code",
    "permission_name",
)


# ===== Permission =====


class PermissionBase(SQLModel):
    """
    Base model with shared fields for permissions.

    permission_code is the join key between declared and persisted permissions.
    """

    menu_id: int | None = Field(default=None)
    menu_code: str | None = Field(default=None, max_length=50)
    menu_name: str | None = Field(default=None, max_length=100)
    permission_code: str | None = Field(default=None, max_length=100)
    permission_name: str | None = Field(default=None, max_length=100)
    deleted: bool = Field(default=False)


class Permission(PermissionBase, table=True):
    """
    Database table for permissions.

    Rows are never removed by the sync pass, only flagged as deleted.
    """

    __tablename__ = "permission"

    # permission_code is not unique: a soft-deleted row may share its code
    # with a live one
    __table_args__ = (Index("idx_permission_code", "permission_code"),)

    # Primary key
    id: int | None = Field(default=None, primary_key=True)


# ===== PermissionDescriptor =====


class PermissionDescriptor(PermissionBase):
    """
    A permission as declared in code.

    high_priority marks method-level declarations, which win over a
    class-level declaration of the same code. id is only set when the
    descriptor updates an existing row.
    """

    id: int | None = None
    high_priority: bool = False

    def to_permission(self) -> Permission:
        """Convert to a storage record, dropping staging-only fields."""
        return Permission(**self.model_dump(exclude={"high_priority"}))
