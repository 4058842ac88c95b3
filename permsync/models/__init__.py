"""
SQLModel Models - Database schema models.

Importing this package registers every table with SQLModel.metadata.
"""

from permsync.models.permissions import COMPARED_FIELDS, Permission, PermissionBase, PermissionDescriptor

__all__ = [
    "COMPARED_FIELDS",
    "Permission",
    "PermissionBase",
    "PermissionDescriptor",
]
