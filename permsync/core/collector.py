"""
Descriptor collection: turn registered declarations into permission descriptors.

Every declaration is expanded into (code, name) pairs and merged into a single
map keyed by permission code. When two declarations produce the same code, a
method-level (high priority) descriptor is never replaced; anything else is
overwritten by the later declaration.
"""

from collections.abc import Iterable

from pydantic import ValidationError

from permsync.config import settings
from permsync.core.logging import get_logger
from permsync.models.permissions import PermissionDescriptor
from permsync.schemas.declarations import DeclarationSite, PermissionDeclaration, PermissionGroup

logger = get_logger(__name__)


class DeclarationError(ValueError):
    """Raised for a declaration that cannot be expanded into permissions."""


def resolve_prefix(group: PermissionGroup, declaration: PermissionDeclaration) -> str:
    """Declaration prefix wins over the group prefix; ignore_prefix disables both."""
    if declaration.ignore_prefix:
        return ""
    return declaration.prefix or group.prefix


def join_code(prefix: str, value: str) -> str:
    """
    Build a permission code.

    Example:
        join_code("user", "add") == "user:add"
        join_code("", "add") == "add"
    """
    return f"{prefix}:{value}" if prefix else value


def expand_declaration(
    group: PermissionGroup, declaration: PermissionDeclaration
) -> list[tuple[str, str]]:
    """
    Expand a declaration into (permission_code, permission_name) pairs.

    If names and values differ in length, every permission of the declaration
    gets the last name.

    Raises:
        DeclarationError: If values or names are empty, or a value is blank
    """
    values = declaration.values
    names = declaration.names
    if not values:
        raise DeclarationError("declaration has no permission values")
    if not names:
        raise DeclarationError("declaration has no permission names")

    prefix = resolve_prefix(group, declaration)
    mismatched = len(values) != len(names)

    pairs: list[tuple[str, str]] = []
    for i, value in enumerate(values):
        if not value or not value.strip():
            raise DeclarationError(f"blank permission value at position {i}")
        name = names[-1] if mismatched else names[i]
        pairs.append((join_code(prefix, value), name))
    return pairs


def collect(
    sites: Iterable[DeclarationSite],
    menu_id: int | None = None,
) -> dict[str, PermissionDescriptor]:
    """
    Collect descriptors from all declaration sites.

    Malformed declarations, including ones whose fields exceed the column
    limits, are logged and skipped as a whole; the rest of the pass continues.
    A new map is built on every call.

    Args:
        sites: Declaration sites in processing order
        menu_id: menu_id stamped on every descriptor (defaults to PERMISSION_MENU_ID)

    Returns:
        Dict mapping permission code to its winning descriptor
    """
    if menu_id is None:
        menu_id = settings.PERMISSION_MENU_ID

    collected: dict[str, PermissionDescriptor] = {}
    for site in sites:
        group = site.group
        for declaration in site.declarations:
            try:
                descriptors = [
                    PermissionDescriptor(
                        menu_id=menu_id,
                        menu_code=group.menu_code,
                        menu_name=group.menu_name,
                        permission_code=code,
                        permission_name=name,
                        deleted=False,
                        high_priority=declaration.high_priority,
                    )
                    for code, name in expand_declaration(group, declaration)
                ]
            except (DeclarationError, ValidationError) as e:
                logger.warning(
                    "permission_declaration_skipped",
                    menu_code=group.menu_code,
                    values=declaration.values,
                    reason=str(e),
                )
                continue

            for descriptor in descriptors:
                code = descriptor.permission_code
                existing = collected.get(code)
                if existing is not None and existing.high_priority:
                    continue
                collected[code] = descriptor

    logger.debug("permission_descriptors_collected", count=len(collected))
    return collected
