"""
Explicit registration of code-declared permissions.

Routers register their permission groups at import time instead of relying
on annotation scanning:

    users = registry.group("user", "User management", prefix="user")
    users.class_level(["read"], ["View users"])
    users.method(["add", "edit"], ["Add user", "Edit user"])

The sync pass reads registry.sites() in registration order.
"""

from collections.abc import Iterator, Sequence

from permsync.schemas.declarations import DeclarationSite, PermissionDeclaration, PermissionGroup


class GroupBuilder:
    """Appends declarations to one registered group."""

    def __init__(self, site: DeclarationSite) -> None:
        self._site = site

    @property
    def group(self) -> PermissionGroup:
        return self._site.group

    def class_level(
        self,
        values: Sequence[str],
        names: Sequence[str],
        prefix: str = "",
        ignore_prefix: bool = False,
    ) -> "GroupBuilder":
        """Declare permissions covering the whole group (low priority)."""
        return self._declare(values, names, prefix, ignore_prefix, high_priority=False)

    def method(
        self,
        values: Sequence[str],
        names: Sequence[str],
        prefix: str = "",
        ignore_prefix: bool = False,
    ) -> "GroupBuilder":
        """Declare permissions for a single endpoint (high priority)."""
        return self._declare(values, names, prefix, ignore_prefix, high_priority=True)

    def _declare(
        self,
        values: Sequence[str],
        names: Sequence[str],
        prefix: str,
        ignore_prefix: bool,
        high_priority: bool,
    ) -> "GroupBuilder":
        self._site.declarations.append(
            PermissionDeclaration(
                values=list(values),
                names=list(names),
                prefix=prefix,
                ignore_prefix=ignore_prefix,
                high_priority=high_priority,
            )
        )
        return self


class DeclarationRegistry:
    """Ordered collection of declaration sites."""

    def __init__(self) -> None:
        self._sites: list[DeclarationSite] = []

    def group(self, menu_code: str, menu_name: str, prefix: str = "") -> GroupBuilder:
        """Register a new group and return a builder for its declarations."""
        site = DeclarationSite(
            group=PermissionGroup(menu_code=menu_code, menu_name=menu_name, prefix=prefix)
        )
        self._sites.append(site)
        return GroupBuilder(site)

    def register(self, site: DeclarationSite) -> None:
        self._sites.append(site)

    def sites(self) -> list[DeclarationSite]:
        return list(self._sites)

    def clear(self) -> None:
        self._sites.clear()

    def __iter__(self) -> Iterator[DeclarationSite]:
        return iter(self.sites())

    def __len__(self) -> int:
        return len(self._sites)


# Default registry used by the application
registry = DeclarationRegistry()
