"""
Tests for descriptor collection.

Tests cover:
- Prefix resolution and code joining
- Name fallback when names and values differ in length
- Priority rules when two declarations produce the same code
- Skipping malformed declarations
"""

import pytest

from permsync.core.collector import (
    DeclarationError,
    collect,
    expand_declaration,
    join_code,
    resolve_prefix,
)
from permsync.core.registry import DeclarationRegistry
from permsync.schemas.declarations import DeclarationSite, PermissionDeclaration, PermissionGroup


@pytest.fixture
def user_group() -> PermissionGroup:
    return PermissionGroup(menu_code="user", menu_name="User management", prefix="user")


@pytest.mark.unit
class TestPrefixes:
    """Test prefix resolution and code joining."""

    def test_join_with_prefix(self):
        assert join_code("user", "add") == "user:add"

    def test_join_without_prefix(self):
        assert join_code("", "add") == "add"

    def test_group_prefix_used_by_default(self, user_group: PermissionGroup):
        declaration = PermissionDeclaration(values=["add"], names=["Add"])
        assert resolve_prefix(user_group, declaration) == "user"

    def test_declaration_prefix_overrides_group(self, user_group: PermissionGroup):
        declaration = PermissionDeclaration(values=["add"], names=["Add"], prefix="member")
        assert resolve_prefix(user_group, declaration) == "member"

    def test_ignore_prefix_wins(self, user_group: PermissionGroup):
        declaration = PermissionDeclaration(
            values=["add"], names=["Add"], prefix="member", ignore_prefix=True
        )
        assert resolve_prefix(user_group, declaration) == ""
        assert expand_declaration(user_group, declaration) == [("add", "Add")]


@pytest.mark.unit
class TestExpandDeclaration:
    """Test expansion of a declaration into (code, name) pairs."""

    def test_parallel_values_and_names(self, user_group: PermissionGroup):
        declaration = PermissionDeclaration(values=["add", "edit"], names=["Add", "Edit"])
        assert expand_declaration(user_group, declaration) == [
            ("user:add", "Add"),
            ("user:edit", "Edit"),
        ]

    def test_name_mismatch_uses_last_name(self, user_group: PermissionGroup):
        """Every permission takes the last name when the lists differ in length."""
        declaration = PermissionDeclaration(values=["add", "edit"], names=["manage"])
        assert expand_declaration(user_group, declaration) == [
            ("user:add", "manage"),
            ("user:edit", "manage"),
        ]

    def test_extra_names_also_use_last_name(self, user_group: PermissionGroup):
        declaration = PermissionDeclaration(values=["add"], names=["first", "second"])
        assert expand_declaration(user_group, declaration) == [("user:add", "second")]

    def test_empty_values_rejected(self, user_group: PermissionGroup):
        with pytest.raises(DeclarationError):
            expand_declaration(user_group, PermissionDeclaration(values=[], names=["x"]))

    def test_empty_names_rejected(self, user_group: PermissionGroup):
        with pytest.raises(DeclarationError):
            expand_declaration(user_group, PermissionDeclaration(values=["add"], names=[]))

    def test_blank_value_rejected(self, user_group: PermissionGroup):
        with pytest.raises(DeclarationError):
            expand_declaration(user_group, PermissionDeclaration(values=["add", " "], names=["x"]))


@pytest.mark.unit
class TestCollect:
    """Test merging declarations into a single descriptor map."""

    def test_collects_all_codes(self, sample_registry: DeclarationRegistry):
        collected = collect(sample_registry.sites(), menu_id=3)

        assert list(collected) == ["user:read", "user:add", "user:edit", "order:list", "export"]
        add = collected["user:add"]
        assert add.menu_id == 3
        assert add.menu_code == "user"
        assert add.menu_name == "User management"
        assert add.permission_name == "Add user"
        assert add.high_priority is True
        assert add.deleted is False
        assert add.id is None
        assert collected["user:read"].high_priority is False

    def test_menu_id_defaults_to_setting(self, sample_registry: DeclarationRegistry, monkeypatch):
        from permsync.config import settings

        monkeypatch.setattr(settings, "PERMISSION_MENU_ID", 42)
        collected = collect(sample_registry.sites())
        assert {d.menu_id for d in collected.values()} == {42}

    def test_idempotent(self, sample_registry: DeclarationRegistry):
        first = collect(sample_registry.sites(), menu_id=3)
        second = collect(sample_registry.sites(), menu_id=3)
        assert first == second
        assert first is not second

    def test_high_priority_not_overwritten_by_later_low_priority(self):
        registry = DeclarationRegistry()
        registry.group("user", "Users", prefix="user").method(["add"], ["Method name"])
        registry.group("user2", "Users 2", prefix="user").class_level(["add"], ["Class name"])

        descriptor = collect(registry.sites(), menu_id=3)["user:add"]
        assert descriptor.permission_name == "Method name"
        assert descriptor.menu_code == "user"
        assert descriptor.high_priority is True

    def test_low_priority_overwritten_by_later_high_priority(self):
        registry = DeclarationRegistry()
        registry.group("user", "Users", prefix="user").class_level(["add"], ["Class name"]).method(
            ["add"], ["Method name"]
        )

        descriptor = collect(registry.sites(), menu_id=3)["user:add"]
        assert descriptor.permission_name == "Method name"
        assert descriptor.high_priority is True

    def test_low_priority_overwritten_by_later_low_priority(self):
        registry = DeclarationRegistry()
        registry.group("a", "A", prefix="shared").class_level(["view"], ["First"])
        registry.group("b", "B", prefix="shared").class_level(["view"], ["Second"])

        descriptor = collect(registry.sites(), menu_id=3)["shared:view"]
        assert descriptor.permission_name == "Second"
        assert descriptor.menu_code == "b"

    def test_first_high_priority_kept(self):
        """A high priority descriptor is never replaced, even by another high priority one."""
        registry = DeclarationRegistry()
        registry.group("a", "A", prefix="shared").method(["view"], ["First"])
        registry.group("b", "B", prefix="shared").method(["view"], ["Second"])

        assert collect(registry.sites(), menu_id=3)["shared:view"].permission_name == "First"

    def test_malformed_declaration_skipped(self, user_group: PermissionGroup):
        site = DeclarationSite(
            group=user_group,
            declarations=[
                PermissionDeclaration(values=[], names=["Broken"]),
                PermissionDeclaration(values=["add"], names=["Add"]),
            ],
        )

        collected = collect([site], menu_id=3)
        assert list(collected) == ["user:add"]

    def test_oversized_declaration_skipped(self, user_group: PermissionGroup):
        """A code longer than the column limit drops only its own declaration."""
        site = DeclarationSite(
            group=user_group,
            declarations=[
                PermissionDeclaration(values=["ok", "x" * 120], names=["Ok", "Too long"]),
                PermissionDeclaration(values=["add"], names=["Add"]),
            ],
        )

        collected = collect([site], menu_id=3)
        assert list(collected) == ["user:add"]

    def test_empty_sites(self):
        assert collect([], menu_id=3) == {}
