"""
Pytest configuration and shared fixtures.

This file provides common fixtures for all tests.
"""

from collections.abc import AsyncGenerator, Sequence
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from permsync.core.database import build_engine, build_session_factory, init_db
from permsync.core.logging import configure_logging
from permsync.core.registry import DeclarationRegistry
from permsync.models.permissions import Permission
from permsync.services.permission_store import SqlPermissionRepository


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Route structlog through stdlib logging so caplog sees sync events."""
    configure_logging()


def sqlite_url(tmp_path: Path) -> str:
    """Async SQLite URL for a throwaway database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'permissions_test.db'}"


@pytest.fixture(scope="function")
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test database engine for each test function.

    Each test gets its own SQLite file with freshly created tables, so no
    cleanup between tests is needed.
    """
    test_engine = build_engine(sqlite_url(tmp_path))
    await init_db(test_engine)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Database session for seeding and inspecting rows directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def repository(session_factory: async_sessionmaker[AsyncSession]) -> SqlPermissionRepository:
    return SqlPermissionRepository(session_factory)


class FakePermissionRepository:
    """
    In-memory PermissionRepository.

    Records every batch it receives. Batches listed in fail_batches return
    False; batches listed in raise_batches raise RuntimeError.
    """

    def __init__(
        self,
        rows: Sequence[Permission] = (),
        fail_batches: Sequence[int] = (),
        raise_batches: Sequence[int] = (),
    ) -> None:
        self.rows: dict[int, Permission] = {}
        self.next_id = 1
        for row in rows:
            self._store(row)
        self.fail_batches = set(fail_batches)
        self.raise_batches = set(raise_batches)
        self.batches: list[list[Permission]] = []
        self.list_calls = 0

    def _store(self, row: Permission) -> None:
        data = row.model_dump()
        if data["id"] is None:
            data["id"] = self.next_id
        self.next_id = max(self.next_id, data["id"]) + 1
        self.rows[data["id"]] = Permission(**data)

    async def list_active(self) -> list[Permission]:
        self.list_calls += 1
        return [Permission(**row.model_dump()) for row in self.rows.values() if not row.deleted]

    async def batch_upsert_or_soft_delete(
        self, permissions: Sequence[Permission], batch_size: int
    ) -> bool:
        self.batches.append(list(permissions))
        number = len(self.batches)
        if number in self.raise_batches:
            raise RuntimeError(f"batch {number} exploded")
        if number in self.fail_batches:
            return False
        for permission in permissions:
            self._store(permission)
        return True


@pytest.fixture
def fake_repository() -> FakePermissionRepository:
    return FakePermissionRepository()


@pytest.fixture
def sample_registry() -> DeclarationRegistry:
    """
    Registry with two groups.

    Declares user:read, user:add, user:edit, order:list and a prefix-less "export".
    """
    registry = DeclarationRegistry()
    users = registry.group("user", "User management", prefix="user")
    users.class_level(["read"], ["View users"])
    users.method(["add", "edit"], ["Add user", "Edit user"])

    orders = registry.group("order", "Orders", prefix="order")
    orders.method(["list"], ["List orders"])
    orders.method(["export"], ["Export"], ignore_prefix=True)
    return registry


def make_permission(code: str, name: str, **overrides) -> Permission:
    """Build a persisted-looking permission row."""
    fields = {
        "menu_id": 3,
        "menu_code": code.split(":")[0] if ":" in code else "misc",
        "menu_name": "Menu",
        "permission_code": code,
        "permission_name": name,
        "deleted": False,
    }
    fields.update(overrides)
    return Permission(**fields)


@pytest.fixture
def permission_factory():
    """Factory fixture for persisted-looking permission rows."""
    return make_permission


@pytest.fixture
def repository_factory():
    """Factory fixture for FakePermissionRepository with seeded rows or failures."""
    return FakePermissionRepository
