"""
Shared fixtures for simple-jobs tests.

One fixture per store backend, plus a parametrized ``store`` fixture that
runs a test against all of them. PostgreSQL goes through the fake pool in
``_testkit``; SQLite and the filesystem use real files under ``tmp_path``.
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from simple_jobs.stores import (
    FSJobStore,
    InMemoryJobStore,
    JobStore,
    PostgresJobStore,
    SqliteJobStore,
)
from tests._testkit import FakePool


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def memory_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest_asyncio.fixture
async def fs_store(tmp_path) -> FSJobStore:
    store = FSJobStore.at(tmp_path / "jobs")
    await store.ensure_ready()
    return store


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    store = SqliteJobStore(str(tmp_path / "jobs.db"))
    await store.ensure_ready()
    yield store
    await store.close()


@pytest.fixture
def postgres_store(fake_pool) -> PostgresJobStore:
    return PostgresJobStore(fake_pool)


@pytest.fixture(params=["memory", "fs", "sqlite", "postgres"])
def store(request) -> JobStore:
    """Every backend, for tests of the storage contract and the engine."""
    return request.getfixturevalue(f"{request.param}_store")
