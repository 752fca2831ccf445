"""Shared fixtures for the ore-stats test suite."""

import pytest
import pytest_asyncio
import aiosqlite

from orestats.storage import StorageManager

from factories import b58_key


@pytest_asyncio.fixture
async def storage():
    sm = StorageManager(":memory:")
    await sm.initialize()
    yield sm
    await sm.close()


@pytest_asyncio.fixture
async def raw_db():
    """A bare connection with no migrations applied."""
    conn = await aiosqlite.connect(":memory:")
    yield conn
    await conn.close()


@pytest.fixture
def miner_a():
    return b58_key(10)


@pytest.fixture
def miner_b():
    return b58_key(11)
