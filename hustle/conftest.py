"""全局 pytest 配置 -- 临时 SQLite 数据库 + StoreGroup + 身份 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from hustle.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "conn.db"))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path):
    """提供基于临时数据库的 StoreGroup"""
    from hustle.core.store import create_store_group

    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.close()


@pytest.fixture
def owner():
    from hustle.core.models import Identity

    return Identity(user_id="user-alice")


@pytest.fixture
def runner():
    from hustle.core.models import Identity

    return Identity(user_id="user-bob")


@pytest.fixture
def stranger():
    from hustle.core.models import Identity

    return Identity(user_id="user-carol")
