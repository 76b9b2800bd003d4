"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

_ENV_KEYS = ["HUSTLE_DB_PATH", "HUSTLE_ASSIGNEE_CAN_CANCEL", "LOGFIRE_SEND_TO_LOGFIRE"]


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（绕过 lifespan 手动初始化 Store）"""
    from hustle.core.store import create_store_group

    db_path = str(tmp_path / "sqlite" / "test.db")
    os.environ["HUSTLE_DB_PATH"] = db_path
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from hustle.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    yield app

    await store_group.close()
    # 清理环境变量
    for key in _ENV_KEYS:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac

