"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from hustle.core.store import create_store_group


@pytest_asyncio.fixture
async def integration_db_path(tmp_path: Path) -> str:
    return str(tmp_path / "sqlite" / "integration.db")


@pytest_asyncio.fixture
async def integration_app(integration_db_path: str):
    """集成测试用 FastAPI app"""
    os.environ["HUSTLE_DB_PATH"] = integration_db_path
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from hustle.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(integration_db_path)
    app.state.store_group = store_group

    yield app

    await store_group.close()
    os.environ.pop("HUSTLE_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
