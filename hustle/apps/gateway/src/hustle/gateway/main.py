"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 异常映射 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from hustle.core.config import get_busy_timeout_ms, get_db_path
from hustle.core.errors import TaskError
from hustle.core.store import create_store_group

from .errors import task_error_handler
from .identity import HeaderIdentityProvider
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, lifecycle, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    # 启动：初始化 Store
    db_path = get_db_path()
    store_group = await create_store_group(db_path, get_busy_timeout_ms())
    app.state.store_group = store_group
    app.state.identity_provider = HeaderIdentityProvider()
    log.info(
        "gateway_started",
        db_path=db_path,
        identity_header=app.state.identity_provider.header_name,
    )

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Hustle Gateway",
        version="0.1.0",
        description="校园跑腿任务市场核心 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 业务异常 -> HTTP 错误体
    app.add_exception_handler(TaskError, task_error_handler)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(lifecycle.router, tags=["lifecycle"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
