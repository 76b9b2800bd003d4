"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与表结构、磁盘空间；任一项失败返回 503。
"""

import shutil
from pathlib import Path

import structlog
from fastapi import APIRouter, Request
from hustle.core.store import StoreGroup
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()

REQUIRED_TABLES = frozenset({"tasks", "task_progress"})


async def _check_sqlite(store_group: StoreGroup) -> str:
    cursor = await store_group.conn.execute("SELECT 1")
    await cursor.fetchone()
    return "ok"


async def _check_schema(store_group: StoreGroup) -> str:
    cursor = await store_group.conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table'"
    )
    tables = {row[0] for row in await cursor.fetchall()}
    return "ok" if REQUIRED_TABLES <= tables else "missing_tables"


def _free_disk_mb(store_group: StoreGroup) -> int:
    db_dir = Path(store_group.db_path).resolve().parent
    return shutil.disk_usage(db_dir).free // (1024 * 1024)


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查

    检查项：
    1. sqlite: 数据库连通性
    2. schema: tasks / task_progress 表存在
    3. disk_space_mb: 数据库所在磁盘剩余空间
    """
    store_group: StoreGroup | None = getattr(request.app.state, "store_group", None)
    checks: dict[str, str | int] = {}

    for name, check in (("sqlite", _check_sqlite), ("schema", _check_schema)):
        if store_group is None:
            checks[name] = "unavailable"
            continue
        try:
            checks[name] = await check(store_group)
        except Exception as e:
            # 错误详情只进日志，不出现在响应里
            await log.awarning("ready_check_failed", check=name, error=str(e))
            checks[name] = "unavailable"

    try:
        checks["disk_space_mb"] = _free_disk_mb(store_group) if store_group else 0
    except OSError as e:
        await log.awarning("ready_check_failed", check="disk_space_mb", error=str(e))
        checks["disk_space_mb"] = 0

    all_ok = (
        checks["sqlite"] == "ok"
        and checks["schema"] == "ok"
        and checks["disk_space_mb"] > 0
    )
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ready" if all_ok else "not_ready", "checks": checks},
    )
