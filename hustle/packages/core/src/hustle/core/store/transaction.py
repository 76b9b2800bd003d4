"""写事务封装

每个写操作使用独立连接 + BEGIN IMMEDIATE：
事务开始即持有数据库写锁，读-校验-写在锁内完成，跨进程同样互斥。
成功时 COMMIT；任何异常（包括 asyncio.CancelledError）都 ROLLBACK 后继续抛出；
连接在所有退出路径上关闭。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from ..models.progress import ProgressEvent
from ..models.task import Task
from .progress_store import SqliteProgressStore
from .sqlite_init import configure_connection
from .task_store import SqliteTaskStore

log = structlog.get_logger()


class UnitOfWork:
    """同一写事务内的 Store 集合"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.tasks = SqliteTaskStore(conn)
        self.progress = SqliteProgressStore(conn)


@asynccontextmanager
async def write_transaction(
    db_path: str,
    busy_timeout_ms: int = 5000,
) -> AsyncIterator[UnitOfWork]:
    """打开写事务

    Args:
        db_path: SQLite 数据库文件路径（必须是文件，独立连接需共享同一数据库）
        busy_timeout_ms: 等待其他写事务释放写锁的上限

    Yields:
        UnitOfWork 实例
    """
    conn = await aiosqlite.connect(db_path, isolation_level=None)
    conn.row_factory = aiosqlite.Row
    try:
        await configure_connection(conn, busy_timeout_ms)
        await conn.execute("BEGIN IMMEDIATE")
        try:
            yield UnitOfWork(conn)
        except BaseException as exc:
            await conn.execute("ROLLBACK")
            log.debug("write_transaction_rolled_back", error_type=type(exc).__name__)
            raise
        await conn.execute("COMMIT")
    finally:
        await conn.close()


async def apply_phase_transition(
    uow: UnitOfWork,
    task: Task,
    event: ProgressEvent,
) -> None:
    """在同一事务内写回任务并追加进度记录

    Args:
        uow: 当前写事务
        task: 已更新 phase / status / updated_at 的任务
        event: 对应的进度记录
    """
    await uow.tasks.update_task(task)
    await uow.progress.append_event(event)
