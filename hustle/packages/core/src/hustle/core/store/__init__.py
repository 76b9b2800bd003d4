"""Hustle Core Store -- SQLite 持久化实现

提供工厂函数创建 Store 实例组：
- 共享只读连接上的 task_store / progress_store 用于查询
- transaction() / locked_task() 为每个写操作打开独立写事务
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from ..models.task import Task
from .locks import TaskLockRegistry
from .progress_store import SqliteProgressStore
from .protocols import ProgressStore, TaskStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import UnitOfWork, apply_phase_transition, write_transaction


class StoreGroup:
    """Store 实例组 -- 查询共享同一个数据库连接，写操作各自开事务"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        db_path: str,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.conn = conn
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms
        self.task_store = SqliteTaskStore(conn)
        self.progress_store = SqliteProgressStore(conn)
        self.task_locks = TaskLockRegistry()

    def transaction(self):
        """打开一个写事务（不持有任务锁，用于创建新任务）"""
        return write_transaction(self.db_path, self.busy_timeout_ms)

    @asynccontextmanager
    async def locked_task(self, task_id: str) -> AsyncIterator[tuple[UnitOfWork, Task | None]]:
        """持有任务锁并在写事务内读取任务

        退出上下文时按结果 COMMIT / ROLLBACK，随后释放任务锁。
        任务不存在时 yield 的 task 为 None，由调用方决定报错方式。
        """
        async with self.task_locks.hold(task_id):
            async with self.transaction() as uow:
                task = await uow.tasks.get_task_for_update(task_id)
                yield uow, task

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(
    db_path: str,
    busy_timeout_ms: int = 5000,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        busy_timeout_ms: 写锁等待上限

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn, busy_timeout_ms)

    return StoreGroup(conn=conn, db_path=db_path, busy_timeout_ms=busy_timeout_ms)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteProgressStore",
    "TaskStore",
    "ProgressStore",
    "TaskLockRegistry",
    "UnitOfWork",
    "init_db",
    "write_transaction",
    "apply_phase_transition",
]
