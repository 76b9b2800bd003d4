"""ProgressStore SQLite 实现

task_progress 表 append-only：只允许插入，不允许更新或删除（由触发器保证）。
task_seq 同一 task 内严格单调递增。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import TaskPhase
from ..models.progress import ProgressEvent


class SqliteProgressStore:
    """ProgressStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_event(self, event: ProgressEvent) -> None:
        """追加进度记录（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO task_progress (event_id, task_id, task_seq, from_phase,
                                       phase, actor_id, note, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.task_id,
                event.task_seq,
                event.from_phase.value,
                event.phase.value,
                event.actor_id,
                event.note,
                event.created_at.isoformat(),
            ),
        )

    async def get_events_for_task(self, task_id: str) -> list[ProgressEvent]:
        """查询指定任务的所有进度记录，按 task_seq 正序"""
        cursor = await self._conn.execute(
            "SELECT * FROM task_progress WHERE task_id = ? ORDER BY task_seq ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1）

        在写事务内调用以确保原子性。
        """
        cursor = await self._conn.execute(
            "SELECT COALESCE(MAX(task_seq), 0) FROM task_progress WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return (row[0] if row else 0) + 1

    async def get_all_events(self) -> list[ProgressEvent]:
        """查询所有进度记录，按 task_id 和 task_seq 排序（用于一致性校验）"""
        cursor = await self._conn.execute(
            "SELECT * FROM task_progress ORDER BY task_id, task_seq ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> ProgressEvent:
        """将数据库行转换为 ProgressEvent 模型"""
        return ProgressEvent(
            event_id=row["event_id"],
            task_id=row["task_id"],
            task_seq=row["task_seq"],
            from_phase=TaskPhase(row["from_phase"]),
            phase=TaskPhase(row["phase"]),
            actor_id=row["actor_id"],
            note=row["note"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
