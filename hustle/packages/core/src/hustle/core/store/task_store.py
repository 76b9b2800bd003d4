"""TaskStore SQLite 实现

此处仅提供数据库操作，不做业务校验，也不自动提交事务。
get_task_for_update 必须在写事务（BEGIN IMMEDIATE）内调用，
update_task 从不写 created_by / created_at。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import ModerationStatus
from ..models.task import Task

_INSERT_COLUMNS = (
    "task_id",
    "title",
    "description",
    "category",
    "store",
    "dropoff_address",
    "dropoff_instructions",
    "urgency",
    "estimated_minutes",
    "reward_cents",
    "created_by",
    "assignee_id",
    "status",
    "phase",
    "moderation_status",
    "moderation_reason",
    "moderated_at",
    "moderated_by",
    "accepted_at",
    "created_at",
    "updated_at",
)

# created_by / created_at 不在可更新列中
_UPDATE_COLUMNS = tuple(
    c for c in _INSERT_COLUMNS if c not in ("task_id", "created_by", "created_at")
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> Task:
        """创建任务记录"""
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        await self._conn.execute(
            f"INSERT INTO tasks ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})",
            self._task_values(task, _INSERT_COLUMNS),
        )
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def get_task_for_update(self, task_id: str) -> Task | None:
        """在写事务内读取任务

        SQLite 没有行锁：调用方已通过 BEGIN IMMEDIATE 持有数据库写锁，
        提交或回滚前其他写事务无法读到-改写同一行。
        """
        if not self._conn.in_transaction:
            raise RuntimeError("get_task_for_update requires an open write transaction")
        return await self.get_task(task_id)

    async def update_task(self, task: Task) -> Task:
        """写回任务的可变字段"""
        assignments = ", ".join(f"{c} = ?" for c in _UPDATE_COLUMNS)
        cursor = await self._conn.execute(
            f"UPDATE tasks SET {assignments} WHERE task_id = ?",
            (*self._task_values(task, _UPDATE_COLUMNS), task.task_id),
        )
        if cursor.rowcount != 1:
            raise LookupError(f"task {task.task_id} does not exist")
        return task

    async def list_tasks(
        self,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询任务列表（不做可见性过滤），按 created_at 倒序"""
        if status:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks WHERE status = ? ORDER BY created_at DESC LIMIT ?",
                (status, limit),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM tasks ORDER BY created_at DESC LIMIT ?",
                (limit,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_visible_tasks(
        self,
        viewer_id: str | None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询对 viewer 可见的任务：approved 任务 + viewer 自己发布的任务"""
        sql = "SELECT * FROM tasks WHERE (moderation_status = ? OR created_by = ?)"
        params: list[object] = [ModerationStatus.APPROVED.value, viewer_id]
        if status:
            sql += " AND status = ?"
            params.append(status)
        sql += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_owned_tasks(
        self,
        owner_id: str,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询 owner 发布的任务"""
        return await self._list_by("created_by", owner_id, status, limit)

    async def list_assigned_tasks(
        self,
        assignee_id: str,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询 assignee 接下的任务"""
        return await self._list_by("assignee_id", assignee_id, status, limit)

    async def _list_by(
        self,
        column: str,
        user_id: str,
        status: str | None,
        limit: int,
    ) -> list[Task]:
        sql = f"SELECT * FROM tasks WHERE {column} = ?"
        params: list[object] = [user_id]
        if status:
            sql += " AND status = ?"
            params.append(status)
        sql += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    @staticmethod
    def _task_values(task: Task, columns: tuple[str, ...]) -> tuple[object, ...]:
        values = {
            "task_id": task.task_id,
            "title": task.title,
            "description": task.description,
            "category": task.category.value,
            "store": task.store,
            "dropoff_address": task.dropoff_address,
            "dropoff_instructions": task.dropoff_instructions,
            "urgency": task.urgency.value,
            "estimated_minutes": task.estimated_minutes,
            "reward_cents": task.reward_cents,
            "created_by": task.created_by,
            "assignee_id": task.assignee_id,
            "status": task.status.value,
            "phase": task.phase.value,
            "moderation_status": task.moderation_status.value,
            "moderation_reason": task.moderation_reason,
            "moderated_at": _iso(task.moderated_at),
            "moderated_by": task.moderated_by,
            "accepted_at": _iso(task.accepted_at),
            "created_at": task.created_at.isoformat(),
            "updated_at": task.updated_at.isoformat(),
        }
        return tuple(values[c] for c in columns)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            category=row["category"],
            store=row["store"],
            dropoff_address=row["dropoff_address"],
            dropoff_instructions=row["dropoff_instructions"],
            urgency=row["urgency"],
            estimated_minutes=row["estimated_minutes"],
            reward_cents=row["reward_cents"],
            created_by=row["created_by"],
            assignee_id=row["assignee_id"],
            status=row["status"],
            phase=row["phase"],
            moderation_status=row["moderation_status"],
            moderation_reason=row["moderation_reason"],
            moderated_at=_parse_dt(row["moderated_at"]),
            moderated_by=row["moderated_by"],
            accepted_at=_parse_dt(row["accepted_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
