"""Store Protocol 接口定义

定义 TaskStore、ProgressStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.progress import ProgressEvent
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> Task:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def get_task_for_update(self, task_id: str) -> Task | None:
        """在写事务内读取任务，提交前其他写方无法修改该任务"""
        ...

    async def update_task(self, task: Task) -> Task:
        """写回任务的可变字段"""
        ...

    async def list_tasks(
        self,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询全部任务，按 created_at 倒序"""
        ...

    async def list_visible_tasks(
        self,
        viewer_id: str | None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Task]:
        """查询对 viewer 可见的任务"""
        ...


class ProgressStore(Protocol):
    """进度日志存储接口

    append-only：只允许插入，不允许更新或删除。
    """

    async def append_event(self, event: ProgressEvent) -> None:
        """追加进度记录"""
        ...

    async def get_events_for_task(self, task_id: str) -> list[ProgressEvent]:
        """查询指定任务的所有进度记录"""
        ...

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1）"""
        ...

    async def get_all_events(self) -> list[ProgressEvent]:
        """按 task_id, task_seq 顺序返回全部进度记录"""
        ...
