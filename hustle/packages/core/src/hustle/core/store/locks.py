"""任务级进程内锁

同一 task_id 的写操作在进程内排队，不同 task_id 互不阻塞。
没有持有者和等待者时锁对象即被移除，字典不会随任务数无限增长。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class TaskLockRegistry:
    """task_id -> asyncio.Lock 注册表"""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, task_id: str) -> AsyncIterator[None]:
        """持有 task_id 对应的锁直到退出上下文（含取消、异常）"""
        # 取锁与登记之间没有 await，单事件循环内无需额外保护
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        self._users[task_id] = self._users.get(task_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[task_id] - 1
            if remaining:
                self._users[task_id] = remaining
            else:
                del self._users[task_id]
                self._locks.pop(task_id, None)

    def is_locked(self, task_id: str) -> bool:
        lock = self._locks.get(task_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
