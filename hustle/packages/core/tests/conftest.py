"""packages/core 测试配置 -- 核心层 fixture"""

from datetime import UTC, datetime

import pytest
from hustle.core.models import Task


@pytest.fixture
def make_task():
    """构造 Task 的工厂，默认是一条已审核通过、待接单的 food 任务"""

    def _make(task_id: str = "01JTESTTASK000000000000001", **overrides) -> Task:
        now = datetime.now(UTC)
        data = {
            "task_id": task_id,
            "title": "Pick up my lunch",
            "created_by": "user-alice",
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Task(**data)

    return _make
