"""Hustle Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ModerationStatus,
    TaskCategory,
    TaskPhase,
    TaskStatus,
    Urgency,
    validate_transition,
)
from .identity import Identity
from .progress import ProgressEvent
from .submission import TaskFields, normalize_category
from .task import Task
from .workflow import (
    DEFAULT_WORKFLOW,
    PHASE_WORKFLOWS,
    PhaseWorkflow,
    derive_status,
    workflow_for,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPhase",
    "TaskCategory",
    "ModerationStatus",
    "Urgency",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # 阶段流程
    "PhaseWorkflow",
    "PHASE_WORKFLOWS",
    "DEFAULT_WORKFLOW",
    "workflow_for",
    "derive_status",
    # Task
    "Task",
    "TaskFields",
    "normalize_category",
    # Progress
    "ProgressEvent",
    # Identity
    "Identity",
]
