"""枚举定义 -- 任务状态机、阶段、审核结果、分类、紧急程度

包含 TaskStatus 状态机、TaskPhase、ModerationStatus、TaskCategory、Urgency 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。

category / urgency 在入口处校验并以 TEXT 落库，新增取值不需要迁移表结构。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 粗粒度状态机"""

    POSTED = "posted"
    ACCEPTED = "accepted"
    # 历史数据兼容：status 由 phase 派生后不再产生该值
    IN_PROGRESS = "in_progress"

    # 终态
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# 合法状态流转
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.POSTED: {TaskStatus.ACCEPTED, TaskStatus.CANCELLED},
    TaskStatus.ACCEPTED: {TaskStatus.COMPLETED, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.CANCELLED},
    # 终态不可再流转
    TaskStatus.COMPLETED: set(),
    TaskStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.COMPLETED,
    TaskStatus.CANCELLED,
}


class TaskPhase(StrEnum):
    """接单后的细粒度进度阶段，具体顺序由分类对应的 workflow 决定"""

    NONE = "none"
    STARTED = "started"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class ModerationStatus(StrEnum):
    """内容审核结果"""

    APPROVED = "approved"
    NEEDS_REVIEW = "needs_review"
    BLOCKED = "blocked"


class TaskCategory(StrEnum):
    """任务分类"""

    FOOD = "food"
    FOOD_PICKUP = "food_pickup"
    FOOD_DELIVERY = "food_delivery"
    COFFEE = "coffee"
    GROCERY = "grocery"
    WORKOUT = "workout"
    ERRAND = "errand"
    OTHER = "other"


class Urgency(StrEnum):
    """紧急程度"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
