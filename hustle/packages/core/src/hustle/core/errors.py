"""任务操作异常体系

所有异常同步抛给直接调用方，core 内部不做重试。
每个异常携带稳定的 code，供网关映射为 HTTP 错误体。
"""


class TaskError(Exception):
    """任务操作基础异常"""

    code: str = "TASK_ERROR"

    def __init__(self, message: str, task_id: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            task_id: 关联的任务 ID（如有）
        """
        super().__init__(message)
        self.message = message
        self.task_id = task_id


class UnauthenticatedError(TaskError):
    """调用方未提供有效身份"""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class TaskNotFoundError(TaskError):
    """任务不存在（或对调用方不可见）"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist", task_id)


class NotAuthorizedError(TaskError):
    """调用方不是任务的发布者 / 接单者"""

    code = "NOT_AUTHORIZED"

    def __init__(self, task_id: str, message: str | None = None) -> None:
        super().__init__(
            message or "Only the task owner or assignee can do this",
            task_id,
        )


class TaskNotAvailableError(TaskError):
    """任务当前不可接单（已被接单、已结束或未通过审核）

    CannotAcceptOwnTaskError 与 TaskAlreadyFinalError 是它的子类：
    调用方按 TaskNotAvailableError 捕获即可覆盖所有接单失败。
    """

    code = "TASK_NOT_AVAILABLE"

    def __init__(self, task_id: str, message: str | None = None) -> None:
        super().__init__(message or "Task is not available for acceptance", task_id)


class CannotAcceptOwnTaskError(TaskNotAvailableError):
    """发布者尝试接自己的单"""

    code = "CANNOT_ACCEPT_OWN_TASK"

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id, "You cannot accept your own task")


class TaskAlreadyFinalError(TaskNotAvailableError):
    """任务已在终态（completed / cancelled）"""

    code = "TASK_ALREADY_FINAL"

    def __init__(self, task_id: str, status: str) -> None:
        super().__init__(task_id, f"Task is already in terminal state: {status}")
        self.status = status


class InvalidPhaseTransitionError(TaskError):
    """请求的阶段不是当前流程的合法下一步"""

    code = "INVALID_PHASE_TRANSITION"

    def __init__(
        self,
        task_id: str,
        from_phase: str,
        to_phase: str,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"Cannot move task from phase {from_phase} to {to_phase}",
            task_id,
        )
        self.from_phase = from_phase
        self.to_phase = to_phase


class ContentBlockedError(TaskError):
    """内容审核拒绝，携带可读原因"""

    code = "CONTENT_BLOCKED"

    def __init__(self, reason: str, category: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.category = category
