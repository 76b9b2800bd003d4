"""分类 -> 阶段流程查找表

每个分类对应一条有序的阶段序列，新增分类流程只需在 PHASE_WORKFLOWS 中登记数据。
status 是 phase 的派生值：到达最终阶段即 completed，其余阶段均为 accepted。
"""

from dataclasses import dataclass, field

from .enums import TaskCategory, TaskPhase, TaskStatus


@dataclass(frozen=True)
class PhaseWorkflow:
    """有序阶段流程

    phases 以 NONE 开头；最后一步可以由 final_aliases 中的任一阶段完成
    （如外送流程中 delivered 与 completed 等价）。
    """

    name: str
    phases: tuple[TaskPhase, ...]
    final_aliases: frozenset[TaskPhase] = field(default_factory=frozenset)

    @property
    def final_phase(self) -> TaskPhase:
        return self.phases[-1]

    @property
    def final_phases(self) -> frozenset[TaskPhase]:
        """能结束流程的所有阶段"""
        return frozenset({self.final_phase}) | self.final_aliases

    @property
    def allows_start_and_complete(self) -> bool:
        """只有一个中间阶段的流程允许 none 直接跳到完成"""
        return len(self.phases) == 3

    def next_phase(self, current: TaskPhase) -> TaskPhase | None:
        """返回 current 的直接后继阶段，已是最终阶段或不在流程中时返回 None"""
        if current in self.final_phases:
            return None
        try:
            index = self.phases.index(current)
        except ValueError:
            return None
        if index + 1 >= len(self.phases):
            return None
        return self.phases[index + 1]

    def can_transition(self, current: TaskPhase, new: TaskPhase) -> bool:
        """验证阶段推进是否合法：只能前进到直接后继，或走 start-and-complete 快捷路径"""
        successor = self.next_phase(current)
        if successor is None:
            return False
        if new == successor:
            return True
        if successor == self.final_phase and new in self.final_aliases:
            return True
        return (
            current == TaskPhase.NONE
            and self.allows_start_and_complete
            and new in self.final_phases
        )

    def is_final(self, phase: TaskPhase) -> bool:
        return phase in self.final_phases


DEFAULT_WORKFLOW = PhaseWorkflow(
    name="default",
    phases=(TaskPhase.NONE, TaskPhase.STARTED, TaskPhase.COMPLETED),
)

FOOD_PICKUP_WORKFLOW = PhaseWorkflow(
    name="food_pickup",
    phases=(
        TaskPhase.NONE,
        TaskPhase.STARTED,
        TaskPhase.PICKED_UP,
        TaskPhase.COMPLETED,
    ),
)

FOOD_DELIVERY_WORKFLOW = PhaseWorkflow(
    name="food_delivery",
    phases=(
        TaskPhase.NONE,
        TaskPhase.STARTED,
        TaskPhase.ON_THE_WAY,
        TaskPhase.DELIVERED,
    ),
    final_aliases=frozenset({TaskPhase.COMPLETED}),
)

# 未登记的分类（含 food）使用 DEFAULT_WORKFLOW
PHASE_WORKFLOWS: dict[TaskCategory, PhaseWorkflow] = {
    TaskCategory.FOOD_PICKUP: FOOD_PICKUP_WORKFLOW,
    TaskCategory.FOOD_DELIVERY: FOOD_DELIVERY_WORKFLOW,
}


def workflow_for(category: TaskCategory | str) -> PhaseWorkflow:
    """根据分类查找阶段流程"""
    try:
        key = TaskCategory(category)
    except ValueError:
        return DEFAULT_WORKFLOW
    return PHASE_WORKFLOWS.get(key, DEFAULT_WORKFLOW)


def derive_status(phase: TaskPhase, workflow: PhaseWorkflow) -> TaskStatus:
    """由 phase 派生 status"""
    if workflow.is_final(phase):
        return TaskStatus.COMPLETED
    return TaskStatus.ACCEPTED
