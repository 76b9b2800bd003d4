"""TaskFields -- 任务提交入参

发布 / 编辑任务时客户端可写的内容字段。category、urgency 在这里完成归一化和校验，
落库时只保存枚举值字符串。
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..config import DEFAULT_ESTIMATED_MINUTES, DEFAULT_REWARD_CENTS, TITLE_MAX_LENGTH
from .enums import TaskCategory, Urgency

# 客户端历史上使用过的分类写法
_CATEGORY_ALIASES: dict[str, TaskCategory] = {
    "coffee_run": TaskCategory.COFFEE,
    "grocery_shopping": TaskCategory.GROCERY,
    "pickup": TaskCategory.FOOD_PICKUP,
    "delivery": TaskCategory.FOOD_DELIVERY,
}


def normalize_category(value: Any) -> TaskCategory:
    """将客户端传入的分类归一化为 TaskCategory

    "Food-Pickup" / "food pickup" / "food_pickup" 均视为 food_pickup；
    空值视为 other；未知取值抛出 ValueError。
    """
    if isinstance(value, TaskCategory):
        return value
    if value is None:
        return TaskCategory.OTHER
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return TaskCategory.OTHER
    if key in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[key]
    try:
        return TaskCategory(key)
    except ValueError:
        raise ValueError(f"unknown task category: {value!r}") from None


class TaskFields(BaseModel):
    """任务内容字段（发布 / 编辑共用）"""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="任务标题")
    description: str = Field(default="", description="任务描述")
    category: TaskCategory = Field(default=TaskCategory.FOOD, description="任务分类")
    store: str = Field(default="", description="取货店铺")
    dropoff_address: str = Field(default="", description="送达地址")
    dropoff_instructions: str = Field(default="", description="送达说明")
    urgency: Urgency = Field(default=Urgency.MEDIUM, description="紧急程度")
    estimated_minutes: int = Field(
        default=DEFAULT_ESTIMATED_MINUTES,
        gt=0,
        description="预计耗时（分钟）",
    )
    reward_cents: int = Field(
        default=DEFAULT_REWARD_CENTS,
        ge=0,
        description="报酬（分）",
    )

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> TaskCategory:
        return normalize_category(value)

    @field_validator("urgency", mode="before")
    @classmethod
    def _normalize_urgency(cls, value: Any) -> Any:
        if value is None:
            return Urgency.MEDIUM
        if isinstance(value, str):
            value = value.strip().lower()
            return value or Urgency.MEDIUM
        return value

    def moderation_text(self) -> dict[str, str]:
        """参与内容审核的文本字段"""
        return {
            "title": self.title,
            "description": self.description,
            "store": self.store,
            "dropoff_address": self.dropoff_address,
            "dropoff_instructions": self.dropoff_instructions,
        }
