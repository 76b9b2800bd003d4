"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、SQLite 锁等待时间、取消策略、列表上限等可配置项。
运行期读取的配置使用函数，便于测试时通过环境变量切换。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("HUSTLE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "HUSTLE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "hustle.db"),
    )


def get_busy_timeout_ms() -> int:
    """SQLite 写锁等待上限（毫秒），超过后写事务报 database is locked"""
    return int(os.environ.get("HUSTLE_SQLITE_BUSY_TIMEOUT_MS", "5000"))


def assignee_can_cancel() -> bool:
    """接单者是否允许取消任务（默认仅发布者可取消）"""
    return os.environ.get("HUSTLE_ASSIGNEE_CAN_CANCEL", "false").lower() == "true"


def get_task_list_limit() -> int:
    """任务列表单次返回上限"""
    return int(os.environ.get("HUSTLE_TASK_LIST_LIMIT", "100"))


# 发布任务时未填写的默认值
DEFAULT_ESTIMATED_MINUTES: int = 30
DEFAULT_REWARD_CENTS: int = 200

# 标题最大长度
TITLE_MAX_LENGTH: int = 120
