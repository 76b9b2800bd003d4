"""CLI 入口模块 -- python -m hustle.core <command>

支持的命令：
  init-db          创建 / 升级数据库表结构
  verify-progress  校验 tasks 表与进度日志是否一致
"""

import asyncio
import sys

from .config import get_busy_timeout_ms, get_db_path

_USAGE = """用法: python -m hustle.core <command>
命令:
  init-db          创建 / 升级数据库表结构
  verify-progress  校验 tasks 表与进度日志是否一致"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "verify-progress":
        ok = asyncio.run(verify_progress())
        sys.exit(0 if ok else 1)
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, verify-progress")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库并初始化表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path, get_busy_timeout_ms())
    await store_group.close()
    print("初始化完成")


async def verify_progress() -> bool:
    """执行一致性校验，返回是否全部一致"""
    from .projection import verify_all
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path, get_busy_timeout_ms())
    try:
        mismatches = await verify_all(
            store_group.task_store,
            store_group.progress_store,
        )
    finally:
        await store_group.close()

    for mismatch in mismatches:
        print(f"{mismatch.task_id}: {mismatch.detail}")
    print(f"校验完成，发现 {len(mismatches)} 处不一致")
    return not mismatches


if __name__ == "__main__":
    main()
