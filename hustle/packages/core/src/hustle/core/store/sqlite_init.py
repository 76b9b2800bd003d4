"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引 + append-only 触发器。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
# category / urgency / status / phase 以 TEXT 保存，取值在应用层校验
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id              TEXT PRIMARY KEY,
    title                TEXT NOT NULL,
    description          TEXT NOT NULL DEFAULT '',
    category             TEXT NOT NULL DEFAULT 'food',
    store                TEXT NOT NULL DEFAULT '',
    dropoff_address      TEXT NOT NULL DEFAULT '',
    dropoff_instructions TEXT NOT NULL DEFAULT '',
    urgency              TEXT NOT NULL DEFAULT 'medium',
    estimated_minutes    INTEGER NOT NULL DEFAULT 30,
    reward_cents         INTEGER NOT NULL DEFAULT 200 CHECK (reward_cents >= 0),
    created_by           TEXT NOT NULL,
    assignee_id          TEXT,
    status               TEXT NOT NULL DEFAULT 'posted',
    phase                TEXT NOT NULL DEFAULT 'none',
    moderation_status    TEXT NOT NULL DEFAULT 'approved',
    moderation_reason    TEXT,
    moderated_at         TEXT,
    moderated_by         TEXT,
    accepted_at          TEXT,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL,

    CHECK (assignee_id IS NULL OR assignee_id <> created_by)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_by ON tasks(created_by);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee_id ON tasks(assignee_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_moderation_status ON tasks(moderation_status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# task_progress 表 DDL
_PROGRESS_DDL = """
CREATE TABLE IF NOT EXISTS task_progress (
    event_id    TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    task_seq    INTEGER NOT NULL,
    from_phase  TEXT NOT NULL,
    phase       TEXT NOT NULL,
    actor_id    TEXT NOT NULL,
    note        TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_PROGRESS_INDEXES = [
    # 任务内序号唯一约束（确保 task_seq 严格单调递增）
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_task_progress_task_seq "
        "ON task_progress(task_id, task_seq);"
    ),
    "CREATE INDEX IF NOT EXISTS idx_task_progress_created_at ON task_progress(task_id, created_at);",
]

# task_progress 只允许插入
_PROGRESS_TRIGGERS = [
    """
    CREATE TRIGGER IF NOT EXISTS trg_task_progress_no_update
    BEFORE UPDATE ON task_progress
    BEGIN
        SELECT RAISE(ABORT, 'task_progress is append-only');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_task_progress_no_delete
    BEFORE DELETE ON task_progress
    BEGIN
        SELECT RAISE(ABORT, 'task_progress is append-only');
    END;
    """,
]


async def configure_connection(
    conn: aiosqlite.Connection,
    busy_timeout_ms: int = 5000,
) -> None:
    """设置连接级 PRAGMA（每个新连接都需要执行）"""
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")


async def init_db(conn: aiosqlite.Connection, busy_timeout_ms: int = 5000) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引 + 创建触发器

    Args:
        conn: aiosqlite 数据库连接
        busy_timeout_ms: 写锁等待上限
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await configure_connection(conn, busy_timeout_ms)

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_PROGRESS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _PROGRESS_INDEXES:
        await conn.execute(idx_sql)

    for trigger_sql in _PROGRESS_TRIGGERS:
        await conn.execute(trigger_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
