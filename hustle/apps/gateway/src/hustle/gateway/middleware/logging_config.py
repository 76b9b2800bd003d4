"""structlog / Logfire 配置

HUSTLE_LOG_FORMAT: dev（默认，控制台可读输出）或 json（每行一条 JSON）
HUSTLE_LOG_LEVEL: 根 logger 级别，默认 INFO
LOGFIRE_SEND_TO_LOGFIRE: true 时把 FastAPI 请求上报 Logfire，需要安装 observability extra
"""

import logging
import os

import structlog
from fastapi import FastAPI

SERVICE_NAME = "hustle-gateway"

# 第三方库日志只保留 WARNING 及以上
_QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore", "uvicorn.access")


def _add_service_name(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    """structlog 与标准库 logging 共用的处理器链"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog，并让标准库 logging 走同一套渲染"""
    log_format = os.environ.get("HUSTLE_LOG_FORMAT", "dev").lower()
    level_name = os.environ.get("HUSTLE_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logfire(app: FastAPI) -> bool:
    """按 LOGFIRE_SEND_TO_LOGFIRE 开启 Logfire

    Returns:
        是否已启用；未开启或初始化失败时返回 False，只保留本地日志
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        logfire.instrument_fastapi(app)
    except Exception as exc:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return False
    return True
