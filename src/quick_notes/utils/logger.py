"""日志配置 - 便签引擎的模块共用一个具名 logger"""

import logging
import os
import sys

from ..config import APP_NAME, LOG_FORMAT

logger = logging.getLogger(APP_NAME)


def resolve_level(name: str | None) -> int:
    """把 "debug"/"INFO" 之类的名字转成日志级别，无法识别时回退到 INFO"""
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(level: str | None = None) -> logging.Logger:
    """给便签引擎的 logger 挂一个 stderr handler（stdout 留给 MCP 协议）

    Args:
        level: 日志级别名；为空时读取环境变量 LOG_LEVEL
    """
    logger.setLevel(resolve_level(level or os.getenv("LOG_LEVEL")))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger
