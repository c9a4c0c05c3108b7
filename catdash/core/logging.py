"""Process logging with Loguru; stdlib loggers are routed through it."""

from __future__ import annotations

import logging
import os
import sys

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | {message}"

_logging_configured = False


class InterceptHandler(logging.Handler):
    """Redirect stdlib logs to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _stderr_sink(message) -> None:
    # sys.stderr is looked up per write; test runners replace it.
    sys.stderr.write(message)


def _normalize_level(value: str | None) -> str:
    level = (value or "INFO").strip().upper()
    level = {"WARN": "WARNING", "FATAL": "CRITICAL"}.get(level, level)
    if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
        return "INFO"
    return level


def configure_logging(level: str | None = None, force: bool = False) -> None:
    global _logging_configured
    if _logging_configured and not force:
        return
    _logging_configured = True

    logger.remove()
    logger.configure(extra={"name": "catdash"})
    logger.add(
        _stderr_sink,
        level=_normalize_level(os.getenv("CATDASH_LOG_LEVEL") or level),
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access", "httpx"]:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
        logging.getLogger(logger_name).propagate = False


def get_logger(name: str):
    return logger.bind(name=name)


__all__ = ["InterceptHandler", "configure_logging", "get_logger"]
