import sys
import logging
from typing import Optional

import structlog
from loguru import logger as loguru_logger

from ..core.config import get_settings


class InterceptHandler(logging.Handler):
    """Forwards stdlib records (structlog renders through them) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        loguru_logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(service_name: str = "elowen_client", level: Optional[str] = None):
    """
    Routes structlog events through stdlib logging into a single loguru sink.

    Replaces the root handlers and every loguru sink, so only applications call
    it; the package logger stays unconfigured on import. `level` defaults to
    `LOG_LEVEL`.
    """
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)

    loguru_logger.remove()
    loguru_logger.add(
        sys.stdout,
        level=level,
        colorize=True,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
    )

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.ExceptionRenderer(),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    return structlog.get_logger(service=service_name)

logger = structlog.get_logger(service="elowen_client")
