"""
Rural Productive Aging Report - Logging Configuration
Structured JSON logging for production

Every record carries the pipeline stage and analysis wave. run_pipeline
updates them with set_log_context() as it moves between stages; an explicit
extra={"stage": ...} on a single call takes precedence.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Dict, Optional

from pythonjsonlogger import jsonlogger

from config.settings import get_settings

settings = get_settings()

_log_context: Dict[str, Optional[object]] = {"stage": "startup", "wave": None}


def set_log_context(stage: Optional[str] = None, wave: Optional[int] = None) -> None:
    """Update the stage and/or wave stamped on subsequent records"""
    if stage is not None:
        _log_context["stage"] = stage
    if wave is not None:
        _log_context["wave"] = wave


class PipelineContextFilter(logging.Filter):
    """Stamp the current pipeline stage and wave onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logging(name: str = "productive_aging") -> logging.Logger:
    """
    Configure structured logging for the application.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL))

    logger.handlers = []
    # Root carries the same handlers (below)
    logger.propagate = False

    if settings.ENVIRONMENT == "production":
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(stage)s %(wave)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(stage)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )

    handlers = [logging.StreamHandler(sys.stdout)]

    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        log_file = os.path.join(settings.LOG_DIR, f"{name}_{datetime.now().strftime('%Y%m%d')}.log")
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(PipelineContextFilter())
        logger.addHandler(handler)

    # Module loggers (get_logger(__name__)) propagate to root
    root_logger = logging.getLogger()
    root_logger.setLevel(logger.level)
    root_logger.handlers = list(handlers)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    return logging.getLogger(module_name)
