"""Indexer logging with Loguru + Slack notifications.

Every record carries the logger name and, inside ``batch_context``, the
processor and block range of the batch being aggregated.
"""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import httpx
from loguru import logger

from pairstats.core.config import settings

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[processor]}[{extra[blocks]}] | "
    "{extra[name]}:{function}:{line} | {message}"
)
LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

# stdlib loggers routed through loguru; SQLAlchemy engine echo stays opt-in
INTERCEPTED = ["uvicorn", "uvicorn.error", "uvicorn.access", "alembic", "sqlalchemy.engine"]

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

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _slack_sink(message: Any) -> None:
    record = message.record
    extra = record["extra"]
    text = (
        f"[{record['level'].name}] {extra.get('processor', 'pairstats')} blocks {extra.get('blocks', '-')}\n"
        f"{extra.get('name', 'pairstats')}:{record['function']}:{record['line']}\n{record['message']}"
    )
    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": text}, timeout=5.0)
    except httpx.HTTPError:
        # no logging here: it would feed back into this sink
        pass


def resolve_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    level = LEVEL_ALIASES.get(level, level)
    return level if level in LEVELS else "INFO"


def configure_logging(force: bool = False) -> None:
    global _logging_configured

    if _logging_configured and not force:
        return
    _logging_configured = True

    level = resolve_level(settings.effective_log_level)

    logger.remove()
    logger.configure(extra={"name": "pairstats", "processor": settings.PROCESSOR_NAME, "blocks": "-"})
    logger.add(sys.stdout, level=level, format=LOG_FORMAT, backtrace=False, diagnose=False)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / f"{settings.PROCESSOR_NAME}.log",
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level="ERROR", enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in INTERCEPTED:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
        logging.getLogger(logger_name).propagate = False
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@contextmanager
def batch_context(processor: str, from_block: int, to_block: int) -> Iterator[None]:
    """Tag every record logged inside the block with the batch being aggregated."""
    with logger.contextualize(processor=processor, blocks=f"{from_block}-{to_block}"):
        yield


def get_logger(name: str) -> logger.__class__:
    return logger.bind(name=name)


configure_logging()
