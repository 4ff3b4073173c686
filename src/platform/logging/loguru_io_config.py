"""
Loguru sinks for the parking service.

Every record carries the service context (API worker or hold sweeper), the
start time of the outermost `Logger.io` call in the current task, and the
decorated function. Standard-library loggers (granian, sqlalchemy,
stripe) are routed through the same sinks.
"""

from contextvars import ContextVar
from datetime import datetime
from enum import StrEnum
import logging
import os
import re
import sys
from typing import TYPE_CHECKING
import zoneinfo

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.logging.service_context import get_service_context


# Fields masked by Logger.io before args / return values reach a sink
SENSITIVE_KEYWORDS = {
    'email',
    'phone',
    'license_plate',
    'signature',
    'stripe_secret_key',
    'stripe_webhook_secret',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


# granian access line: 127.0.0.1 - "POST /api/reservation HTTP/1.1" - 201 - 8ms
_ACCESS_LINE = re.compile(r'"[A-Z]+ \S+ HTTP/[\d.]+" - (?P<status>\d{3})\b')

# Debug chatter from these loggers never helps when tracing a reservation
_QUIET_LOGGERS = ('aiosqlite', 'asyncio', 'stripe', 'urllib3', 'hpack')


def level_for_access_line(message: str) -> str | None:
    """Map an access-log status code to a level, None when the line is not an access line."""
    match = _ACCESS_LINE.search(message)
    if match is None:
        return None
    status = int(match['status'])
    if status >= 500:
        return 'CRITICAL'
    if status >= 400:
        # Rejected webhooks and sold-out requests are expected traffic
        return 'WARNING'
    if status >= 200:
        return 'SUCCESS'
    return 'INFO'


def _default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
    }


class InterceptHandler(logging.Handler):
    """Hand stdlib records to loguru, keeping the original caller location."""

    def __init__(self, bound_logger: 'LoguruLogger') -> None:
        super().__init__()
        self._bound_logger = bound_logger

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno <= logging.DEBUG and record.name.startswith(_QUIET_LOGGERS):
            return

        message = record.getMessage()
        level: str | int | None = level_for_access_line(message)
        if level is None:
            try:
                level = loguru_logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        self._bound_logger.opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


def _log_file_path() -> str:
    log_dir = os.environ.get('TEST_LOG_DIR', settings.LOG_DIR)
    stamp = datetime.now(zoneinfo.ZoneInfo(settings.DEFAULT_TIMEZONE)).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    return f'{log_dir}/{prefix}{stamp}.log'


def configure_logging() -> 'LoguruLogger':
    """Install the sinks once per process and return the bound service logger."""
    level = settings.LOG_LEVEL or ('DEBUG' if settings.DEBUG else 'INFO')
    loguru_logger.remove()
    bound = loguru_logger.bind(**_default_extra())

    if settings.LOG_JSON:
        # One JSON document per line for the log collector
        bound.add(sys.stdout, serialize=True, level=level, enqueue=True)
    else:
        bound.add(sys.stdout, format=io_log_format, level=level, enqueue=True)

    if settings.DEBUG:
        bound.add(
            _log_file_path(),
            format=io_log_format,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
            level=level,
        )

    logging.basicConfig(handlers=[InterceptHandler(bound)], level=0, force=True)
    return bound


custom_logger = configure_logging()
