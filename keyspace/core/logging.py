import sys
import json
import logging
from datetime import timezone
from typing import Any, Dict, Optional

from loguru import logger as _logger

from keyspace.core.config import settings

# redis-py logs through the standard library
INTERCEPTED = ("redis", "redis.connection", "redis.cluster")

# bound by the storage middleware and connect()
LIFTED_FIELDS = ("operation", "error", "url", "attempt")


class InterceptHandler(logging.Handler):
    """Hands stdlib records to loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        depth = 2
        frame = logging.currentframe()
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame, depth = frame.f_back, depth + 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def build_payload(record: Dict[str, Any]) -> Dict[str, Any]:
    extra = dict(record.get("extra", {}))
    payload: Dict[str, Any] = {
        "time": record["time"].astimezone(timezone.utc).isoformat(),
        "level": record["level"].name,
        "logger": extra.pop("logger", record["name"]),
        "message": record["message"],
        "where": f'{record["module"]}:{record["function"]}:{record["line"]}',
    }
    for name in LIFTED_FIELDS:
        if name in extra:
            payload[name] = extra.pop(name)
    if extra:
        payload["extra"] = extra
    if record.get("exception"):
        payload["exception"] = str(record["exception"])
    return payload


def _json_sink(message) -> None:
    line = json.dumps(build_payload(message.record), ensure_ascii=False, default=str)
    print(line, file=sys.stdout)


def _intercept(logger: logging.Logger, level: str, propagate: bool) -> None:
    logger.handlers = [InterceptHandler()]
    logger.propagate = propagate
    logger.setLevel(level)


def setup_logging(level: Optional[str] = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()

    _logger.remove()
    _logger.add(_json_sink, level=level, backtrace=False, diagnose=False)

    for name in INTERCEPTED:
        _intercept(logging.getLogger(name), level, propagate=False)
    _intercept(logging.getLogger(), level, propagate=True)


def get_logger(name: str):
    return _logger.bind(logger=name)
