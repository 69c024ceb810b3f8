"""Structured logging for queueskip.

Every log line is a JSON object rendered by structlog. Stdlib loggers (Django, Celery, httpx)
are routed through the same processors. With ENABLE_OBSERVABILITY, lines are also shipped to
Loki through a queue drained in CommonConfig.ready.
"""

import re
import typing as t

import structlog
from decouple import config

from .base import DEBUG, VERSION

ENABLE_OBSERVABILITY = config("ENABLE_OBSERVABILITY", default=False, cast=bool)

SERVICE_NAME = config("SERVICE_NAME", default="queueskip")
SERVICE_VERSION = VERSION
DEPLOYMENT_ENVIRONMENT = config("DEPLOYMENT_ENVIRONMENT", default="development" if DEBUG else "production")
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
LOKI_URL = config("LOKI_URL", default="http://localhost:3100")

# Keys whose values never reach a log line. Credential tokens and their signatures admit a
# holder for as long as they are live.
REDACTED_KEYS = ("password", "secret", "api_key", "token", "signature", "government_id", "authorization", "cookie")
_EMAIL_RE = re.compile(r"\b[\w\.-]+@[\w\.-]+\.\w+\b")


def _redact(value: t.Any, key: str = "") -> t.Any:
    lowered = key.lower()
    if any(sensitive in lowered for sensitive in REDACTED_KEYS):
        return "[REDACTED]"
    if isinstance(value, dict):
        return {k: _redact(v, str(k)) for k, v in value.items()}
    if isinstance(value, str) and "email" not in lowered:
        return _EMAIL_RE.sub("[EMAIL]", value)
    return value


def redact_sensitive(logger: t.Any, method_name: str, event_dict: dict[str, t.Any]) -> dict[str, t.Any]:
    """Drop credential material and mask email addresses in free text."""
    return {key: _redact(value, key) for key, value in event_dict.items()}


def add_service_context(logger: t.Any, method_name: str, event_dict: dict[str, t.Any]) -> dict[str, t.Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", SERVICE_VERSION)
    event_dict.setdefault("environment", DEPLOYMENT_ENVIRONMENT)
    return event_dict


_SHARED_PROCESSORS: list[t.Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    add_service_context,
    redact_sensitive,
]

structlog.configure(
    processors=[
        *_SHARED_PROCESSORS[:2],
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        *_SHARED_PROCESSORS[2:],
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

_handlers: dict[str, dict[str, t.Any]] = {
    "console": {"class": "logging.StreamHandler", "formatter": "json"},
}
if ENABLE_OBSERVABILITY:
    _handlers["loki"] = {
        "class": "logging_loki.LokiHandler",
        "url": f"{LOKI_URL}/loki/api/v1/push",
        "tags": {"service": SERVICE_NAME, "version": SERVICE_VERSION, "environment": DEPLOYMENT_ENVIRONMENT},
        "version": "1",
    }
    _handlers["queue"] = {
        "class": "logging.handlers.QueueHandler",
        "queue": {"()": "queue.Queue", "maxsize": 10000},
    }

_ACTIVE_HANDLERS = [name for name in ("console", "queue") if name in _handlers]


def _quiet(level: str) -> dict[str, t.Any]:
    return {"handlers": _ACTIVE_HANDLERS, "level": level, "propagate": False}


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.JSONRenderer(),
            "foreign_pre_chain": _SHARED_PROCESSORS,
        },
    },
    "handlers": _handlers,
    "root": {"handlers": _ACTIVE_HANDLERS, "level": LOG_LEVEL},
    "loggers": {
        "django": _quiet("INFO"),
        "django.db.backends": _quiet("WARNING"),
        "celery": _quiet("INFO"),
        "httpx": _quiet("WARNING"),
        "passes": _quiet(LOG_LEVEL),
    },
}
