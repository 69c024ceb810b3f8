import logging
import logging.handlers
import typing as t

import structlog
from django.apps import AppConfig
from django.conf import settings

logger = structlog.get_logger(__name__)


def _find_queue_handler() -> logging.handlers.QueueHandler | None:
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.handlers.QueueHandler):
            return handler
    return None


class CommonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "common"
    loki_listener: logging.handlers.QueueListener | None = None

    def ready(self) -> None:
        if settings.ENABLE_OBSERVABILITY:
            self.start_loki_listener()

    def start_loki_listener(self) -> None:
        """Ship the records queued by the root logger to Loki from a background thread.

        Request threads only enqueue. Records are dropped when Loki cannot be reached.
        """
        loki_config = t.cast(dict[str, t.Any], settings.LOGGING)["handlers"].get("loki")
        queue_handler = _find_queue_handler()
        if loki_config is None or queue_handler is None:
            return

        from logging_loki import LokiHandler

        class DroppingLokiHandler(LokiHandler):  # type: ignore[misc]
            def handleError(self, record: logging.LogRecord) -> None:
                return None

        target = DroppingLokiHandler(url=loki_config["url"], tags=loki_config["tags"], version=loki_config["version"])
        self.loki_listener = logging.handlers.QueueListener(queue_handler.queue, target, respect_handler_level=True)
        self.loki_listener.start()
        logger.info("loki_listener_started", url=loki_config["url"])
