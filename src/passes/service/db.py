import functools
import typing as t

import structlog
from django.db import OperationalError

from passes.exceptions import StoreUnavailable

logger = structlog.get_logger(__name__)

P = t.ParamSpec("P")
R = t.TypeVar("R")


def translate_store_errors(func: t.Callable[P, R]) -> t.Callable[P, R]:
    """Surface transient database failures (timeouts, lost connections) as StoreUnavailable."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            logger.warning("pass_store_unavailable", operation=func.__name__, error=str(e))
            raise StoreUnavailable() from e

    return wrapper
