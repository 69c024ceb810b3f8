"""Short-lived display cache for the current credential of a pass.

The cache is advisory. It is only consulted by the holder's display read path, and only when
the cached entry matches the pass's current rotation pointer. An unreachable cache degrades to
a miss.
"""

import math
import typing as t
from datetime import datetime
from uuid import UUID

import structlog
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)


def get_credential_cache_key(pass_id: t.Any) -> str:
    return f"credential:{pass_id}"


def cache_credential(pass_id: UUID, data: dict[str, t.Any], expires_at: datetime) -> None:
    """Cache a pass's current credential until it expires."""
    remaining = math.ceil((expires_at - timezone.now()).total_seconds())
    if remaining <= 0:
        return
    try:
        cache.set(
            get_credential_cache_key(pass_id), data, timeout=min(remaining, settings.CREDENTIAL_CACHE_TTL_SECONDS)
        )
    except RedisError:
        logger.warning("display_cache_unavailable", op="set", pass_id=str(pass_id), exc_info=True)


def get_cached_credential(pass_id: UUID) -> dict[str, t.Any] | None:
    try:
        return t.cast(dict[str, t.Any] | None, cache.get(get_credential_cache_key(pass_id)))
    except RedisError:
        logger.warning("display_cache_unavailable", op="get", pass_id=str(pass_id), exc_info=True)
        return None


def invalidate_credentials(*pass_ids: UUID) -> None:
    """Drop the cached credential of the given passes."""
    try:
        cache.delete_many([get_credential_cache_key(pass_id) for pass_id in pass_ids])
    except RedisError:
        logger.warning("display_cache_unavailable", op="delete", pass_ids=[str(p) for p in pass_ids], exc_info=True)
