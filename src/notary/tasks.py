import typing as t
from uuid import UUID

import structlog
from celery import shared_task
from celery.exceptions import MaxRetriesExceededError
from django.conf import settings

from . import service
from .models import NotarizationRequest

logger = structlog.get_logger(__name__)


@shared_task(name="notary.process_notarization", bind=True, ignore_result=True)
def process_notarization(self: t.Any, request_id: str) -> str:
    """Attempt a notarization request, retrying with backoff while it stays pending.

    The NotarizationRequest row records the outcome. It is marked FAILED by the service once
    NOTARY_MAX_ATTEMPTS is reached, so the Celery retry budget is only a backstop.
    """
    try:
        request = service.attempt_notarization(UUID(request_id))
    except NotarizationRequest.DoesNotExist:
        logger.warning("notarization_request_missing", request_id=request_id)
        return "missing"

    if request.status != NotarizationRequest.Status.PENDING:
        return str(request.status)

    countdown = service.backoff_seconds(request.attempts)
    logger.info("notarization_retry_scheduled", request_id=request_id, countdown=countdown, attempts=request.attempts)
    try:
        raise self.retry(countdown=countdown, max_retries=settings.NOTARY_MAX_ATTEMPTS)
    except MaxRetriesExceededError:
        # Left pending for the periodic sweep.
        logger.warning("notarization_retries_exhausted", request_id=request_id, attempts=request.attempts)
        return str(request.status)


@shared_task(name="notary.retry_stale_notarizations")
def retry_stale_notarizations() -> dict[str, int]:
    """Re-dispatch pending requests that have not been attempted for a while."""
    count = 0
    for request in service.stale_pending_requests():
        process_notarization.delay(str(request.pk))
        count += 1
    logger.info("stale_notarizations_redispatched", count=count)
    return {"redispatched": count}
