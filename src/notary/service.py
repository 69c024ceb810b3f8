"""Best-effort notarization queue.

Pass operations call `enqueue_notarization` after they commit. Each request is attempted by
a Celery task with exponential backoff, up to NOTARY_MAX_ATTEMPTS, and its outcome is kept on
the NotarizationRequest row. Receipts are copied onto the pass or audit record they belong to.
Nothing in here ever raises into the caller.
"""

import typing as t
from datetime import timedelta
from uuid import UUID

import structlog
from django.conf import settings
from django.utils import timezone

from .client import get_notarizer
from .models import NotarizationRequest
from .protocols import Notarizer

if t.TYPE_CHECKING:
    from passes.models import Pass

logger = structlog.get_logger(__name__)


def enqueue_notarization(
    kind: NotarizationRequest.Kind, pass_obj: "Pass", record_id: UUID | None = None
) -> NotarizationRequest | None:
    """Record a notarization request and schedule its first attempt.

    Must be called outside of the triggering operation's transaction. Failures are logged
    and swallowed.
    """
    from .tasks import process_notarization

    try:
        request = NotarizationRequest.objects.create(
            kind=kind,
            pass_obj=pass_obj,
            record_id=record_id,
            payload={
                "kind": str(kind),
                "pass_id": str(pass_obj.pk),
                "venue_id": str(pass_obj.venue_id),
                "owner_id": str(pass_obj.owner_id),
                "pass_type_id": str(pass_obj.pass_type_id),
                "record_id": str(record_id) if record_id else None,
                "occurred_at": timezone.now().isoformat(),
            },
        )
    except Exception:
        logger.exception("notarization_enqueue_failed", kind=str(kind), pass_id=str(pass_obj.pk))
        return None

    try:
        process_notarization.delay(str(request.pk))
    except Exception:
        # The row stays pending and is picked up by the periodic sweep.
        logger.exception("notarization_dispatch_failed", request_id=str(request.pk))
    return request


def backoff_seconds(attempts: int) -> int:
    delay = settings.NOTARY_RETRY_BACKOFF_SECONDS * 2 ** max(attempts - 1, 0)
    return int(min(delay, settings.NOTARY_RETRY_BACKOFF_MAX_SECONDS))


def _backfill_receipt(request: NotarizationRequest) -> None:
    from passes.models import Pass, RedemptionRecord, TransferRecord

    if request.kind == NotarizationRequest.Kind.MINT:
        Pass.objects.filter(pk=request.pass_obj_id, receipt_id="").update(receipt_id=request.receipt_id)
    elif request.kind == NotarizationRequest.Kind.TRANSFER and request.record_id:
        TransferRecord.objects.filter(pk=request.record_id, receipt_id="").update(receipt_id=request.receipt_id)
    elif request.kind == NotarizationRequest.Kind.REDEEM and request.record_id:
        RedemptionRecord.objects.filter(pk=request.record_id, receipt_id="").update(receipt_id=request.receipt_id)


def attempt_notarization(request_id: UUID, notarizer: Notarizer | None = None) -> NotarizationRequest:
    """Make one attempt at notarizing a pending request.

    Returns:
        The updated request. It is still PENDING when another attempt should be scheduled.
    """
    request = NotarizationRequest.objects.get(pk=request_id)
    if request.status != NotarizationRequest.Status.PENDING:
        return request

    notarizer = notarizer or get_notarizer()
    if notarizer is None:
        request.status = NotarizationRequest.Status.SKIPPED
        request.completed_at = timezone.now()
        request.save(update_fields=["status", "completed_at", "updated_at"])
        logger.info("notarization_skipped", request_id=str(request.pk), reason="not_configured")
        return request

    request.attempts += 1
    try:
        receipt_id = notarizer.notarize({**request.payload, "idempotency_key": str(request.pk)})
    except Exception as e:
        request.last_error = str(e)[:2000]
        if request.attempts >= settings.NOTARY_MAX_ATTEMPTS:
            request.status = NotarizationRequest.Status.FAILED
            request.completed_at = timezone.now()
        request.save(update_fields=["attempts", "last_error", "status", "completed_at", "updated_at"])
        logger.warning(
            "notarization_attempt_failed",
            request_id=str(request.pk),
            kind=request.kind,
            attempts=request.attempts,
            status=request.status,
            error=str(e),
        )
        return request

    request.status = NotarizationRequest.Status.SUCCEEDED
    request.receipt_id = receipt_id
    request.completed_at = timezone.now()
    request.save(update_fields=["attempts", "status", "receipt_id", "completed_at", "updated_at"])
    _backfill_receipt(request)
    logger.info("notarization_succeeded", request_id=str(request.pk), kind=request.kind, attempts=request.attempts)
    return request


def stale_pending_requests() -> t.Iterable[NotarizationRequest]:
    cutoff = timezone.now() - timedelta(minutes=settings.NOTARY_STALE_AFTER_MINUTES)
    return NotarizationRequest.objects.filter(status=NotarizationRequest.Status.PENDING, updated_at__lt=cutoff)
