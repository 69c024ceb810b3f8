"""Durable record of the credentials issued for each pass.

Every rotation appends a RotationRecord and moves the pass's `current_rotation` pointer to it
in the same transaction. Superseded records are cut off at the rotation instant, so at most one
record per pass is unexpired at any time. Expired records are garbage collected on the next
rotation of the pass and by a periodic sweep.
"""

from datetime import datetime
from uuid import UUID

import structlog
from django.db import DatabaseError, transaction
from django.utils import timezone

from passes.credentials import Credential
from passes.models import Pass, RotationRecord

logger = structlog.get_logger(__name__)


def record_rotation(pass_obj: Pass, credential: Credential) -> RotationRecord:
    """Persist an issued credential as the pass's current one.

    Must run inside the transaction that holds the pass's row lock.
    """
    record = RotationRecord.objects.create(
        pass_obj=pass_obj,
        token=credential.token,
        signature=credential.signature,
        token_hash=credential.token_hash,
        issued_at=credential.issued_at,
        expires_at=credential.expires_at,
    )
    RotationRecord.objects.filter(pass_obj=pass_obj, expires_at__gt=credential.issued_at).exclude(pk=record.pk).update(
        expires_at=credential.issued_at
    )
    Pass.objects.filter(pk=pass_obj.pk).update(current_rotation=record, updated_at=timezone.now())
    pass_obj.current_rotation = record
    return record


def current_record(pass_id: UUID, now: datetime | None = None) -> RotationRecord | None:
    """Return the pass's current credential record, or None if it has expired or never existed."""
    return RotationRecord.objects.filter(current_for__pk=pass_id, expires_at__gt=now or timezone.now()).first()


def gc_expired(pass_id: UUID, now: datetime | None = None) -> int:
    """Delete the expired records of a pass. Returns the number of deleted records."""
    deleted, _ = RotationRecord.objects.filter(pass_obj_id=pass_id, expires_at__lte=now or timezone.now()).delete()
    return deleted


def gc_expired_quietly(pass_id: UUID, now: datetime | None = None) -> int:
    """Garbage collect inside a savepoint. A failure is logged and left for the next run."""
    try:
        with transaction.atomic():
            return gc_expired(pass_id, now)
    except DatabaseError:
        logger.warning("rotation_gc_failed", pass_id=str(pass_id), exc_info=True)
        return 0


def purge_expired_records(now: datetime | None = None) -> int:
    """Delete expired records across all passes."""
    deleted, _ = RotationRecord.objects.filter(expires_at__lte=now or timezone.now()).delete()
    return deleted
