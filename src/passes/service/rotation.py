"""Issue a new credential for a pass and make it the current one."""

import typing as t
from datetime import datetime
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from live.service import publish_rotated
from passes import credentials
from passes.credentials import Credential

from . import cache, rotation_store
from .checks import lock_pass, raise_for_unusable
from .db import translate_store_errors

logger = structlog.get_logger(__name__)


def credential_cache_data(record_id: UUID, credential: Credential) -> dict[str, t.Any]:
    return {
        "record_id": str(record_id),
        "token": credential.token,
        "signature": credential.signature,
        "token_hash": credential.token_hash,
        "issued_at": credential.issued_at.isoformat(),
        "expires_at": credential.expires_at.isoformat(),
        "venue_id": str(credential.venue_id),
    }


@translate_store_errors
def rotate_credential(pass_id: UUID, *, now: datetime | None = None) -> Credential:
    """Issue and record a fresh credential for a usable pass.

    The previous credential stops validating as soon as the transaction commits. Once committed,
    the new credential is cached for display and pushed to the holder's live topic.

    Raises:
        PassNotFound, PassAlreadyRedeemed, PassAlreadyTransferred, PassExpired
    """
    now = now or timezone.now()
    with transaction.atomic():
        pass_obj = lock_pass(pass_id)
        raise_for_unusable(pass_obj, now)
        credential = credentials.issue(pass_obj.pk, pass_obj.venue_id, now=now)
        record = rotation_store.record_rotation(pass_obj, credential)
        rotation_store.gc_expired_quietly(pass_obj.pk, now)

        def after_commit() -> None:
            cache.cache_credential(pass_obj.pk, credential_cache_data(record.pk, credential), credential.expires_at)
            publish_rotated(
                pass_obj.pk,
                pass_obj.venue_id,
                token=credential.token,
                image=credential.image,
                expires_at=credential.expires_at,
            )

        transaction.on_commit(after_commit)

    logger.debug("credential_rotated", pass_id=str(pass_id), expires_at=credential.expires_at.isoformat())
    return credential
