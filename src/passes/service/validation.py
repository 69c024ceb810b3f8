"""Staff-side validation of a scanned credential. Validation never redeems."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from django.utils import timezone

from passes import credentials
from passes.credentials import CredentialVerificationError
from passes.exceptions import MalformedOrExpiredCredential, StaleCredential
from venues.service import require_venue_staff

from . import rotation_store
from .checks import get_pass, raise_for_restrictions, raise_for_unusable
from .db import translate_store_errors

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    pass_id: UUID
    user_id: UUID
    venue_id: UUID


@translate_store_errors
def validate(token: str, staff_id: UUID, now: datetime | None = None) -> ValidationResult:
    """Check that a scanned token is the live credential of a usable pass.

    Raises:
        MalformedOrExpiredCredential: If the token does not decode, is badly signed or expired.
        NotVenueStaff: If the caller is not staff of the pass's venue.
        StaleCredential: If the token has been superseded by a newer rotation.
        PassAlreadyRedeemed, PassAlreadyTransferred, PassExpired, RestrictionViolated
    """
    now = now or timezone.now()
    try:
        payload = credentials.verify(token, now=now)
    except CredentialVerificationError as e:
        logger.info("credential_rejected", reason=e.reason, staff_id=str(staff_id))
        raise MalformedOrExpiredCredential() from e

    require_venue_staff(staff_id, payload.venue_id)

    record = rotation_store.current_record(payload.pass_id, now)
    if record is None or record.token_hash != payload.token_hash:
        logger.info("credential_stale", pass_id=str(payload.pass_id), staff_id=str(staff_id))
        raise StaleCredential()

    pass_obj = get_pass(payload.pass_id)
    raise_for_unusable(pass_obj, now)
    raise_for_restrictions(pass_obj, now)

    logger.info("credential_validated", pass_id=str(pass_obj.pk), staff_id=str(staff_id))
    return ValidationResult(pass_id=pass_obj.pk, user_id=pass_obj.owner_id, venue_id=pass_obj.venue_id)
