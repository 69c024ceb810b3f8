"""Pass ledger: the only writer of pass status.

Status moves from ACTIVE to USED (redeem) or TRANSFERRED (transfer), exactly once. Every
transition is a compare-and-set on the stored status, so two concurrent attempts at
consuming the same pass cannot both succeed. Side effects on the display cache, the rotation
scheduler, the live channel and the notary happen after commit.
"""

import typing as t
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from accounts.models import QueueSkipUser
from live.service import publish_redeemed, publish_transferred
from notary.models import NotarizationRequest
from notary.service import enqueue_notarization
from passes.credentials import Credential
from passes.exceptions import (
    NotPassOwner,
    PassAlreadyRedeemed,
    PassNotTransferable,
    RecipientNotEligible,
    TransferDisabled,
)
from passes.models import Pass, RedemptionRecord, TransferRecord
from passes.restrictions import parse_restrictions
from venues.exceptions import NotVenueStaff
from venues.models import PassType
from venues.service import has_active_association, require_venue_staff

from . import cache, rotation, rotation_store
from .checks import get_pass as fetch_pass
from .checks import lock_pass, raise_for_restrictions, raise_for_unusable
from .db import translate_store_errors
from .rotation_scheduler import get_scheduler

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransferResult:
    source: Pass
    new_pass: Pass
    record: TransferRecord


def create_pass(
    owner: QueueSkipUser,
    pass_type: PassType,
    *,
    now: datetime | None = None,
    valid_from: datetime | None = None,
    valid_until: datetime | None = None,
    restrictions: list[dict[str, t.Any]] | None = None,
) -> Pass:
    """Issue a new active pass.

    The validity window defaults to `now` plus the pass type's validity hours, and the
    restrictions default to a copy of the pass type's. Must run inside a transaction.
    """
    now = now or timezone.now()
    valid_from = valid_from or now
    if restrictions is None:
        restrictions = [r.to_json() for r in parse_restrictions(pass_type.restrictions)]
    pass_obj = Pass.objects.create(
        owner=owner,
        venue_id=pass_type.venue_id,
        pass_type=pass_type,
        status=Pass.Status.ACTIVE,
        valid_from=valid_from,
        valid_until=valid_until or valid_from + timedelta(hours=pass_type.validity_hours),
        restrictions=restrictions,
    )
    transaction.on_commit(lambda: enqueue_notarization(NotarizationRequest.Kind.MINT, pass_obj))
    logger.info(
        "pass_created",
        pass_id=str(pass_obj.pk),
        owner_id=str(owner.pk),
        pass_type_id=str(pass_type.pk),
        valid_until=pass_obj.valid_until.isoformat(),
    )
    return pass_obj


def _diagnose_lost_race(pass_id: UUID, now: datetime) -> t.NoReturn:
    """Raise the error explaining why a compare-and-set matched no row."""
    raise_for_unusable(fetch_pass(pass_id), now)
    raise PassAlreadyRedeemed()


@translate_store_errors
def redeem(pass_id: UUID, staff_id: UUID | None, now: datetime | None = None) -> RedemptionRecord:
    """Consume a pass at the door.

    Raises:
        PassNotFound: If the pass does not exist.
        PassAlreadyRedeemed, PassAlreadyTransferred, PassExpired: If the pass is not active,
            including when a concurrent redemption or transfer won.
        RestrictionViolated: If a restriction forbids use at `now`.
    """
    now = now or timezone.now()
    with transaction.atomic():
        pass_obj = fetch_pass(pass_id)
        raise_for_unusable(pass_obj, now)
        raise_for_restrictions(pass_obj, now)

        updated = Pass.objects.filter(pk=pass_id, status=Pass.Status.ACTIVE, valid_until__gt=now).update(
            status=Pass.Status.USED, updated_at=timezone.now()
        )
        if updated != 1:
            logger.info("pass_redeem_conflict", pass_id=str(pass_id))
            _diagnose_lost_race(pass_id, now)
        pass_obj.status = Pass.Status.USED

        record = RedemptionRecord.objects.create(pass_obj=pass_obj, staff_id=staff_id, venue_id=pass_obj.venue_id)

        def after_commit() -> None:
            cache.invalidate_credentials(pass_obj.pk)
            get_scheduler().stop(pass_obj.pk)
            publish_redeemed(pass_obj.pk, pass_obj.venue_id)
            enqueue_notarization(NotarizationRequest.Kind.REDEEM, pass_obj, record.pk)

        transaction.on_commit(after_commit)

    logger.info("pass_redeemed", pass_id=str(pass_id), staff_id=str(staff_id), venue_id=str(pass_obj.venue_id))
    return record


@translate_store_errors
def transfer(pass_id: UUID, from_user_id: UUID, to_user_id: UUID, now: datetime | None = None) -> TransferResult:
    """Hand a pass over to another member of the same venue.

    The source pass is terminated and a new active pass with the same type, validity window and
    restrictions is issued to the recipient, in one transaction.

    Raises:
        PassNotFound, NotPassOwner
        PassAlreadyRedeemed, PassAlreadyTransferred, PassExpired
        TransferDisabled: If the venue does not allow transfers.
        PassNotTransferable: If the pass type is not transferable.
        RecipientNotEligible: If the recipient is the owner or is not an active venue member.
    """
    now = now or timezone.now()
    with transaction.atomic():
        source = lock_pass(pass_id)
        if source.owner_id != from_user_id:
            raise NotPassOwner()
        raise_for_unusable(source, now)
        if not source.venue.pass_transfer_enabled:
            raise TransferDisabled()
        if not source.pass_type.transferable:
            raise PassNotTransferable()
        if to_user_id == from_user_id:
            raise RecipientNotEligible("A pass cannot be transferred to its owner.")
        if not has_active_association(to_user_id, source.venue_id):
            raise RecipientNotEligible()
        recipient = QueueSkipUser.objects.filter(pk=to_user_id).first()
        if recipient is None:
            raise RecipientNotEligible()

        updated = Pass.objects.filter(pk=pass_id, status=Pass.Status.ACTIVE, valid_until__gt=now).update(
            status=Pass.Status.TRANSFERRED, updated_at=timezone.now()
        )
        if updated != 1:
            _diagnose_lost_race(pass_id, now)
        source.status = Pass.Status.TRANSFERRED

        new_pass = create_pass(
            recipient,
            source.pass_type,
            now=now,
            valid_from=source.valid_from,
            valid_until=source.valid_until,
            restrictions=list(source.restrictions),
        )
        record = TransferRecord.objects.create(
            source_pass=source, new_pass=new_pass, from_user_id=from_user_id, to_user_id=to_user_id
        )

        def after_commit() -> None:
            cache.invalidate_credentials(source.pk, new_pass.pk)
            get_scheduler().stop(source.pk)
            publish_transferred(source.pk, source.venue_id, new_pass.pk)
            enqueue_notarization(NotarizationRequest.Kind.TRANSFER, source, record.pk)

        transaction.on_commit(after_commit)

    logger.info(
        "pass_transferred",
        pass_id=str(pass_id),
        new_pass_id=str(new_pass.pk),
        from_user_id=str(from_user_id),
        to_user_id=str(to_user_id),
    )
    return TransferResult(source=source, new_pass=new_pass, record=record)


def _credential_from_cache(pass_obj: Pass, now: datetime) -> Credential | None:
    cached = cache.get_cached_credential(pass_obj.pk)
    if not cached or pass_obj.current_rotation_id is None:
        return None
    if cached.get("record_id") != str(pass_obj.current_rotation_id):
        return None
    expires_at = datetime.fromisoformat(cached["expires_at"])
    if now >= expires_at:
        return None
    return Credential(
        pass_id=pass_obj.pk,
        venue_id=pass_obj.venue_id,
        token=cached["token"],
        signature=cached["signature"],
        token_hash=cached["token_hash"],
        issued_at=datetime.fromisoformat(cached["issued_at"]),
        expires_at=expires_at,
    )


@translate_store_errors
def current_credential(pass_id: UUID, user_id: UUID, now: datetime | None = None) -> Credential:
    """Return the holder's current credential, rotating on demand when none is live.

    Raises:
        PassNotFound, NotPassOwner
        PassAlreadyRedeemed, PassAlreadyTransferred, PassExpired
    """
    now = now or timezone.now()
    pass_obj = get_owned_pass(pass_id, user_id)
    raise_for_unusable(pass_obj, now)

    if credential := _credential_from_cache(pass_obj, now):
        return credential

    record = rotation_store.current_record(pass_obj.pk, now)
    if record is not None:
        credential = Credential(
            pass_id=pass_obj.pk,
            venue_id=pass_obj.venue_id,
            token=record.token,
            signature=record.signature,
            token_hash=record.token_hash,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
        )
        cache.cache_credential(
            pass_obj.pk, rotation.credential_cache_data(record.pk, credential), credential.expires_at
        )
        return credential

    return rotation.rotate_credential(pass_obj.pk, now=now)


def get_owned_pass(pass_id: UUID, user_id: UUID) -> Pass:
    """Return a pass owned by the user.

    Raises:
        PassNotFound: If the pass does not exist.
        NotPassOwner: If the pass belongs to someone else.
    """
    pass_obj = fetch_pass(pass_id)
    if pass_obj.owner_id != user_id:
        raise NotPassOwner()
    return pass_obj


def get_pass_for_staff(pass_id: UUID, staff_id: UUID) -> Pass:
    """Return a pass to staff of its venue.

    Raises:
        PassNotFound: If the pass does not exist.
        NotVenueStaff: If the caller is not staff of the pass's venue.
    """
    pass_obj = fetch_pass(pass_id)
    require_venue_staff(staff_id, pass_obj.venue_id)
    return pass_obj


def get_pass(pass_id: UUID, user: QueueSkipUser) -> Pass:
    """Return a pass to its owner or to staff of its venue.

    Raises:
        PassNotFound: If the pass does not exist.
        NotPassOwner: If the caller is neither the owner nor venue staff.
    """
    pass_obj = fetch_pass(pass_id)
    if pass_obj.owner_id == user.pk:
        return pass_obj
    try:
        require_venue_staff(user.pk, pass_obj.venue_id)
    except NotVenueStaff as e:
        raise NotPassOwner() from e
    return pass_obj


def list_user_passes(user_id: UUID, venue_id: UUID | None = None) -> QuerySet[Pass]:
    """The user's active and transferred passes, newest first."""
    qs = Pass.objects.full().filter(owner_id=user_id, status__in=[Pass.Status.ACTIVE, Pass.Status.TRANSFERRED])
    if venue_id is not None:
        qs = qs.filter(venue_id=venue_id)
    return qs.order_by("-created_at")
