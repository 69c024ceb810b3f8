"""Guards shared by the ledger, credential rotation and credential validation."""

from datetime import datetime
from uuid import UUID

from passes.exceptions import (
    PassAlreadyRedeemed,
    PassAlreadyTransferred,
    PassExpired,
    PassNotFound,
    RestrictionViolated,
)
from passes.models import Pass, RedemptionRecord
from passes.restrictions import RestrictionContext, first_violation, needs_usage_count, parse_restrictions


def get_pass(pass_id: UUID) -> Pass:
    try:
        return Pass.objects.select_related("venue", "pass_type").get(pk=pass_id)
    except Pass.DoesNotExist as e:
        raise PassNotFound() from e


def lock_pass(pass_id: UUID) -> Pass:
    """Fetch a pass holding its row lock. Must be called inside a transaction."""
    try:
        return Pass.objects.select_for_update(of=("self",)).select_related("venue", "pass_type").get(pk=pass_id)
    except Pass.DoesNotExist as e:
        raise PassNotFound() from e


def raise_for_unusable(pass_obj: Pass, now: datetime) -> None:
    """Raise the error matching the pass's effective status, unless it is active."""
    status = pass_obj.effective_status(now)
    if status == Pass.Status.USED:
        raise PassAlreadyRedeemed()
    if status == Pass.Status.TRANSFERRED:
        raise PassAlreadyTransferred()
    if status == Pass.Status.EXPIRED:
        raise PassExpired()


def local_day_start(now: datetime, pass_obj: Pass) -> datetime:
    return now.astimezone(pass_obj.venue.tzinfo).replace(hour=0, minute=0, second=0, microsecond=0)


def redemptions_today(pass_obj: Pass, now: datetime) -> int:
    """Count the holder's redemptions of this pass type at the venue since local midnight."""
    return RedemptionRecord.objects.filter(
        venue_id=pass_obj.venue_id,
        pass_obj__owner_id=pass_obj.owner_id,
        pass_obj__pass_type_id=pass_obj.pass_type_id,
        created_at__gte=local_day_start(now, pass_obj),
    ).count()


def raise_for_restrictions(pass_obj: Pass, now: datetime) -> None:
    """Raise RestrictionViolated if any of the pass's rules forbids use at `now`."""
    restrictions = parse_restrictions(pass_obj.restrictions)
    if not restrictions:
        return
    context = RestrictionContext(
        at=now,
        tz=pass_obj.venue.tzinfo,
        redemptions_today=redemptions_today(pass_obj, now) if needs_usage_count(restrictions) else 0,
    )
    violated = first_violation(restrictions, context)
    if violated is not None:
        raise RestrictionViolated(violated.describe(), restriction=violated.to_json())
