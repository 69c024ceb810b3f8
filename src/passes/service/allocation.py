"""Quota based pass allocation."""

from datetime import datetime, timedelta
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from passes.models import Pass
from venues.models import PassAllocationRule, Venue
from venues.service import get_active_association, get_allocation_rules

from .db import translate_store_errors
from .ledger import create_pass

logger = structlog.get_logger(__name__)


def period_start(rule: PassAllocationRule, venue: Venue, now: datetime) -> datetime | None:
    """Start of the rule's current quota period in the venue's local time.

    Returns None for rules that never renew: their quota counts every pass ever issued.
    """
    if not rule.auto_renew:
        return None
    midnight = now.astimezone(venue.tzinfo).replace(hour=0, minute=0, second=0, microsecond=0)
    match rule.period:
        case PassAllocationRule.Period.DAILY:
            return midnight
        case PassAllocationRule.Period.WEEKLY:
            return midnight - timedelta(days=midnight.weekday())
        case PassAllocationRule.Period.MONTHLY:
            return midnight.replace(day=1)
    raise ValueError(f"Unknown allocation period: {rule.period}")


def issued_in_period(user_id: UUID, rule: PassAllocationRule, start: datetime | None, now: datetime) -> int:
    """Passes of the rule's type that are still usable at `now`. Used or expired ones free their slot."""
    qs = Pass.objects.usable(now).filter(owner_id=user_id, pass_type_id=rule.pass_type_id)
    if start is not None:
        qs = qs.filter(created_at__gte=start)
    return qs.count()


@translate_store_errors
def allocate(user_id: UUID, venue_id: UUID, now: datetime | None = None) -> list[Pass]:
    """Top the user up to their quota for every rule matching their user group.

    Counting and issuing happen with the user's venue association locked, so concurrent
    allocations for the same user serialize.

    Raises:
        NotAssociatedWithVenue: If the user has no association with the venue.
        AssociationSuspended: If the association is not active.
    """
    now = now or timezone.now()
    issued: list[Pass] = []
    with transaction.atomic():
        association = get_active_association(user_id, venue_id, for_update=True)
        for rule in get_allocation_rules(venue_id, association.user_group):
            start = period_start(rule, association.venue, now)
            remaining = max(0, rule.quantity - issued_in_period(user_id, rule, start, now))
            for _ in range(remaining):
                issued.append(create_pass(association.user, rule.pass_type, now=now))

    logger.info(
        "passes_allocated",
        user_id=str(user_id),
        venue_id=str(venue_id),
        user_group=association.user_group,
        count=len(issued),
    )
    return issued
