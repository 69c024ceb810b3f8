"""Tests for quota based pass allocation."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone
from freezegun import freeze_time

from accounts.models import QueueSkipUser
from passes.models import Pass
from passes.service import allocation
from venues.exceptions import AssociationSuspended, NotAssociatedWithVenue
from venues.models import PassAllocationRule, PassType, UserGroup, UserVenueAssociation, Venue

pytestmark = pytest.mark.django_db


def test_allocates_up_to_the_quota(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    issued = allocation.allocate(user.pk, venue.pk)

    assert len(issued) == 2
    assert all(p.owner_id == user.pk and p.pass_type_id == allocation_rule.pass_type_id for p in issued)


def test_second_allocation_in_the_same_period_issues_nothing(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    allocation.allocate(user.pk, venue.pk)

    assert allocation.allocate(user.pk, venue.pk) == []
    assert Pass.objects.filter(owner=user).count() == 2


def test_used_passes_are_replenished(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    first, _ = allocation.allocate(user.pk, venue.pk)
    Pass.objects.filter(pk=first.pk).update(status=Pass.Status.USED)

    issued = allocation.allocate(user.pk, venue.pk)

    assert len(issued) == 1


def test_expired_passes_are_replenished(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    first, _ = allocation.allocate(user.pk, venue.pk)
    now = timezone.now()
    Pass.objects.filter(pk=first.pk).update(valid_from=now - timedelta(hours=2), valid_until=now - timedelta(minutes=1))

    issued = allocation.allocate(user.pk, venue.pk)

    assert len(issued) == 1
    first.refresh_from_db()
    assert first.status == Pass.Status.ACTIVE
    assert first.effective_status() == Pass.Status.EXPIRED


def test_daily_quota_resets_at_venue_midnight(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    # 21:30 UTC on 6 October is 23:30 in Vienna.
    with freeze_time("2025-10-06 21:30:00"):
        assert len(allocation.allocate(user.pk, venue.pk)) == 2
    # 22:30 UTC is already the next day in Vienna.
    with freeze_time("2025-10-06 22:30:00"):
        assert len(allocation.allocate(user.pk, venue.pk)) == 2


def test_only_rules_for_the_users_group_apply(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, pass_type: PassType
) -> None:
    PassAllocationRule.objects.create(venue=venue, user_group=UserGroup.STUDENTS, pass_type=pass_type, quantity=5)

    assert allocation.allocate(user.pk, venue.pk) == []


def test_non_renewing_rule_never_resets(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, pass_type: PassType
) -> None:
    PassAllocationRule.objects.create(
        venue=venue, user_group=UserGroup.EMPLOYEES, pass_type=pass_type, quantity=1, auto_renew=False
    )
    with freeze_time("2025-01-01 12:00:00"):
        assert len(allocation.allocate(user.pk, venue.pk)) == 1

    with freeze_time("2025-01-02 12:00:00"):
        assert allocation.allocate(user.pk, venue.pk) == []


def test_requires_an_association(user: QueueSkipUser, venue: Venue) -> None:
    with pytest.raises(NotAssociatedWithVenue):
        allocation.allocate(user.pk, venue.pk)


def test_suspended_association_is_rejected(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    UserVenueAssociation.objects.filter(pk=association.pk).update(status=UserVenueAssociation.Status.SUSPENDED)

    with pytest.raises(AssociationSuspended):
        allocation.allocate(user.pk, venue.pk)

    assert not Pass.objects.filter(owner=user).exists()


class TestPeriodStart:
    @pytest.fixture
    def rule(self, allocation_rule: PassAllocationRule) -> PassAllocationRule:
        return allocation_rule

    @pytest.mark.parametrize(
        "period,expected",
        [
            ("daily", datetime(2025, 10, 8, 0, 0)),
            ("weekly", datetime(2025, 10, 6, 0, 0)),
            ("monthly", datetime(2025, 10, 1, 0, 0)),
        ],
    )
    def test_period_start_is_local_midnight(
        self, rule: PassAllocationRule, venue: Venue, period: str, expected: datetime
    ) -> None:
        rule.period = period
        # Wednesday 8 October, 10:00 in Vienna.
        now = datetime(2025, 10, 8, 8, 0, tzinfo=ZoneInfo("UTC"))

        start = allocation.period_start(rule, venue, now)

        assert start == expected.replace(tzinfo=ZoneInfo("Europe/Vienna"))

    def test_non_renewing_rule_has_no_start(self, rule: PassAllocationRule, venue: Venue) -> None:
        rule.auto_renew = False

        assert allocation.period_start(rule, venue, timezone.now()) is None


def test_allocation_window_uses_validity_hours(
    user: QueueSkipUser, venue: Venue, association: UserVenueAssociation, allocation_rule: PassAllocationRule
) -> None:
    now = timezone.now()

    issued = allocation.allocate(user.pk, venue.pk, now=now)

    assert {p.valid_until for p in issued} == {now + timedelta(hours=24)}
