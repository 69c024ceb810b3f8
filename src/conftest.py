"""Shared fixtures: users, a venue with its members, pass types and passes."""

import secrets
import string
import typing as t
from datetime import timedelta

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken
from pytest import MonkeyPatch

from accounts.models import QueueSkipUser
from live.channel import get_channel
from passes.models import Pass
from passes.service import rotation_scheduler
from queueskip.celery import app as celery_app
from venues.models import PassAllocationRule, PassType, UserGroup, UserVenueAssociation, Venue, VenueRole


@pytest.fixture(autouse=True)
def test_settings(settings: t.Any) -> None:
    """Local memory cache, a fixed signing secret and no notary."""
    settings.CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}
    settings.CREDENTIAL_SECRET = "test-credential-secret-that-is-long-enough-for-hs256"
    settings.CREDENTIAL_ROTATION_INTERVAL_SECONDS = 30
    settings.CREDENTIAL_CLOCK_SKEW_SECONDS = 0
    settings.NOTARY_URL = ""


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> t.Iterator[None]:
    """Run Celery tasks synchronously so their side effects are visible to the test."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Increase the rate limits to allow testing."""
    monkeypatch.setattr("common.throttling.AuthThrottle.rate", "1000/min")
    monkeypatch.setattr("common.throttling.AnonDefaultThrottle.rate", "1000/min")
    monkeypatch.setattr("common.throttling.UserDefaultThrottle.rate", "1000/min")


@pytest.fixture(autouse=True)
def clean_runtime_state(test_settings: None) -> t.Iterator[None]:
    """Empty the cache, the live channel and the rotation registry around each test."""
    cache.clear()
    get_channel().clear()
    yield
    if rotation_scheduler._scheduler is not None:
        rotation_scheduler._scheduler.stop_all()
    get_channel().clear()
    cache.clear()


class QueueSkipUserFactory:
    """Factory for creating QueueSkipUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> QueueSkipUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(10)))
        email = kwargs.pop("email", f"{username}@test.com")
        return QueueSkipUser.objects.create_user(
            username=username,
            email=email,
            password=kwargs.pop("password", "password"),
            first_name=kwargs.pop("first_name", self.fake.first_name()),
            last_name=kwargs.pop("last_name", self.fake.last_name()),
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> QueueSkipUser:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> QueueSkipUserFactory:
    return QueueSkipUserFactory()


@pytest.fixture
def user(user_factory: QueueSkipUserFactory) -> QueueSkipUser:
    return user_factory()


@pytest.fixture
def other_user(user_factory: QueueSkipUserFactory) -> QueueSkipUser:
    return user_factory()


@pytest.fixture
def staff_user(user_factory: QueueSkipUserFactory) -> QueueSkipUser:
    return user_factory()


@pytest.fixture
def superuser(user_factory: QueueSkipUserFactory) -> QueueSkipUser:
    return user_factory(is_superuser=True, is_staff=True)


@pytest.fixture
def venue() -> Venue:
    return Venue.objects.create(
        name="Central Station",
        venue_type=Venue.VenueType.TRANSIT,
        timezone="Europe/Vienna",
        auth_methods=["email", "government_id"],
        pass_transfer_enabled=True,
    )


@pytest.fixture
def association(user: QueueSkipUser, venue: Venue) -> UserVenueAssociation:
    return UserVenueAssociation.objects.create(user=user, venue=venue, user_group=UserGroup.EMPLOYEES)


@pytest.fixture
def other_association(other_user: QueueSkipUser, venue: Venue) -> UserVenueAssociation:
    return UserVenueAssociation.objects.create(user=other_user, venue=venue, user_group=UserGroup.EMPLOYEES)


@pytest.fixture
def staff_association(staff_user: QueueSkipUser, venue: Venue) -> UserVenueAssociation:
    return UserVenueAssociation.objects.create(
        user=staff_user, venue=venue, user_group=UserGroup.EMPLOYEES, role=VenueRole.STAFF
    )


@pytest.fixture
def pass_type(venue: Venue) -> PassType:
    return PassType.objects.create(venue=venue, name="Skip the line", validity_hours=24, transferable=True)


@pytest.fixture
def allocation_rule(venue: Venue, pass_type: PassType) -> PassAllocationRule:
    return PassAllocationRule.objects.create(
        venue=venue, user_group=UserGroup.EMPLOYEES, pass_type=pass_type, quantity=2, period="daily"
    )


@pytest.fixture
def active_pass(user: QueueSkipUser, venue: Venue, pass_type: PassType, association: UserVenueAssociation) -> Pass:
    now = timezone.now()
    return Pass.objects.create(
        owner=user,
        venue=venue,
        pass_type=pass_type,
        valid_from=now - timedelta(hours=1),
        valid_until=now + timedelta(hours=23),
    )


def _auth_client(user: QueueSkipUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]


@pytest.fixture
def user_client(user: QueueSkipUser) -> Client:
    return _auth_client(user)


@pytest.fixture
def other_client(other_user: QueueSkipUser) -> Client:
    return _auth_client(other_user)


@pytest.fixture
def staff_client(staff_user: QueueSkipUser, staff_association: UserVenueAssociation) -> Client:
    return _auth_client(staff_user)
