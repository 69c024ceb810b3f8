import typing as t
import zoneinfo

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from accounts.models import AuthMethod
from common.models import TimeStampedModel


class UserGroup(models.TextChoices):
    EMPLOYEES = "employees", "Employees"
    RESIDENTS = "residents", "Residents"
    STUDENTS = "students", "Students"
    PUBLIC = "public", "Public"
    TOURISTS = "tourists", "Tourists"
    VISITORS = "visitors", "Visitors"


class VenueRole(models.TextChoices):
    USER = "user", "User"
    STAFF = "staff", "Staff"
    ADMIN = "admin", "Admin"


def validate_timezone(value: str) -> None:
    if value not in zoneinfo.available_timezones():
        raise ValidationError(f"Unknown timezone: {value}")


def validate_auth_methods(value: t.Any) -> None:
    if not isinstance(value, list) or not all(v in AuthMethod.values for v in value):
        raise ValidationError(f"Auth methods must be a list of {', '.join(AuthMethod.values)}.")


def _default_auth_methods() -> list[str]:
    return [AuthMethod.EMAIL.value]


class Venue(TimeStampedModel):
    class VenueType(models.TextChoices):
        TRANSIT = "transit", "Transit"
        COMMERCIAL = "commercial", "Commercial"
        TOURIST = "tourist", "Tourist"
        GOVERNMENT = "government", "Government"

    name = models.CharField(max_length=255)
    venue_type = models.CharField(max_length=20, choices=VenueType.choices, default=VenueType.COMMERCIAL)
    address = models.CharField(max_length=512, blank=True)
    timezone = models.CharField(max_length=64, default="UTC", validators=[validate_timezone])
    auth_methods = models.JSONField(
        default=_default_auth_methods,
        validators=[validate_auth_methods],
        help_text="Ordered list of accepted identity presentation methods.",
    )
    pass_transfer_enabled = models.BooleanField(default=False)
    allow_auto_registration = models.BooleanField(default=False)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def tzinfo(self) -> zoneinfo.ZoneInfo:
        return zoneinfo.ZoneInfo(self.timezone)


class UserVenueAssociationQuerySet(models.QuerySet["UserVenueAssociation"]):
    def active(self) -> t.Self:
        return self.filter(status=UserVenueAssociation.Status.ACTIVE)


class UserVenueAssociation(TimeStampedModel):
    """Links a user to a venue with a user group and a venue role."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        SUSPENDED = "suspended", "Suspended"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="venue_associations")
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="associations")
    user_group = models.CharField(max_length=20, choices=UserGroup.choices, default=UserGroup.PUBLIC, db_index=True)
    role = models.CharField(max_length=10, choices=VenueRole.choices, default=VenueRole.USER)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE, db_index=True)

    objects = UserVenueAssociationQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "venue"], name="unique_user_venue_association"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.venue_id} ({self.user_group}/{self.role})"

    @property
    def is_staff(self) -> bool:
        return self.status == self.Status.ACTIVE and self.role in (VenueRole.STAFF, VenueRole.ADMIN)


class PassType(TimeStampedModel):
    """A template for passes issued by a venue."""

    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="pass_types")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    restrictions = models.JSONField(default=list, blank=True)
    validity_hours = models.PositiveIntegerField(default=24, validators=[MinValueValidator(1)])
    transferable = models.BooleanField(default=False)

    class Meta:
        ordering = ["venue", "name"]
        constraints = [
            models.UniqueConstraint(fields=["venue", "name"], name="unique_pass_type_name_per_venue"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.venue_id})"

    def clean(self) -> None:
        from passes.restrictions import InvalidRestrictions, parse_restrictions

        try:
            parse_restrictions(self.restrictions)
        except InvalidRestrictions as e:
            raise ValidationError({"restrictions": e.message}) from e


class PassAllocationRule(TimeStampedModel):
    """How many passes of a type a user group may draw per period."""

    class Period(models.TextChoices):
        DAILY = "daily", "Daily"
        WEEKLY = "weekly", "Weekly"
        MONTHLY = "monthly", "Monthly"

    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="allocation_rules")
    user_group = models.CharField(max_length=20, choices=UserGroup.choices, db_index=True)
    pass_type = models.ForeignKey(PassType, on_delete=models.CASCADE, related_name="allocation_rules")
    quantity = models.PositiveIntegerField()
    period = models.CharField(max_length=10, choices=Period.choices, default=Period.DAILY)
    auto_renew = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["venue", "user_group", "pass_type"], name="unique_allocation_rule_per_group_and_type"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_group}: {self.quantity}x {self.pass_type_id} {self.period}"

    def clean(self) -> None:
        if self.pass_type_id and self.venue_id and self.pass_type.venue_id != self.venue_id:
            raise ValidationError({"pass_type": "Pass type belongs to a different venue."})
