import typing as t
from datetime import datetime

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from common.models import TimeStampedModel
from venues.models import PassType, Venue


class PassQuerySet(models.QuerySet["Pass"]):
    def for_user(self, user_id: t.Any) -> t.Self:
        return self.filter(owner_id=user_id)

    def usable(self, now: datetime | None = None) -> t.Self:
        """Stored as active and still inside the validity window."""
        return self.filter(status=Pass.Status.ACTIVE, valid_until__gt=now or timezone.now())

    def full(self) -> t.Self:
        return self.select_related("venue", "pass_type", "owner")


class PassManager(models.Manager["Pass"]):
    def get_queryset(self) -> PassQuerySet:
        return PassQuerySet(self.model, using=self._db)

    def for_user(self, user_id: t.Any) -> PassQuerySet:
        return self.get_queryset().for_user(user_id)

    def usable(self, now: datetime | None = None) -> PassQuerySet:
        return self.get_queryset().usable(now)

    def full(self) -> PassQuerySet:
        return self.get_queryset().full()


class Pass(TimeStampedModel):
    """A single admission right with a bounded validity window.

    `status` only ever moves away from ACTIVE. EXPIRED is never written by the ledger: a pass
    stored as ACTIVE whose validity window has passed is reported as expired by
    `effective_status`.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        USED = "used", "Used"
        EXPIRED = "expired", "Expired"
        TRANSFERRED = "transferred", "Transferred"

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="passes")
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="passes")
    pass_type = models.ForeignKey(PassType, on_delete=models.PROTECT, related_name="passes")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE, db_index=True)
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField(db_index=True)
    restrictions = models.JSONField(default=list, blank=True)
    receipt_id = models.CharField(
        max_length=255, blank=True, default="", help_text="External ledger receipt, filled in asynchronously."
    )
    current_rotation = models.ForeignKey(
        "passes.RotationRecord",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="current_for",
        help_text="The credential currently displayed for this pass.",
    )

    objects = PassManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "pass_type", "status", "created_at"], name="pass_allocation_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(valid_until__gt=F("valid_from")), name="pass_valid_window"),
        ]

    def __str__(self) -> str:
        return f"Pass {self.pk} ({self.status})"

    def clean(self) -> None:
        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValidationError({"valid_until": "valid_until must be after valid_from."})

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or timezone.now()) >= self.valid_until

    def effective_status(self, now: datetime | None = None) -> str:
        if self.status == self.Status.ACTIVE and self.is_expired(now):
            return self.Status.EXPIRED
        return self.status

    def is_usable(self, now: datetime | None = None) -> bool:
        return self.effective_status(now) == self.Status.ACTIVE


class RotationRecord(TimeStampedModel):
    """A credential issued for a pass. Deleted once expired."""

    pass_obj = models.ForeignKey(Pass, on_delete=models.CASCADE, related_name="rotations", db_column="pass_id")
    token = models.TextField()
    signature = models.CharField(max_length=64)
    token_hash = models.CharField(max_length=64, db_index=True)
    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pass_obj", "expires_at"], name="rotation_pass_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Rotation {self.pk} for {self.pass_obj_id}"

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or timezone.now()) >= self.expires_at


class TransferRecord(TimeStampedModel):
    """Audit row for a transfer. Links the terminated source pass to the pass minted for the recipient."""

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"

    source_pass = models.OneToOneField(Pass, on_delete=models.CASCADE, related_name="transfer_record")
    new_pass = models.OneToOneField(Pass, on_delete=models.CASCADE, related_name="received_via")
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="transfers_sent"
    )
    to_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="transfers_received"
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.COMPLETED)
    receipt_id = models.CharField(max_length=255, blank=True, default="")

    def __str__(self) -> str:
        return f"Transfer {self.source_pass_id} -> {self.new_pass_id}"


class RedemptionRecord(TimeStampedModel):
    """Audit row for the one-time consumption of a pass."""

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"

    pass_obj = models.OneToOneField(Pass, on_delete=models.CASCADE, related_name="redemption", db_column="pass_id")
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="redemptions_performed"
    )
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="redemptions")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.COMPLETED)
    receipt_id = models.CharField(max_length=255, blank=True, default="")

    def __str__(self) -> str:
        return f"Redemption of {self.pass_obj_id}"
