from django.db import models

from common.models import TimeStampedModel


class NotarizationRequest(TimeStampedModel):
    """One best-effort attempt to record a pass event on the external ledger.

    The triggering operation never waits for, or depends on, this row. It is the only place
    where the outcome of notarization is observable.
    """

    class Kind(models.TextChoices):
        MINT = "mint", "Mint"
        TRANSFER = "transfer", "Transfer"
        REDEEM = "redeem", "Redeem"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        SUCCEEDED = "succeeded", "Succeeded"
        FAILED = "failed", "Failed"
        SKIPPED = "skipped", "Skipped"

    kind = models.CharField(max_length=20, choices=Kind.choices, db_index=True)
    pass_obj = models.ForeignKey(
        "passes.Pass", on_delete=models.CASCADE, related_name="notarization_requests", db_column="pass_id"
    )
    record_id = models.UUIDField(null=True, blank=True, help_text="The transfer or redemption record notarized.")
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    receipt_id = models.CharField(max_length=255, blank=True, default="")
    last_error = models.TextField(blank=True, default="")
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "updated_at"], name="notary_status_updated_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.pass_obj_id} ({self.status})"
