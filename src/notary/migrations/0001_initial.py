import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("passes", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="NotarizationRequest",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[("mint", "Mint"), ("transfer", "Transfer"), ("redeem", "Redeem")],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                (
                    "record_id",
                    models.UUIDField(blank=True, help_text="The transfer or redemption record notarized.", null=True),
                ),
                ("payload", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                            ("skipped", "Skipped"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("receipt_id", models.CharField(blank=True, default="", max_length=255)),
                ("last_error", models.TextField(blank=True, default="")),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "pass_obj",
                    models.ForeignKey(
                        db_column="pass_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notarization_requests",
                        to="passes.pass",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "updated_at"], name="notary_status_updated_idx"),
                ],
            },
        ),
    ]
