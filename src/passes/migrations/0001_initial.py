import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("venues", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Pass",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("used", "Used"),
                            ("expired", "Expired"),
                            ("transferred", "Transferred"),
                        ],
                        db_index=True,
                        default="active",
                        max_length=20,
                    ),
                ),
                ("valid_from", models.DateTimeField()),
                ("valid_until", models.DateTimeField(db_index=True)),
                ("restrictions", models.JSONField(blank=True, default=list)),
                (
                    "receipt_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="External ledger receipt, filled in asynchronously.",
                        max_length=255,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="passes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "pass_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="passes", to="venues.passtype"
                    ),
                ),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="passes", to="venues.venue"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["owner", "pass_type", "status", "created_at"], name="pass_allocation_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("valid_until__gt", models.F("valid_from"))), name="pass_valid_window"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RotationRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("token", models.TextField()),
                ("signature", models.CharField(max_length=64)),
                ("token_hash", models.CharField(db_index=True, max_length=64)),
                ("issued_at", models.DateTimeField()),
                ("expires_at", models.DateTimeField(db_index=True)),
                (
                    "pass_obj",
                    models.ForeignKey(
                        db_column="pass_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rotations",
                        to="passes.pass",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["pass_obj", "expires_at"], name="rotation_pass_expiry_idx"),
                ],
            },
        ),
        migrations.AddField(
            model_name="pass",
            name="current_rotation",
            field=models.ForeignKey(
                blank=True,
                help_text="The credential currently displayed for this pass.",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="current_for",
                to="passes.rotationrecord",
            ),
        ),
        migrations.CreateModel(
            name="TransferRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "status",
                    models.CharField(choices=[("completed", "Completed")], default="completed", max_length=20),
                ),
                ("receipt_id", models.CharField(blank=True, default="", max_length=255)),
                (
                    "from_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transfers_sent",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "new_pass",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE, related_name="received_via", to="passes.pass"
                    ),
                ),
                (
                    "source_pass",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE, related_name="transfer_record", to="passes.pass"
                    ),
                ),
                (
                    "to_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transfers_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="RedemptionRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "status",
                    models.CharField(choices=[("completed", "Completed")], default="completed", max_length=20),
                ),
                ("receipt_id", models.CharField(blank=True, default="", max_length=255)),
                (
                    "pass_obj",
                    models.OneToOneField(
                        db_column="pass_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="redemption",
                        to="passes.pass",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="redemptions_performed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="redemptions", to="venues.venue"
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
    ]
