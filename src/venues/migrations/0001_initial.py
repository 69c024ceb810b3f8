import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import venues.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Venue",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "venue_type",
                    models.CharField(
                        choices=[
                            ("transit", "Transit"),
                            ("commercial", "Commercial"),
                            ("tourist", "Tourist"),
                            ("government", "Government"),
                        ],
                        default="commercial",
                        max_length=20,
                    ),
                ),
                ("address", models.CharField(blank=True, max_length=512)),
                (
                    "timezone",
                    models.CharField(default="UTC", max_length=64, validators=[venues.models.validate_timezone]),
                ),
                (
                    "auth_methods",
                    models.JSONField(
                        default=venues.models._default_auth_methods,
                        help_text="Ordered list of accepted identity presentation methods.",
                        validators=[venues.models.validate_auth_methods],
                    ),
                ),
                ("pass_transfer_enabled", models.BooleanField(default=False)),
                ("allow_auto_registration", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="PassType",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("restrictions", models.JSONField(blank=True, default=list)),
                (
                    "validity_hours",
                    models.PositiveIntegerField(default=24, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("transferable", models.BooleanField(default=False)),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="pass_types", to="venues.venue"
                    ),
                ),
            ],
            options={
                "ordering": ["venue", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("venue", "name"), name="unique_pass_type_name_per_venue"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PassAllocationRule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "user_group",
                    models.CharField(
                        choices=[
                            ("employees", "Employees"),
                            ("residents", "Residents"),
                            ("students", "Students"),
                            ("public", "Public"),
                            ("tourists", "Tourists"),
                            ("visitors", "Visitors"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                (
                    "period",
                    models.CharField(
                        choices=[("daily", "Daily"), ("weekly", "Weekly"), ("monthly", "Monthly")],
                        default="daily",
                        max_length=10,
                    ),
                ),
                ("auto_renew", models.BooleanField(default=True)),
                (
                    "pass_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocation_rules",
                        to="venues.passtype",
                    ),
                ),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="allocation_rules", to="venues.venue"
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("venue", "user_group", "pass_type"), name="unique_allocation_rule_per_group_and_type"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserVenueAssociation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "user_group",
                    models.CharField(
                        choices=[
                            ("employees", "Employees"),
                            ("residents", "Residents"),
                            ("students", "Students"),
                            ("public", "Public"),
                            ("tourists", "Tourists"),
                            ("visitors", "Visitors"),
                        ],
                        db_index=True,
                        default="public",
                        max_length=20,
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("user", "User"), ("staff", "Staff"), ("admin", "Admin")], default="user", max_length=10
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("suspended", "Suspended")],
                        db_index=True,
                        default="active",
                        max_length=10,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="venue_associations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="associations", to="venues.venue"
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("user", "venue"), name="unique_user_venue_association"),
                ],
            },
        ),
    ]
