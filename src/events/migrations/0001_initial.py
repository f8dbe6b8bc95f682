import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("title", models.CharField(db_index=True, max_length=100)),
                ("description", models.TextField(max_length=2000)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Sports", "Sports"),
                            ("Academic", "Academic"),
                            ("Cultural", "Cultural"),
                            ("Exhibition", "Exhibition"),
                            ("Debate", "Debate"),
                            ("Workshop", "Workshop"),
                            ("Social", "Social"),
                            ("Other", "Other"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField(db_index=True)),
                ("end_date", models.DateTimeField(db_index=True)),
                ("location", models.CharField(max_length=255)),
                ("venue", models.CharField(blank=True, max_length=255)),
                (
                    "capacity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("registered_count", models.PositiveIntegerField(default=0, editable=False)),
                ("attended_count", models.PositiveIntegerField(default=0, editable=False)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=8,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("upcoming", "Upcoming"),
                            ("ongoing", "Ongoing"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="upcoming",
                        max_length=10,
                    ),
                ),
                ("registration_deadline", models.DateTimeField(blank=True, null=True)),
                ("requires_registration", models.BooleanField(default=True)),
                ("is_published", models.BooleanField(db_index=True, default=True)),
                ("is_featured", models.BooleanField(default=False)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_date"],
                "indexes": [
                    models.Index(fields=["start_date", "end_date"], name="idx_event_dates"),
                    models.Index(fields=["status", "end_date"], name="idx_event_status_end"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(capacity__gte=1), name="event_capacity_positive"),
                    models.CheckConstraint(condition=models.Q(price__gte=0), name="event_price_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(end_date__gte=models.F("start_date")), name="event_end_after_start"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SweepCheckpoint",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(max_length=64, unique=True)),
                ("last_run_at", models.DateTimeField()),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("qr_code", models.CharField(editable=False, max_length=64, unique=True)),
                ("ticket_number", models.CharField(editable=False, max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("registered", "Registered"),
                            ("attended", "Attended"),
                            ("cancelled", "Cancelled"),
                            ("no-show", "No Show"),
                        ],
                        db_index=True,
                        default="registered",
                        max_length=12,
                    ),
                ),
                ("registered_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("attended_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                (
                    "check_in_method",
                    models.CharField(
                        blank=True,
                        choices=[("", "None"), ("qr", "QR code"), ("manual", "Manual")],
                        default="",
                        max_length=8,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("reminder_sent", models.BooleanField(default=False)),
                ("reminder_sent_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                            ("not_required", "Not Required"),
                        ],
                        db_index=True,
                        default="not_required",
                        max_length=16,
                    ),
                ),
                ("payment_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=8)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("", "None"), ("card", "Card"), ("cash", "Cash"), ("free", "Free")],
                        default="",
                        max_length=8,
                    ),
                ),
                ("transaction_id", models.CharField(blank=True, max_length=64)),
                ("card_last4", models.CharField(blank=True, max_length=4)),
                ("payment_date", models.DateTimeField(blank=True, null=True)),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        editable=False,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checked_in_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-registered_at"],
                "indexes": [
                    models.Index(fields=["event", "status"], name="idx_registration_event_status"),
                    models.Index(fields=["status", "reminder_sent"], name="idx_registration_reminder"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        fields=("event", "user"),
                        name="unique_active_registration_per_event_user",
                    ),
                ],
            },
        ),
    ]
