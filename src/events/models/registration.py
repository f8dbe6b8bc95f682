import secrets
import string
import typing as t
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Count, Q
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event

TICKET_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
TICKET_SUFFIX_LENGTH = 5


def generate_qr_code() -> str:
    """A random opaque token, 128 bits of entropy."""
    return secrets.token_hex(16)


def generate_ticket_number(now: datetime | None = None) -> str:
    """Human readable ticket number in the form ``EVT-YYYYMMDD-XXXXX``."""
    now = now or timezone.now()
    suffix = "".join(secrets.choice(TICKET_SUFFIX_ALPHABET) for _ in range(TICKET_SUFFIX_LENGTH))
    return f"EVT-{timezone.localtime(now):%Y%m%d}-{suffix}"


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def active(self) -> t.Self:
        """Registrations that still hold a seat or already attended."""
        return self.exclude(status=Registration.Status.CANCELLED)

    def with_event_and_user(self) -> t.Self:
        return self.select_related("event", "user")

    def stats_for_event(self, event: Event) -> dict[str, int]:
        """Registration counts by status for one event."""
        return self.filter(event=event).aggregate(
            total=Count("id"),
            registered=Count("id", filter=Q(status=Registration.Status.REGISTERED)),
            attended=Count("id", filter=Q(status=Registration.Status.ATTENDED)),
            cancelled=Count("id", filter=Q(status=Registration.Status.CANCELLED)),
            no_show=Count("id", filter=Q(status=Registration.Status.NO_SHOW)),
        )


class RegistrationManager(models.Manager["Registration"]):
    def get_queryset(self) -> RegistrationQuerySet:
        return RegistrationQuerySet(self.model, using=self._db)

    def active(self) -> RegistrationQuerySet:
        return self.get_queryset().active()

    def stats_for_event(self, event: Event) -> dict[str, int]:
        return self.get_queryset().stats_for_event(event)


class Registration(TimeStampedModel):
    """One user's claim on one event, and the ticket that proves it."""

    class Status(models.TextChoices):
        REGISTERED = "registered", "Registered"
        ATTENDED = "attended", "Attended"
        CANCELLED = "cancelled", "Cancelled"
        NO_SHOW = "no-show", "No Show"

    class CheckInMethod(models.TextChoices):
        NONE = "", "None"
        QR = "qr", "QR code"
        MANUAL = "manual", "Manual"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"
        NOT_REQUIRED = "not_required", "Not Required"

    class PaymentMethod(models.TextChoices):
        NONE = "", "None"
        CARD = "card", "Card"
        CASH = "cash", "Cash"
        FREE = "free", "Free"

    TERMINAL_STATUSES = (Status.ATTENDED, Status.CANCELLED, Status.NO_SHOW)

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations")
    qr_code = models.CharField(max_length=64, unique=True, editable=False)
    ticket_number = models.CharField(max_length=32, unique=True, editable=False)
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.REGISTERED, db_index=True)
    registered_at = models.DateTimeField(default=timezone.now, editable=False)
    attended_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    check_in_method = models.CharField(
        max_length=8, choices=CheckInMethod.choices, default=CheckInMethod.NONE, blank=True
    )
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checked_in_registrations",
        editable=False,
    )
    notes = models.TextField(blank=True)
    reminder_sent = models.BooleanField(default=False)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.NOT_REQUIRED, db_index=True
    )
    payment_amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    payment_method = models.CharField(
        max_length=8, choices=PaymentMethod.choices, default=PaymentMethod.NONE, blank=True
    )
    transaction_id = models.CharField(max_length=64, blank=True)
    card_last4 = models.CharField(max_length=4, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)

    objects = RegistrationManager()

    class Meta:
        ordering = ["-registered_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"],
                condition=~Q(status="cancelled"),
                name="unique_active_registration_per_event_user",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "status"], name="idx_registration_event_status"),
            models.Index(fields=["status", "reminder_sent"], name="idx_registration_reminder"),
        ]

    def __str__(self) -> str:
        return f"{self.ticket_number} ({self.status})"

    def is_ticket_valid(self, now: datetime | None = None) -> bool:
        """A ticket is valid until the event ends, unless cancelled."""
        now = now or timezone.now()
        return self.status != self.Status.CANCELLED and now <= self.event.end_date

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES
