import typing as t
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

COUNTER_FIELDS = frozenset({"registered_count", "attended_count"})


def derive_status(now: datetime, event: "Event") -> str:
    """Compute the lifecycle status of an event at ``now``.

    Cancelled is sticky. Otherwise the status is a pure function of the event's time bounds,
    with both bounds inclusive for ``ongoing``.
    """
    if event.status == Event.Status.CANCELLED:
        return Event.Status.CANCELLED
    if now < event.start_date:
        return Event.Status.UPCOMING
    if now <= event.end_date:
        return Event.Status.ONGOING
    return Event.Status.COMPLETED


class EventQuerySet(models.QuerySet["Event"]):
    def published(self) -> t.Self:
        return self.filter(is_published=True)

    def not_cancelled(self) -> t.Self:
        return self.exclude(status=Event.Status.CANCELLED)

    def for_user(self, user: t.Any) -> t.Self:
        """Published events, plus the user's own drafts. Administrators see everything."""
        if not user.is_authenticated:
            return self.published()
        if user.is_administrator:
            return self
        return self.filter(models.Q(is_published=True) | models.Q(organizer=user))

    def starting_between(self, start: datetime, end: datetime) -> t.Self:
        """Events whose start falls in the half-open interval [start, end)."""
        return self.filter(start_date__gte=start, start_date__lt=end)

    def ended_between(self, start: datetime, end: datetime) -> t.Self:
        """Events whose end falls in the half-open interval [start, end)."""
        return self.filter(end_date__gte=start, end_date__lt=end)


class EventManager(models.Manager["Event"]):
    def get_queryset(self) -> EventQuerySet:
        """Get base queryset for events."""
        return EventQuerySet(self.model, using=self._db)

    def published(self) -> EventQuerySet:
        return self.get_queryset().published()

    def not_cancelled(self) -> EventQuerySet:
        return self.get_queryset().not_cancelled()


class Event(TimeStampedModel):
    class Category(models.TextChoices):
        SPORTS = "Sports", "Sports"
        ACADEMIC = "Academic", "Academic"
        CULTURAL = "Cultural", "Cultural"
        EXHIBITION = "Exhibition", "Exhibition"
        DEBATE = "Debate", "Debate"
        WORKSHOP = "Workshop", "Workshop"
        SOCIAL = "Social", "Social"
        OTHER = "Other", "Other"

    class Status(models.TextChoices):
        UPCOMING = "upcoming", "Upcoming"
        ONGOING = "ongoing", "Ongoing"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    title = models.CharField(max_length=100, db_index=True)
    description = models.TextField(max_length=2000)
    category = models.CharField(max_length=20, choices=Category.choices, db_index=True)
    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField(db_index=True)
    location = models.CharField(max_length=255)
    venue = models.CharField(max_length=255, blank=True)
    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="organized_events"
    )
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    registered_count = models.PositiveIntegerField(default=0, editable=False)
    attended_count = models.PositiveIntegerField(default=0, editable=False)
    price = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(Decimal("0"))]
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.UPCOMING, db_index=True)
    registration_deadline = models.DateTimeField(null=True, blank=True)
    requires_registration = models.BooleanField(default=True)
    is_published = models.BooleanField(default=True, db_index=True)
    is_featured = models.BooleanField(default=False)

    objects = EventManager()

    class Meta:
        ordering = ["start_date"]
        indexes = [
            models.Index(fields=["start_date", "end_date"], name="idx_event_dates"),
            models.Index(fields=["status", "end_date"], name="idx_event_status_end"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(capacity__gte=1), name="event_capacity_positive"),
            models.CheckConstraint(condition=models.Q(price__gte=0), name="event_price_non_negative"),
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")), name="event_end_after_start"
            ),
        ]

    def __str__(self) -> str:
        return self.title

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Re-derive the status from the time bounds on every write.

        Updates never write the seat counters: they only move through conditional
        ``F()`` updates, so an in-memory copy is always potentially stale.
        """
        self.status = derive_status(timezone.now(), self)
        if self._state.adding and kwargs.get("update_fields") is None:
            super().save(*args, **kwargs)
            return
        update_fields = kwargs.get("update_fields")
        if update_fields is None:
            update_fields = [f.name for f in self._meta.concrete_fields if not f.primary_key]
        kwargs["update_fields"] = [
            *(name for name in update_fields if name not in COUNTER_FIELDS and name != "status"),
            "status",
        ]
        super().save(*args, **kwargs)

    def clean(self) -> None:
        """Validate the time window."""
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise DjangoValidationError({"end_date": "End date must be after start date."})
        if not self._state.adding and self.capacity:
            registered = Event.objects.filter(pk=self.pk).values_list("registered_count", flat=True).first() or 0
            if self.capacity < registered:
                raise DjangoValidationError(
                    {"capacity": f"Capacity cannot be lower than the {registered} current registrations."}
                )

    @property
    def available_slots(self) -> int:
        return self.capacity - self.registered_count

    @property
    def is_full(self) -> bool:
        return self.registered_count >= self.capacity

    @property
    def is_free(self) -> bool:
        return self.price == 0

    def is_registration_open(self, now: datetime | None = None) -> bool:
        """Whether a new registration may be accepted at ``now``.

        The deadline is inclusive. Without a deadline, registration stays open until the event ends.
        """
        now = now or timezone.now()
        if not self.requires_registration:
            return False
        if self.status == self.Status.CANCELLED:
            return False
        if self.is_full:
            return False
        if self.registration_deadline:
            return now <= self.registration_deadline
        return now < self.end_date
