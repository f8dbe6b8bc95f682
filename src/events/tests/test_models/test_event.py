import typing as t
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone
from freezegun import freeze_time

from accounts.models import SchoolUser
from events.exceptions import CapacityExceededError
from events.models import Event, Registration, derive_status
from events.service.registration_service import RegistrationService

pytestmark = pytest.mark.django_db


class TestDeriveStatus:
    def test_upcoming_before_start(self, event: Event) -> None:
        assert derive_status(event.start_date - timedelta(seconds=1), event) == Event.Status.UPCOMING

    def test_ongoing_includes_both_bounds(self, event: Event) -> None:
        assert derive_status(event.start_date, event) == Event.Status.ONGOING
        assert derive_status(event.end_date, event) == Event.Status.ONGOING

    def test_completed_after_end(self, event: Event) -> None:
        assert derive_status(event.end_date + timedelta(seconds=1), event) == Event.Status.COMPLETED

    def test_cancelled_is_sticky(self, event: Event) -> None:
        event.status = Event.Status.CANCELLED
        assert derive_status(event.start_date, event) == Event.Status.CANCELLED
        assert derive_status(event.end_date + timedelta(days=1), event) == Event.Status.CANCELLED

    def test_is_pure(self, event: Event) -> None:
        """Calling it does not touch the event or the database."""
        before = event.status
        derive_status(event.end_date + timedelta(days=1), event)
        event.refresh_from_db()
        assert event.status == before


class TestEventSave:
    def test_status_is_derived_on_save(self, event_factory: t.Callable[..., Event]) -> None:
        now = timezone.now()
        past = event_factory(start_date=now - timedelta(days=2), end_date=now - timedelta(days=1))
        live = event_factory(start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=1))
        future = event_factory(start_date=now + timedelta(days=1))

        assert past.status == Event.Status.COMPLETED
        assert live.status == Event.Status.ONGOING
        assert future.status == Event.Status.UPCOMING

    def test_status_is_refreshed_with_update_fields(self, event: Event) -> None:
        with freeze_time(event.start_date + timedelta(minutes=5)):
            event.title = "Renamed"
            event.save(update_fields=["title", "updated_at"])

        event.refresh_from_db()
        assert event.title == "Renamed"
        assert event.status == Event.Status.ONGOING

    def test_stale_instance_does_not_reset_counters(
        self,
        single_seat_event: Event,
        registration_service: RegistrationService,
        student: SchoolUser,
        other_student: SchoolUser,
    ) -> None:
        stale = Event.objects.get(pk=single_seat_event.pk)
        registration_service.register(single_seat_event.pk, student)

        stale.title = "Renamed"
        stale.save()

        single_seat_event.refresh_from_db()
        assert single_seat_event.title == "Renamed"
        assert single_seat_event.registered_count == 1
        with pytest.raises(CapacityExceededError):
            registration_service.register(single_seat_event.pk, other_student)
        assert Registration.objects.active().filter(event=single_seat_event).count() == 1

    def test_counters_are_ignored_in_update_fields(self, event: Event) -> None:
        event.attended_count = 7
        event.save(update_fields=["attended_count", "updated_at"])

        event.refresh_from_db()
        assert event.attended_count == 0

    def test_capacity_cannot_drop_below_registrations(
        self,
        event: Event,
        registration_service: RegistrationService,
        student: SchoolUser,
        other_student: SchoolUser,
    ) -> None:
        registration_service.register(event.pk, student)
        registration_service.register(event.pk, other_student)
        event.capacity = 1

        with pytest.raises(ValidationError) as exc_info:
            event.save()
        assert "capacity" in exc_info.value.message_dict
        assert Event.objects.get(pk=event.pk).capacity == 50

    def test_end_before_start_is_rejected(self, event_factory: t.Callable[..., Event]) -> None:
        start = timezone.now() + timedelta(days=3)
        with pytest.raises(ValidationError) as exc_info:
            event_factory(start_date=start, end_date=start - timedelta(hours=1))
        assert "end_date" in exc_info.value.message_dict

    def test_capacity_must_be_positive(self, event_factory: t.Callable[..., Event]) -> None:
        with pytest.raises(ValidationError):
            event_factory(capacity=0)

    def test_price_cannot_be_negative(self, event_factory: t.Callable[..., Event]) -> None:
        with pytest.raises(ValidationError):
            event_factory(price=Decimal("-1.00"))


class TestRegistrationOpen:
    def test_open_by_default(self, event: Event) -> None:
        assert event.is_registration_open(timezone.now())

    def test_closed_when_full(self, event: Event) -> None:
        event.registered_count = event.capacity
        assert event.is_full
        assert not event.is_registration_open(timezone.now())

    def test_closed_when_cancelled(self, event: Event) -> None:
        event.status = Event.Status.CANCELLED
        assert not event.is_registration_open(timezone.now())

    def test_closed_when_registration_not_required(self, event: Event) -> None:
        event.requires_registration = False
        assert not event.is_registration_open(timezone.now())

    def test_deadline_is_inclusive(self, event: Event) -> None:
        event.registration_deadline = event.start_date - timedelta(days=1)
        assert event.is_registration_open(event.registration_deadline)
        assert not event.is_registration_open(event.registration_deadline + timedelta(seconds=1))

    def test_without_deadline_open_until_end(self, event: Event) -> None:
        assert event.is_registration_open(event.end_date - timedelta(seconds=1))
        assert not event.is_registration_open(event.end_date)

    def test_available_slots(self, event: Event) -> None:
        event.registered_count = 10
        assert event.available_slots == event.capacity - 10
        assert event.is_free
