import typing as t
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.utils import timezone

from accounts.models import SchoolUser
from conftest import RecordingBroadcaster
from events.models import Event, Registration
from events.service.check_in_service import CheckInService
from events.service.registration_service import RegistrationService
from notifications.service.dispatcher import NotificationDispatcher


class EventFactory:
    """Creates events starting in two days by default, organized by ``organizer``."""

    def __init__(self, organizer: SchoolUser) -> None:
        self.organizer = organizer
        self.counter = 0

    def __call__(self, **kwargs: t.Any) -> Event:
        self.counter += 1
        start = kwargs.pop("start_date", timezone.now() + timedelta(days=2))
        end = kwargs.pop("end_date", start + timedelta(hours=2))
        defaults: dict[str, t.Any] = {
            "title": f"Event {self.counter}",
            "description": "An event for the whole school.",
            "category": Event.Category.SOCIAL,
            "location": "Main Hall",
            "organizer": self.organizer,
            "capacity": 50,
            "price": Decimal("0.00"),
        }
        defaults.update(kwargs)
        return Event.objects.create(start_date=start, end_date=end, **defaults)


@pytest.fixture
def event_factory(teacher: SchoolUser) -> EventFactory:
    return EventFactory(organizer=teacher)


@pytest.fixture
def event(event_factory: EventFactory) -> Event:
    """A free upcoming event."""
    return event_factory(title="Science Fair")


@pytest.fixture
def paid_event(event_factory: EventFactory) -> Event:
    return event_factory(title="Winter Ball", price=Decimal("15.00"))


@pytest.fixture
def single_seat_event(event_factory: EventFactory) -> Event:
    return event_factory(title="Chess Masterclass", capacity=1)


@pytest.fixture
def ongoing_event(event_factory: EventFactory) -> Event:
    """An event that started an hour ago and ends in an hour."""
    now = timezone.now()
    return event_factory(title="Sports Day", start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=1))


@pytest.fixture
def dispatcher() -> MagicMock:
    """A dispatcher whose queue accepts everything."""
    mock = MagicMock(spec=NotificationDispatcher)
    mock.send_registration_confirmation.return_value = True
    mock.send_reminder.return_value = True
    mock.send_cancellation_confirmation.return_value = True
    mock.create_notification.return_value = True
    return mock


@pytest.fixture
def registration_service(broadcaster: RecordingBroadcaster, dispatcher: MagicMock) -> RegistrationService:
    return RegistrationService(broadcaster=broadcaster, dispatcher=dispatcher)


@pytest.fixture
def check_in_service(broadcaster: RecordingBroadcaster) -> CheckInService:
    return CheckInService(broadcaster=broadcaster)


@pytest.fixture
def registration(registration_service: RegistrationService, event: Event, student: SchoolUser) -> Registration:
    """A student's registration for the free event."""
    return registration_service.register(event.pk, student)


@pytest.fixture
def ongoing_registration(
    registration_service: RegistrationService, ongoing_event: Event, student: SchoolUser
) -> Registration:
    """A student's registration for the event happening now."""
    return registration_service.register(ongoing_event.pk, student)
