from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts.models import SchoolUser
from events.models import Event, Registration
from events.service.broadcaster import NullBroadcaster
from events.service.registration_service import RegistrationService
from events.service.types import PaymentDetails


@pytest.fixture
def event(teacher: SchoolUser) -> Event:
    start = timezone.now() + timedelta(days=1)
    return Event.objects.create(
        title="Art Exhibition",
        description="Year 12 art showcase.",
        category=Event.Category.EXHIBITION,
        start_date=start,
        end_date=start + timedelta(hours=3),
        location="Gallery",
        venue="West Wing",
        organizer=teacher,
        capacity=30,
        price=Decimal("12.00"),
    )


@pytest.fixture
def registration(event: Event, student: SchoolUser) -> Registration:
    """A paid registration, registered without running post-commit side effects."""
    service = RegistrationService(broadcaster=NullBroadcaster())
    return service.register(event.pk, student, payment=PaymentDetails(method="card", card_last4="4242"))
