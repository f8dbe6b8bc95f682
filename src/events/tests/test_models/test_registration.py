import re
import typing as t
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from accounts.models import SchoolUser
from events.models import Event, Registration, generate_qr_code, generate_ticket_number

pytestmark = pytest.mark.django_db


def _make(event: Event, user: SchoolUser, **kwargs: object) -> Registration:
    return Registration.objects.create(
        event=event, user=user, qr_code=generate_qr_code(), ticket_number=generate_ticket_number(), **kwargs
    )


def test_qr_code_is_128_bit_hex() -> None:
    code = generate_qr_code()
    assert re.fullmatch(r"[0-9a-f]{32}", code)
    assert code != generate_qr_code()


def test_ticket_number_format(settings: t.Any) -> None:
    settings.TIME_ZONE = "UTC"
    number = generate_ticket_number(datetime(2025, 3, 14, 9, 30, tzinfo=dt_timezone.utc))
    assert re.fullmatch(r"EVT-20250314-[A-Z0-9]{5}", number)


def test_only_one_active_registration_per_event_and_user(event: Event, student: SchoolUser) -> None:
    _make(event, student)
    with pytest.raises(ValidationError):
        _make(event, student)


def test_cancelled_registration_does_not_block_a_new_one(event: Event, student: SchoolUser) -> None:
    _make(event, student, status=Registration.Status.CANCELLED)
    _make(event, student)
    assert Registration.objects.filter(event=event, user=student).count() == 2
    assert Registration.objects.active().filter(event=event, user=student).count() == 1


def test_stats_for_event(event: Event, school_user_factory: t.Callable[..., SchoolUser]) -> None:
    for status in [
        Registration.Status.REGISTERED,
        Registration.Status.REGISTERED,
        Registration.Status.ATTENDED,
        Registration.Status.CANCELLED,
        Registration.Status.NO_SHOW,
    ]:
        _make(event, school_user_factory(), status=status)

    assert Registration.objects.stats_for_event(event) == {
        "total": 5,
        "registered": 2,
        "attended": 1,
        "cancelled": 1,
        "no_show": 1,
    }


def test_ticket_valid_until_event_end(event: Event, student: SchoolUser) -> None:
    registration = _make(event, student)
    assert registration.is_ticket_valid(event.end_date)
    assert not registration.is_ticket_valid(event.end_date + timedelta(seconds=1))


def test_cancelled_ticket_is_invalid(event: Event, student: SchoolUser) -> None:
    registration = _make(event, student, status=Registration.Status.CANCELLED, cancelled_at=timezone.now())
    assert not registration.is_ticket_valid(event.start_date)
    assert registration.is_terminal
