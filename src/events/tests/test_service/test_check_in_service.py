"""Tests for QR and manual check-in."""

import typing as t
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts.models import SchoolUser
from conftest import RecordingBroadcaster
from events.exceptions import (
    AlreadyCheckedInError,
    ForbiddenError,
    InvalidTicketCodeError,
    InvalidTransitionError,
    PaymentRequiredError,
    RegistrationCancelledError,
    RegistrationNotFoundError,
    TicketExpiredError,
)
from events.models import Event, Registration
from events.service.broadcaster import Topic
from events.service.check_in_service import CheckInService
from events.service.registration_service import RegistrationService
from events.service.types import PaymentDetails

pytestmark = pytest.mark.django_db


class TestCheckIn:
    def test_successful_scan(
        self,
        check_in_service: CheckInService,
        broadcaster: RecordingBroadcaster,
        ongoing_registration: Registration,
        teacher: SchoolUser,
        student: SchoolUser,
        django_capture_on_commit_callbacks: t.Any,
    ) -> None:
        now = timezone.now()
        with django_capture_on_commit_callbacks(execute=True):
            result = check_in_service.check_in(ongoing_registration.qr_code, teacher, now=now)

        assert result.attended_count == 1
        assert result.user.id == student.pk
        assert result.user.student_id == "123456"
        assert result.user.house == SchoolUser.House.REED
        assert result.ticket.ticket_number == ongoing_registration.ticket_number
        assert result.ticket.status == Registration.Status.ATTENDED
        assert result.ticket.attended_at == now
        assert result.ticket.check_in_method == Registration.CheckInMethod.QR

        ongoing_registration.refresh_from_db()
        assert ongoing_registration.status == Registration.Status.ATTENDED
        assert ongoing_registration.attended_at == now
        assert ongoing_registration.checked_in_by == teacher
        assert ongoing_registration.event.attended_count == 1
        assert broadcaster.messages == [
            (
                Topic.ATTENDANCE_CHECKED_IN,
                {
                    "event_id": str(ongoing_registration.event_id),
                    "attended_count": 1,
                    "registration_id": str(ongoing_registration.pk),
                },
            )
        ]

    def test_second_scan_reports_original_time(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        first_scan = timezone.now()
        check_in_service.check_in(ongoing_registration.qr_code, teacher, now=first_scan)

        with pytest.raises(AlreadyCheckedInError) as exc_info:
            check_in_service.check_in(ongoing_registration.qr_code, teacher, now=first_scan + timedelta(minutes=3))

        assert exc_info.value.attended_at == first_scan
        assert exc_info.value.payload == {"attended_at": first_scan.isoformat()}
        ongoing_registration.event.refresh_from_db()
        assert ongoing_registration.event.attended_count == 1

    def test_unknown_code(self, check_in_service: CheckInService, teacher: SchoolUser) -> None:
        with pytest.raises(InvalidTicketCodeError):
            check_in_service.check_in("0" * 32, teacher)

    def test_students_cannot_check_in(
        self, check_in_service: CheckInService, ongoing_registration: Registration, student: SchoolUser
    ) -> None:
        with pytest.raises(ForbiddenError):
            check_in_service.check_in(ongoing_registration.qr_code, student)

    @pytest.mark.parametrize("staff", ["school_admin", "superuser", "teacher"])
    def test_staff_can_check_in(
        self,
        check_in_service: CheckInService,
        ongoing_registration: Registration,
        staff: str,
        request: pytest.FixtureRequest,
    ) -> None:
        result = check_in_service.check_in(ongoing_registration.qr_code, request.getfixturevalue(staff))
        assert result.ticket.status == Registration.Status.ATTENDED

    def test_expired_ticket(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        after_end = ongoing_registration.event.end_date + timedelta(seconds=1)

        with pytest.raises(TicketExpiredError):
            check_in_service.check_in(ongoing_registration.qr_code, teacher, now=after_end)

    def test_expiry_is_checked_before_attendance(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        check_in_service.check_in(ongoing_registration.qr_code, teacher)
        after_end = ongoing_registration.event.end_date + timedelta(minutes=1)

        with pytest.raises(TicketExpiredError):
            check_in_service.check_in(ongoing_registration.qr_code, teacher, now=after_end)

    def test_cancelled_registration(
        self,
        check_in_service: CheckInService,
        registration_service: RegistrationService,
        ongoing_registration: Registration,
        teacher: SchoolUser,
        student: SchoolUser,
    ) -> None:
        registration_service.cancel(ongoing_registration.pk, student)

        with pytest.raises(RegistrationCancelledError):
            check_in_service.check_in(ongoing_registration.qr_code, teacher)

    def test_no_show_cannot_be_checked_in(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        Registration.objects.filter(pk=ongoing_registration.pk).update(status=Registration.Status.NO_SHOW)

        with pytest.raises(InvalidTransitionError):
            check_in_service.check_in(ongoing_registration.qr_code, teacher)

    @pytest.mark.parametrize("payment", [None, PaymentDetails(method="card")])
    def test_unpaid_ticket(
        self,
        check_in_service: CheckInService,
        registration_service: RegistrationService,
        event_factory: t.Callable[..., Event],
        student: SchoolUser,
        teacher: SchoolUser,
        payment: PaymentDetails | None,
    ) -> None:
        now = timezone.now()
        event = event_factory(
            start_date=now - timedelta(minutes=30), end_date=now + timedelta(hours=2), price=Decimal("5.00")
        )
        registration = registration_service.register(event.pk, student, payment=payment)

        with pytest.raises(PaymentRequiredError) as exc_info:
            check_in_service.check_in(registration.qr_code, teacher)

        assert exc_info.value.payload["payment_amount"] == "5.00"
        assert exc_info.value.payload["payment_status"] == registration.payment_status
        registration.refresh_from_db()
        assert registration.status == Registration.Status.REGISTERED

    def test_paid_ticket(
        self,
        check_in_service: CheckInService,
        registration_service: RegistrationService,
        event_factory: t.Callable[..., Event],
        student: SchoolUser,
        teacher: SchoolUser,
    ) -> None:
        now = timezone.now()
        event = event_factory(start_date=now, end_date=now + timedelta(hours=2), price=Decimal("5.00"))
        registration = registration_service.register(event.pk, student, payment=PaymentDetails(method="cash"))

        result = check_in_service.check_in(registration.qr_code, teacher)

        assert result.ticket.payment_status == Registration.PaymentStatus.COMPLETED


class TestManualCheckIn:
    def test_by_registration(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        result = check_in_service.check_in_manual(ongoing_registration.pk, teacher)

        assert result.ticket.check_in_method == Registration.CheckInMethod.MANUAL
        assert result.attended_count == 1

    def test_unknown_registration(self, check_in_service: CheckInService, teacher: SchoolUser) -> None:
        with pytest.raises(RegistrationNotFoundError):
            check_in_service.check_in_manual(uuid.uuid4(), teacher)

    def test_same_rules_as_scanning(
        self, check_in_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        check_in_service.check_in(ongoing_registration.qr_code, teacher)

        with pytest.raises(AlreadyCheckedInError):
            check_in_service.check_in_manual(ongoing_registration.pk, teacher)


class TestDeletedDuringCheckIn:
    @pytest.fixture
    def deleting_service(self, check_in_service: CheckInService, ongoing_registration: Registration) -> CheckInService:
        """Deletes the registration after it was looked up and before it is locked."""
        original = check_in_service._check_in

        def delete_then_check_in(*args: t.Any) -> t.Any:
            Registration.objects.filter(pk=ongoing_registration.pk).delete()
            return original(*args)

        check_in_service._check_in = delete_then_check_in  # type: ignore[method-assign]
        return check_in_service

    def test_scan(
        self, deleting_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        with pytest.raises(InvalidTicketCodeError):
            deleting_service.check_in(ongoing_registration.qr_code, teacher)

    def test_manual(
        self, deleting_service: CheckInService, ongoing_registration: Registration, teacher: SchoolUser
    ) -> None:
        with pytest.raises(RegistrationNotFoundError):
            deleting_service.check_in_manual(ongoing_registration.pk, teacher)

        assert Event.objects.get(pk=ongoing_registration.event_id).attended_count == 0
