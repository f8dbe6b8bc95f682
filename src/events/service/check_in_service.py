"""Attendance check-in by ticket QR code or by registration lookup."""

from datetime import datetime
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import SchoolUser
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
from events.service.broadcaster import Broadcaster, Topic, get_broadcaster
from events.service.types import CheckInResult, CheckInTicket, CheckInUser

logger = structlog.get_logger(__name__)

PAYMENT_BLOCKING_STATUSES = (Registration.PaymentStatus.PENDING, Registration.PaymentStatus.FAILED)


class CheckInService:
    """Marks registrations as attended at the door."""

    def __init__(self, broadcaster: Broadcaster | None = None) -> None:
        self.broadcaster = broadcaster or get_broadcaster()

    def check_in(self, qr_code: str, requester: SchoolUser, now: datetime | None = None) -> CheckInResult:
        """Check in the holder of the ticket identified by ``qr_code``."""
        self._assert_staff(requester)
        registration = Registration.objects.filter(qr_code=qr_code).first()
        if registration is None:
            logger.info("check_in_invalid_code", checked_in_by=str(requester.pk))
            raise InvalidTicketCodeError()
        return self._check_in(registration.pk, requester, Registration.CheckInMethod.QR, now or timezone.now())

    def check_in_manual(
        self, registration_id: UUID, requester: SchoolUser, now: datetime | None = None
    ) -> CheckInResult:
        """Check in a registration looked up by the operator instead of scanned."""
        self._assert_staff(requester)
        if not Registration.objects.filter(pk=registration_id).exists():
            raise RegistrationNotFoundError(registration_id=str(registration_id))
        return self._check_in(registration_id, requester, Registration.CheckInMethod.MANUAL, now or timezone.now())

    def _assert_staff(self, requester: SchoolUser) -> None:
        if not requester.is_check_in_staff:
            raise ForbiddenError("Only staff can check in attendees.")

    def _check_in(
        self, registration_id: UUID, requester: SchoolUser, method: str, now: datetime
    ) -> CheckInResult:
        with transaction.atomic():
            registration = (
                Registration.objects.select_for_update()
                .select_related("event", "user")
                .filter(pk=registration_id)
                .first()
            )
            if registration is None:
                # Deleted between lookup and lock.
                if method == Registration.CheckInMethod.QR:
                    raise InvalidTicketCodeError()
                raise RegistrationNotFoundError(registration_id=str(registration_id))
            self._assert_can_check_in(registration, now)

            # Guarded on status so two concurrent scans cannot both count.
            updated = Registration.objects.filter(pk=registration.pk, status=Registration.Status.REGISTERED).update(
                status=Registration.Status.ATTENDED,
                attended_at=now,
                check_in_method=method,
                checked_in_by=requester,
                updated_at=now,
            )
            if not updated:
                registration.refresh_from_db(fields=["status", "attended_at"])
                self._assert_can_check_in(registration, now)
                raise InvalidTransitionError("The registration changed during check-in.", status=registration.status)

            Event.objects.filter(pk=registration.event_id).update(attended_count=F("attended_count") + 1)
            attended_count = Event.objects.values_list("attended_count", flat=True).get(pk=registration.event_id)

            registration.status = Registration.Status.ATTENDED
            registration.attended_at = now
            registration.check_in_method = method
            registration.checked_in_by = requester

        logger.info(
            "check_in_succeeded",
            registration_id=str(registration.pk),
            event_id=str(registration.event_id),
            method=method,
            checked_in_by=str(requester.pk),
            attended_count=attended_count,
        )
        transaction.on_commit(
            lambda: self.broadcaster.emit(
                Topic.ATTENDANCE_CHECKED_IN,
                {
                    "event_id": str(registration.event_id),
                    "attended_count": attended_count,
                    "registration_id": str(registration.pk),
                },
            )
        )
        return self._result(registration, attended_count)

    def _assert_can_check_in(self, registration: Registration, now: datetime) -> None:
        """Validation order: expiry first, then registration status, then payment."""
        event = registration.event
        if now > event.end_date:
            raise TicketExpiredError(event.end_date)
        if registration.status == Registration.Status.ATTENDED:
            raise AlreadyCheckedInError(registration.attended_at)
        if registration.status == Registration.Status.CANCELLED:
            raise RegistrationCancelledError(registration_id=str(registration.pk))
        if registration.status != Registration.Status.REGISTERED:
            raise InvalidTransitionError(
                f"A registration that is {registration.status} cannot be checked in.", status=registration.status
            )
        if registration.payment_status in PAYMENT_BLOCKING_STATUSES:
            raise PaymentRequiredError(registration.payment_amount, registration.payment_status)

    def _result(self, registration: Registration, attended_count: int) -> CheckInResult:
        user = registration.user
        assert registration.attended_at is not None
        return CheckInResult(
            user=CheckInUser(
                id=user.pk,
                name=user.display_name,
                email=user.email,
                student_id=user.student_id,
                grade=user.grade,
                house=user.house,
            ),
            ticket=CheckInTicket(
                registration_id=registration.pk,
                ticket_number=registration.ticket_number,
                event_id=registration.event_id,
                event_title=registration.event.title,
                status=registration.status,
                attended_at=registration.attended_at,
                check_in_method=registration.check_in_method,
                payment_status=registration.payment_status,
                payment_amount=registration.payment_amount,
            ),
            attended_count=attended_count,
        )
