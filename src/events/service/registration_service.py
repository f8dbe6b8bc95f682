"""Registration lifecycle: register, cancel and (simulated) payment."""

import secrets
import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from django.core.exceptions import NON_FIELD_ERRORS
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import SchoolUser
from events.exceptions import (
    AlreadyCancelledError,
    AlreadyRegisteredError,
    CapacityExceededError,
    EventNotFoundError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    PaymentDeclinedError,
    RegistrationCancelledError,
    RegistrationClosedError,
    RegistrationNotFoundError,
    TicketIdentityUnavailableError,
)
from events.models import Event, Registration, generate_qr_code, generate_ticket_number
from events.service.broadcaster import Broadcaster, Topic, get_broadcaster
from events.service.types import PaymentDetails
from notifications.enums import NotificationType
from notifications.service.dispatcher import NotificationDispatcher

logger = structlog.get_logger(__name__)

MAX_IDENTITY_ATTEMPTS = 5
_IDENTITY_FIELDS = {"qr_code", "ticket_number", NON_FIELD_ERRORS}


def _is_identity_conflict(exc: DjangoValidationError) -> bool:
    """Whether a model validation error only concerns uniqueness of the ticket or registration."""
    error_dict = getattr(exc, "error_dict", None)
    return bool(error_dict) and set(error_dict) <= _IDENTITY_FIELDS


def _transaction_id() -> str:
    return f"TXN-{secrets.token_hex(8).upper()}"


def completed_payment_fields(payment: PaymentDetails, amount: Decimal, now: datetime) -> dict[str, t.Any]:
    """Field values for a registration whose payment was accepted."""
    return {
        "payment_status": Registration.PaymentStatus.COMPLETED,
        "payment_amount": amount,
        "payment_method": payment.method,
        "card_last4": (payment.card_last4 or "") if payment.method == "card" else "",
        "transaction_id": payment.transaction_id or _transaction_id(),
        "payment_date": now,
    }


def initial_payment_fields(event: Event, payment: PaymentDetails | None, now: datetime) -> dict[str, t.Any]:
    """Payment state of a brand new registration.

    Free events need no payment. Paid events start ``pending`` unless acceptable details were
    supplied, in which case the payment completes immediately. Declined details leave it ``failed``.
    """
    if event.is_free:
        return {
            "payment_status": Registration.PaymentStatus.NOT_REQUIRED,
            "payment_amount": Decimal("0.00"),
            "payment_method": Registration.PaymentMethod.FREE,
        }
    if payment is None:
        return {"payment_status": Registration.PaymentStatus.PENDING, "payment_amount": event.price}
    if payment.is_acceptable:
        return completed_payment_fields(payment, event.price, now)
    return {
        "payment_status": Registration.PaymentStatus.FAILED,
        "payment_amount": event.price,
        "payment_method": payment.method,
    }


class RegistrationService:
    """Registers users for events and manages the life of their registrations.

    Capacity is enforced with a conditional increment on the event row, in the same
    transaction as the registration insert: either both happen or neither does.
    Notifications and broadcasts are sent only after the transaction commits.
    """

    def __init__(
        self,
        broadcaster: Broadcaster | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.broadcaster = broadcaster or get_broadcaster()
        self.dispatcher = dispatcher or NotificationDispatcher()

    def register(
        self,
        event_id: UUID,
        user: SchoolUser,
        payment: PaymentDetails | None = None,
        notes: str = "",
        now: datetime | None = None,
    ) -> Registration:
        """Register ``user`` for an event.

        Raises:
            EventNotFoundError: the event does not exist.
            RegistrationClosedError: registration is not open (CapacityExceededError when full).
            AlreadyRegisteredError: the user already holds an active registration.
        """
        now = now or timezone.now()
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise EventNotFoundError(event_id=str(event_id))

        self._assert_registration_open(event, now)

        if Registration.objects.active().filter(event=event, user=user).exists():
            raise AlreadyRegisteredError(event_id=str(event.pk))

        registration, registered_count = self._claim_seat_and_create(event, user, payment, notes, now)

        logger.info(
            "registration_created",
            registration_id=str(registration.pk),
            event_id=str(event.pk),
            user_id=str(user.pk),
            payment_status=registration.payment_status,
            registered_count=registered_count,
        )
        transaction.on_commit(lambda: self._after_register(registration, registered_count))
        return registration

    def cancel(
        self,
        registration_id: UUID,
        requester: SchoolUser,
        reason: str = "",
        now: datetime | None = None,
    ) -> Registration:
        """Cancel a registration on behalf of its owner or an administrator.

        A completed payment is marked refunded and the seat goes back to the event.
        """
        now = now or timezone.now()
        with transaction.atomic():
            registration = self._lock(registration_id)
            self._assert_owner_or_admin(registration, requester)

            if registration.status == Registration.Status.CANCELLED:
                raise AlreadyCancelledError(registration_id=str(registration.pk))
            if registration.status != Registration.Status.REGISTERED:
                raise InvalidTransitionError(
                    f"A registration that is {registration.status} cannot be cancelled.",
                    status=registration.status,
                )

            registration.status = Registration.Status.CANCELLED
            registration.cancelled_at = now
            registration.cancellation_reason = reason
            update_fields = ["status", "cancelled_at", "cancellation_reason", "updated_at"]
            if registration.payment_status == Registration.PaymentStatus.COMPLETED:
                registration.payment_status = Registration.PaymentStatus.REFUNDED
                update_fields.append("payment_status")
            registration.save(update_fields=update_fields)

            Event.objects.filter(pk=registration.event_id, registered_count__gt=0).update(
                registered_count=F("registered_count") - 1
            )
            registered_count = Event.objects.values_list("registered_count", flat=True).get(
                pk=registration.event_id
            )

        logger.info(
            "registration_cancelled",
            registration_id=str(registration.pk),
            event_id=str(registration.event_id),
            cancelled_by=str(requester.pk),
            payment_status=registration.payment_status,
            registered_count=registered_count,
        )
        transaction.on_commit(lambda: self._after_cancel(registration, registered_count))
        return registration

    def complete_payment(
        self,
        registration_id: UUID,
        requester: SchoolUser,
        payment: PaymentDetails,
        now: datetime | None = None,
    ) -> Registration:
        """Pay for a pending (or previously failed) registration.

        Declined details are persisted as ``failed`` before PaymentDeclinedError is raised.
        ``failed`` is not terminal here: the holder may retry with other details, and the
        only way out of it is ``completed``. Payment status never moves back to ``pending``
        and ``completed``/``refunded`` never change through this call.
        """
        now = now or timezone.now()
        with transaction.atomic():
            registration = self._lock(registration_id)
            self._assert_owner_or_admin(registration, requester)

            if registration.status == Registration.Status.CANCELLED:
                raise RegistrationCancelledError(registration_id=str(registration.pk))
            if registration.status == Registration.Status.NO_SHOW:
                raise InvalidTransitionError("Cannot pay for a missed event.", status=registration.status)
            if registration.payment_status == Registration.PaymentStatus.NOT_REQUIRED:
                raise InvalidStateError("This registration does not require payment.")
            if registration.payment_status in (
                Registration.PaymentStatus.COMPLETED,
                Registration.PaymentStatus.REFUNDED,
            ):
                raise InvalidStateError("This registration has already been paid.")

            accepted = payment.is_acceptable
            if accepted:
                fields = completed_payment_fields(payment, registration.event.price, now)
            else:
                fields = {"payment_status": Registration.PaymentStatus.FAILED, "payment_method": payment.method}
            for key, value in fields.items():
                setattr(registration, key, value)
            registration.save(update_fields=[*fields, "updated_at"])

        if not accepted:
            logger.info("payment_declined", registration_id=str(registration.pk), method=payment.method)
            raise PaymentDeclinedError(registration_id=str(registration.pk))

        logger.info(
            "payment_completed",
            registration_id=str(registration.pk),
            amount=str(registration.payment_amount),
            method=registration.payment_method,
        )
        return registration

    # ---- internals ----

    def _assert_registration_open(self, event: Event, now: datetime) -> None:
        if event.is_registration_open(now):
            return
        if event.is_full and event.requires_registration and event.status != Event.Status.CANCELLED:
            raise CapacityExceededError(event_id=str(event.pk), capacity=event.capacity)
        raise RegistrationClosedError(event_id=str(event.pk))

    @transaction.atomic
    def _claim_seat_and_create(
        self,
        event: Event,
        user: SchoolUser,
        payment: PaymentDetails | None,
        notes: str,
        now: datetime,
    ) -> tuple[Registration, int]:
        claimed = (
            Event.objects.filter(pk=event.pk, registered_count__lt=F("capacity"))
            .exclude(status=Event.Status.CANCELLED)
            .update(registered_count=F("registered_count") + 1, updated_at=now)
        )
        if not claimed:
            event.refresh_from_db(fields=["registered_count", "capacity", "status"])
            if event.status == Event.Status.CANCELLED:
                raise RegistrationClosedError(event_id=str(event.pk))
            raise CapacityExceededError(event_id=str(event.pk), capacity=event.capacity)

        payment_fields = initial_payment_fields(event, payment, now)
        for attempt in range(1, MAX_IDENTITY_ATTEMPTS + 1):
            registration = Registration(
                event=event,
                user=user,
                qr_code=generate_qr_code(),
                ticket_number=generate_ticket_number(now),
                registered_at=now,
                notes=notes,
                **payment_fields,
            )
            try:
                with transaction.atomic():
                    registration.save()
            except (IntegrityError, DjangoValidationError) as exc:
                if isinstance(exc, DjangoValidationError) and not _is_identity_conflict(exc):
                    raise
                if Registration.objects.active().filter(event=event, user=user).exists():
                    raise AlreadyRegisteredError(event_id=str(event.pk)) from exc
                logger.warning("ticket_identity_collision", event_id=str(event.pk), attempt=attempt)
                continue
            registered_count = Event.objects.values_list("registered_count", flat=True).get(pk=event.pk)
            event.registered_count = registered_count
            return registration, registered_count

        raise TicketIdentityUnavailableError(event_id=str(event.pk))

    def _lock(self, registration_id: UUID) -> Registration:
        registration = Registration.objects.select_for_update().filter(pk=registration_id).first()
        if registration is None:
            raise RegistrationNotFoundError(registration_id=str(registration_id))
        return registration

    def _assert_owner_or_admin(self, registration: Registration, requester: SchoolUser) -> None:
        if registration.user_id != requester.pk and not requester.is_administrator:
            raise ForbiddenError("You can only manage your own registrations.")

    def _after_register(self, registration: Registration, registered_count: int) -> None:
        event = registration.event
        self.broadcaster.emit(
            Topic.REGISTRATION_NEW, {"event_id": str(event.pk), "registered_count": registered_count}
        )
        self.dispatcher.send_registration_confirmation(registration)
        self.dispatcher.create_notification(
            user_id=registration.user_id,
            notification_type=NotificationType.REGISTRATION_CONFIRMED,
            title="Registration confirmed",
            message=f"You are registered for {event.title}. Your ticket number is {registration.ticket_number}.",
            related_event_id=event.pk,
            related_registration_id=registration.pk,
        )

    def _after_cancel(self, registration: Registration, registered_count: int) -> None:
        event = registration.event
        self.broadcaster.emit(
            Topic.REGISTRATION_CANCELLED, {"event_id": str(event.pk), "registered_count": registered_count}
        )
        self.dispatcher.send_cancellation_confirmation(registration)
        self.dispatcher.create_notification(
            user_id=registration.user_id,
            notification_type=NotificationType.EVENT_UPDATE,
            title="Registration cancelled",
            message=f"Your registration for {event.title} has been cancelled.",
            related_event_id=event.pk,
            related_registration_id=registration.pk,
        )
