"""Event management for organizers: create, edit, cancel and delete."""

import typing as t
from datetime import datetime
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from accounts.models import SchoolUser
from events.exceptions import (
    CapacityBelowRegisteredError,
    EventAlreadyCancelledError,
    EventNotFoundError,
    ForbiddenError,
    InvalidStateError,
)
from events.models import Event, Registration
from events.service.broadcaster import Broadcaster, Topic, get_broadcaster
from notifications.enums import NotificationPriority, NotificationType
from notifications.service.dispatcher import NotificationDispatcher

logger = structlog.get_logger(__name__)

# Moved only by the registration and check-in services, or derived on save.
PROTECTED_FIELDS = frozenset({"id", "organizer", "registered_count", "attended_count", "status"})


def _event_payload(event: Event) -> dict[str, t.Any]:
    return {
        "event_id": str(event.pk),
        "title": event.title,
        "status": event.status,
        "start_date": event.start_date.isoformat(),
        "end_date": event.end_date.isoformat(),
        "capacity": event.capacity,
        "registered_count": event.registered_count,
    }


class EventService:
    """Lets teachers and administrators manage events.

    Only the organizer of an event or an administrator may change it.
    """

    def __init__(
        self,
        broadcaster: Broadcaster | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self.broadcaster = broadcaster or get_broadcaster()
        self.dispatcher = dispatcher or NotificationDispatcher()

    def create_event(self, organizer: SchoolUser, **data: t.Any) -> Event:
        if not organizer.can_organize_events:
            raise ForbiddenError("Only teachers and administrators can create events.")
        event = Event.objects.create(organizer=organizer, **self._editable(data))
        logger.info("event_created", event_id=str(event.pk), organizer_id=str(organizer.pk))
        transaction.on_commit(lambda: self.broadcaster.emit(Topic.EVENT_CREATED, _event_payload(event)))
        return event

    def update_event(self, event_id: UUID, requester: SchoolUser, **data: t.Any) -> Event:
        """Apply ``data`` to the event.

        The row is locked, so the capacity check cannot race a registration.
        """
        data = self._editable(data)
        with transaction.atomic():
            event = self._lock(event_id)
            self._assert_can_manage(event, requester)
            if event.status == Event.Status.CANCELLED:
                raise InvalidStateError("A cancelled event cannot be edited.", event_id=str(event.pk))
            capacity = data.get("capacity")
            if capacity is not None and capacity < event.registered_count:
                raise CapacityBelowRegisteredError(
                    event_id=str(event.pk), capacity=capacity, registered_count=event.registered_count
                )
            for key, value in data.items():
                setattr(event, key, value)
            event.save(update_fields=[*data, "updated_at"])

        logger.info("event_updated", event_id=str(event.pk), updated_by=str(requester.pk), fields=sorted(data))
        transaction.on_commit(lambda: self.broadcaster.emit(Topic.EVENT_UPDATED, _event_payload(event)))
        return event

    def cancel_event(
        self, event_id: UUID, requester: SchoolUser, reason: str = "", now: datetime | None = None
    ) -> Event:
        """Cancel an event and tell everyone holding an active registration.

        Cancelled is final. Registrations are left as they are; the event no longer
        accepts registrations and the sweeps skip it.
        """
        now = now or timezone.now()
        with transaction.atomic():
            event = self._lock(event_id)
            self._assert_can_manage(event, requester)
            if event.status == Event.Status.CANCELLED:
                raise EventAlreadyCancelledError(event_id=str(event.pk))
            if event.status == Event.Status.COMPLETED:
                raise InvalidStateError("A completed event cannot be cancelled.", event_id=str(event.pk))
            event.status = Event.Status.CANCELLED
            event.save(update_fields=["status", "updated_at"])
            recipients = list(
                Registration.objects.filter(event=event, status=Registration.Status.REGISTERED).values_list(
                    "pk", "user_id"
                )
            )

        logger.info(
            "event_cancelled",
            event_id=str(event.pk),
            cancelled_by=str(requester.pk),
            registrations=len(recipients),
        )
        transaction.on_commit(lambda: self._after_cancel(event, recipients, reason))
        return event

    def delete_event(self, event_id: UUID, requester: SchoolUser) -> None:
        """Delete an event together with its registrations."""
        with transaction.atomic():
            event = self._lock(event_id)
            self._assert_can_manage(event, requester)
            event.delete()

        logger.info("event_deleted", event_id=str(event_id), deleted_by=str(requester.pk))
        transaction.on_commit(lambda: self.broadcaster.emit(Topic.EVENT_DELETED, {"event_id": str(event_id)}))

    def _editable(self, data: dict[str, t.Any]) -> dict[str, t.Any]:
        return {key: value for key, value in data.items() if key not in PROTECTED_FIELDS}

    def _lock(self, event_id: UUID) -> Event:
        event = Event.objects.select_for_update().filter(pk=event_id).first()
        if event is None:
            raise EventNotFoundError(event_id=str(event_id))
        return event

    def _assert_can_manage(self, event: Event, requester: SchoolUser) -> None:
        if event.organizer_id != requester.pk and not requester.is_administrator:
            raise ForbiddenError("Only the organizer can manage this event.")

    def _after_cancel(self, event: Event, recipients: list[tuple[UUID, UUID]], reason: str) -> None:
        self.broadcaster.emit(Topic.EVENT_STATUS, {"event_id": str(event.pk), "status": event.status})
        message = f"{event.title} has been cancelled."
        if reason:
            message = f"{message} {reason}"
        for registration_id, user_id in recipients:
            self.dispatcher.create_notification(
                user_id=user_id,
                notification_type=NotificationType.EVENT_CANCELLED,
                title="Event cancelled",
                message=message,
                related_event_id=event.pk,
                related_registration_id=registration_id,
                priority=NotificationPriority.HIGH,
            )
