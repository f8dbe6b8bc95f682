"""Fire-and-forget dispatch of emails and in-app notifications.

Every method enqueues a Celery task and reports whether the broker accepted it.
Failures are logged and swallowed: callers never fail because a notification could not be queued.
"""

import typing as t
from uuid import UUID

import structlog
from celery import Task

from events.models import Registration
from notifications import tasks
from notifications.enums import NotificationPriority, NotificationType

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def send_registration_confirmation(self, registration: Registration) -> bool:
        """Queue the confirmation email carrying the ticket number and QR code."""
        return self._enqueue(
            tasks.send_registration_confirmation_email, str(registration.pk), registration_id=str(registration.pk)
        )

    def send_reminder(self, registration: Registration) -> bool:
        """Queue the day-before reminder email."""
        return self._enqueue(tasks.send_reminder_email, str(registration.pk), registration_id=str(registration.pk))

    def send_cancellation_confirmation(self, registration: Registration) -> bool:
        """Queue the cancellation email."""
        return self._enqueue(
            tasks.send_cancellation_email, str(registration.pk), registration_id=str(registration.pk)
        )

    def create_notification(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_event_id: UUID | None = None,
        related_registration_id: UUID | None = None,
        priority: NotificationPriority | None = None,
    ) -> bool:
        """Queue creation of an in-app notification."""
        return self._enqueue(
            tasks.create_notification,
            str(user_id),
            str(notification_type),
            title,
            message,
            str(related_event_id) if related_event_id else None,
            str(related_registration_id) if related_registration_id else None,
            str(priority) if priority else None,
            notification_type=str(notification_type),
            user_id=str(user_id),
        )

    def _enqueue(self, task: Task, *args: t.Any, **log_context: t.Any) -> bool:
        try:
            task.delay(*args)
        except Exception:
            logger.exception("notification_enqueue_failed", task=task.name, **log_context)
            return False
        logger.debug("notification_enqueued", task=task.name, **log_context)
        return True
