"""In-app notification persistence and inbox operations."""

import typing as t
from datetime import timedelta
from uuid import UUID

import structlog
from django.conf import settings
from django.utils import timezone

from notifications.enums import NotificationPriority, NotificationType
from notifications.models import Notification

logger = structlog.get_logger(__name__)

DEFAULT_PRIORITIES: dict[str, NotificationPriority] = {
    NotificationType.EVENT_REMINDER: NotificationPriority.HIGH,
    NotificationType.EVENT_CANCELLED: NotificationPriority.URGENT,
    NotificationType.REGISTRATION_CONFIRMED: NotificationPriority.MEDIUM,
    NotificationType.EVENT_UPDATE: NotificationPriority.MEDIUM,
}


def create_notification(
    *,
    user_id: UUID | str,
    notification_type: NotificationType | str,
    title: str,
    message: str,
    related_event_id: UUID | str | None = None,
    related_registration_id: UUID | str | None = None,
    priority: NotificationPriority | str | None = None,
    action_url: str = "",
    expires_in: timedelta | None = None,
) -> Notification:
    """Create a notification record.

    Event related notifications link back to the event page and expire after the
    retention period unless ``expires_in`` says otherwise.
    """
    notification_type = NotificationType(notification_type)
    if not action_url and related_event_id:
        action_url = f"{settings.FRONTEND_BASE_URL}/events/{related_event_id}"
    if expires_in is None:
        expires_in = timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)

    notification = Notification.objects.create(
        recipient_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        related_event_id=related_event_id,
        related_registration_id=related_registration_id,
        priority=priority or DEFAULT_PRIORITIES.get(notification_type, NotificationPriority.MEDIUM),
        action_url=action_url,
        expires_at=timezone.now() + expires_in,
    )

    logger.info(
        "notification_created",
        notification_id=str(notification.pk),
        notification_type=notification_type,
        user_id=str(user_id),
    )
    return notification


def unread_count(user: t.Any) -> int:
    return Notification.objects.for_user(user).unread().count()


def mark_all_read(user: t.Any) -> int:
    """Mark every unread notification of ``user`` as read. Returns the number updated."""
    now = timezone.now()
    return Notification.objects.filter(recipient=user, is_read=False).update(is_read=True, read_at=now, updated_at=now)
