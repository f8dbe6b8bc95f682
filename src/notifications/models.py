"""Models for the in-app notification system."""

import typing as t

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.models import TimeStampedModel
from notifications.enums import NotificationPriority, NotificationType


class NotificationQuerySet(models.QuerySet["Notification"]):
    def unexpired(self) -> t.Self:
        return self.filter(Q(expires_at__isnull=True) | Q(expires_at__gt=timezone.now()))

    def unread(self) -> t.Self:
        return self.filter(is_read=False)

    def for_user(self, user: t.Any) -> t.Self:
        return self.filter(recipient=user).unexpired()


class Notification(TimeStampedModel):
    """An in-app notification shown in the recipient's inbox."""

    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    notification_type = models.CharField(max_length=32, choices=NotificationType.choices, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    related_event = models.ForeignKey(
        "events.Event", on_delete=models.CASCADE, null=True, blank=True, related_name="notifications"
    )
    related_registration = models.ForeignKey(
        "events.Registration", on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications"
    )
    priority = models.CharField(
        max_length=8, choices=NotificationPriority.choices, default=NotificationPriority.MEDIUM
    )
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    action_url = models.CharField(max_length=500, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "created_at"], name="idx_notification_recipient"),
            models.Index(fields=["recipient", "is_read"], name="idx_notification_unread"),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} for user {self.recipient_id}"

    def mark_read(self) -> None:
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=["is_read", "read_at", "updated_at"])
