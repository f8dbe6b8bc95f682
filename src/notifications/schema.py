"""Schemas for notification API."""

from datetime import datetime
from uuid import UUID

from ninja import Schema

from notifications.enums import NotificationPriority, NotificationType


class NotificationSchema(Schema):
    id: UUID
    notification_type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    related_event_id: UUID | None = None
    related_registration_id: UUID | None = None
    action_url: str
    is_read: bool
    read_at: datetime | None
    expires_at: datetime | None
    created_at: datetime


class UnreadCountSchema(Schema):
    count: int
