"""Enums for the notification system."""

from django.db.models import TextChoices


class NotificationType(TextChoices):
    EVENT_REMINDER = "event_reminder", "Event Reminder"
    EVENT_UPDATE = "event_update", "Event Update"
    REGISTRATION_CONFIRMED = "registration_confirmed", "Registration Confirmed"
    EVENT_CANCELLED = "event_cancelled", "Event Cancelled"
    SYSTEM = "system", "System"
    ACHIEVEMENT = "achievement", "Achievement"


class NotificationPriority(TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"
