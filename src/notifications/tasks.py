"""Celery tasks for notification delivery and maintenance."""

import typing as t
from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from common.tasks import send_email
from events.models import Registration
from events.utils import qr_code_data_url
from notifications.models import Notification
from notifications.service import notification_service

logger = structlog.get_logger(__name__)


def _load_registration(registration_id: str) -> Registration:
    return Registration.objects.select_related("event", "user").get(pk=registration_id)


def _email_context(registration: Registration) -> dict[str, t.Any]:
    event = registration.event
    return {
        "site_name": settings.SITE_NAME,
        "user": registration.user,
        "event": event,
        "registration": registration,
        "start": timezone.localtime(event.start_date),
        "end": timezone.localtime(event.end_date),
        "event_url": f"{settings.FRONTEND_BASE_URL}/events/{event.pk}",
        "ticket_url": f"{settings.FRONTEND_BASE_URL}/registrations/{registration.pk}",
        "currency": settings.DEFAULT_CURRENCY,
    }


def _send_templated_email(registration: Registration, template: str, subject: str, context: dict[str, t.Any]) -> bool:
    """Render ``notifications/emails/<template>.{txt,html}`` and send it to the registrant."""
    user = registration.user
    if not user.email or not user.email_notifications:
        logger.info("email_skipped", template=template, user_id=str(user.pk), registration_id=str(registration.pk))
        return False
    send_email(
        to=user.email,
        subject=subject,
        body=render_to_string(f"notifications/emails/{template}.txt", context),
        html_body=render_to_string(f"notifications/emails/{template}.html", context),
    )
    return True


@shared_task(name="notifications.send_registration_confirmation_email")
def send_registration_confirmation_email(registration_id: str) -> bool:
    """Email the ticket, with its QR code, to a new registrant."""
    registration = _load_registration(registration_id)
    context = _email_context(registration) | {"qr_code_data_url": qr_code_data_url(registration.qr_code)}
    return _send_templated_email(
        registration,
        "registration_confirmation",
        f"Registration confirmed: {registration.event.title}",
        context,
    )


@shared_task(name="notifications.send_reminder_email")
def send_reminder_email(registration_id: str) -> bool:
    """Remind a registrant that their event starts tomorrow."""
    registration = _load_registration(registration_id)
    return _send_templated_email(
        registration,
        "event_reminder",
        f"Reminder: {registration.event.title} is tomorrow",
        _email_context(registration),
    )


@shared_task(name="notifications.send_cancellation_email")
def send_cancellation_email(registration_id: str) -> bool:
    """Confirm a cancellation to the registrant, mentioning the refund when one is due."""
    registration = _load_registration(registration_id)
    context = _email_context(registration) | {
        "refunded": registration.payment_status == Registration.PaymentStatus.REFUNDED
    }
    return _send_templated_email(
        registration,
        "registration_cancelled",
        f"Registration cancelled: {registration.event.title}",
        context,
    )


@shared_task(name="notifications.create_notification")
def create_notification(
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    related_event_id: str | None = None,
    related_registration_id: str | None = None,
    priority: str | None = None,
    action_url: str = "",
) -> str:
    """Persist an in-app notification."""
    notification = notification_service.create_notification(
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        related_event_id=related_event_id,
        related_registration_id=related_registration_id,
        priority=priority,
        action_url=action_url,
    )
    return str(notification.pk)


@shared_task(name="notifications.cleanup_expired_notifications")
def cleanup_expired_notifications() -> dict[str, t.Any]:
    """Delete expired notifications and read ones past the retention period.

    Runs daily via Celery beat.
    """
    now = timezone.now()
    expired_count, _ = Notification.objects.filter(expires_at__lte=now).delete()

    retention_days = settings.NOTIFICATION_RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)
    stale_count, _ = Notification.objects.filter(is_read=True, created_at__lt=cutoff).delete()

    logger.info(
        "notifications_cleaned_up",
        expired_count=expired_count,
        stale_count=stale_count,
        retention_days=retention_days,
    )
    return {"expired_count": expired_count, "stale_count": stale_count}
