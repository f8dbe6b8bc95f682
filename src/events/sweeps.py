"""Scheduled reconciliation sweeps.

Each sweep is a plain function of ``now`` so it can be run by Celery beat, by hand, or from tests.
Sweeps are isolated per entity: a failure is logged and the sweep moves on. All of them are
safe to re-run.
"""

from datetime import datetime, time, timedelta

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from events.exceptions import DispatchFailedError
from events.models import Event, Registration, SweepCheckpoint, derive_status
from events.service.broadcaster import Broadcaster, Topic, get_broadcaster
from events.service.types import SweepResult
from notifications.enums import NotificationType
from notifications.service.dispatcher import NotificationDispatcher

logger = structlog.get_logger(__name__)

STATUS_SWEEP = "event_status"
REMINDER_SWEEP = "reminders"
NO_SHOW_SWEEP = "no_shows"


def sweep_event_statuses(now: datetime | None = None, broadcaster: Broadcaster | None = None) -> SweepResult:
    """Re-derive the status of every non-cancelled event and persist the ones that changed.

    The write is conditional on the status read, so an event cancelled meanwhile is left alone.
    """
    now = now or timezone.now()
    broadcaster = broadcaster or get_broadcaster()
    result = SweepResult(name=STATUS_SWEEP)

    for event in Event.objects.not_cancelled().only("id", "start_date", "end_date", "status").iterator():
        result.processed += 1
        try:
            new_status = derive_status(now, event)
            if new_status == event.status:
                continue
            updated = Event.objects.filter(pk=event.pk, status=event.status).update(status=new_status, updated_at=now)
            if not updated:
                continue
            result.changed += 1
            logger.info("event_status_changed", event_id=str(event.pk), old_status=event.status, new_status=new_status)
            broadcaster.emit(Topic.EVENT_STATUS, {"event_id": str(event.pk), "status": new_status})
        except Exception:
            logger.exception("event_status_sweep_failed", event_id=str(event.pk))
            result.record_failure(event.pk)

    logger.info("event_status_sweep_completed", **result.model_dump(mode="json", exclude={"failures"}))
    return result


def reminder_window(now: datetime) -> tuple[datetime, datetime]:
    """The next local calendar day, as an aware half-open interval."""
    tomorrow = timezone.localtime(now).date() + timedelta(days=1)
    start = timezone.make_aware(datetime.combine(tomorrow, time.min))
    end = timezone.make_aware(datetime.combine(tomorrow + timedelta(days=1), time.min))
    return start, end


def sweep_reminders(now: datetime | None = None, dispatcher: NotificationDispatcher | None = None) -> SweepResult:
    """Send one reminder to every registrant of an event starting tomorrow.

    The ``reminder_sent`` flag is claimed and the reminder queued in one transaction: the flag only
    sticks once the queue accepted the message. A crash in between can cause a duplicate, never a miss.
    """
    now = now or timezone.now()
    dispatcher = dispatcher or NotificationDispatcher()
    window_start, window_end = reminder_window(now)
    result = SweepResult(name=REMINDER_SWEEP, window_start=window_start, window_end=window_end)

    events = Event.objects.not_cancelled().starting_between(window_start, window_end)
    for event in events:
        pending = Registration.objects.filter(
            event=event, status=Registration.Status.REGISTERED, reminder_sent=False
        ).select_related("event", "user")
        for registration in pending:
            result.processed += 1
            try:
                if _send_reminder(registration, now, dispatcher):
                    result.changed += 1
            except Exception:
                logger.exception(
                    "reminder_failed", registration_id=str(registration.pk), event_id=str(event.pk)
                )
                result.record_failure(registration.pk)

    logger.info("reminder_sweep_completed", **result.model_dump(mode="json", exclude={"failures"}))
    return result


def _send_reminder(registration: Registration, now: datetime, dispatcher: NotificationDispatcher) -> bool:
    with transaction.atomic():
        claimed = Registration.objects.filter(
            pk=registration.pk, status=Registration.Status.REGISTERED, reminder_sent=False
        ).update(reminder_sent=True, reminder_sent_at=now, updated_at=now)
        if not claimed:
            return False
        if not dispatcher.send_reminder(registration):
            raise DispatchFailedError(f"Reminder for registration {registration.pk} was not queued.")

    event = registration.event
    dispatcher.create_notification(
        user_id=registration.user_id,
        notification_type=NotificationType.EVENT_REMINDER,
        title=f"{event.title} is tomorrow",
        message=f"{event.title} starts {timezone.localtime(event.start_date):%A %H:%M} at {event.location}.",
        related_event_id=event.pk,
        related_registration_id=registration.pk,
    )
    return True


def sweep_no_shows(now: datetime | None = None) -> SweepResult:
    """Mark registrations that never checked in as ``no-show`` once their event is over.

    The lookback window starts at the last watermark (or one configured window ago on first run),
    so downtime widens the window rather than skipping events. On partial failure the watermark
    stops at the earliest failed event so it is retried next time.
    """
    now = now or timezone.now()
    checkpoint = SweepCheckpoint.objects.filter(name=NO_SHOW_SWEEP).first()
    since = (
        checkpoint.last_run_at
        if checkpoint
        else now - timedelta(minutes=settings.NO_SHOW_SWEEP_WINDOW_MINUTES)
    )
    result = SweepResult(name=NO_SHOW_SWEEP, window_start=since, window_end=now)

    failed_ends: list[datetime] = []
    for event in Event.objects.not_cancelled().ended_between(since, now).order_by("end_date"):
        if derive_status(now, event) != Event.Status.COMPLETED:
            continue
        result.processed += 1
        try:
            with transaction.atomic():
                marked = Registration.objects.filter(event=event, status=Registration.Status.REGISTERED).update(
                    status=Registration.Status.NO_SHOW, updated_at=now
                )
            result.changed += marked
            if marked:
                logger.info("no_shows_marked", event_id=str(event.pk), count=marked)
        except Exception:
            logger.exception("no_show_sweep_failed", event_id=str(event.pk))
            result.record_failure(event.pk)
            failed_ends.append(event.end_date)

    watermark = min(failed_ends) if failed_ends else now
    SweepCheckpoint.objects.update_or_create(name=NO_SHOW_SWEEP, defaults={"last_run_at": watermark})

    logger.info(
        "no_show_sweep_completed",
        watermark=watermark.isoformat(),
        **result.model_dump(mode="json", exclude={"failures"}),
    )
    return result
