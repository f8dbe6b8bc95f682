"""Celery tasks for event management.

Thin wrappers around :mod:`events.sweeps` so beat can schedule them.
"""

import typing as t

from celery import shared_task

from events import sweeps


@shared_task(name="events.sweep_event_statuses")
def sweep_event_statuses() -> dict[str, t.Any]:
    """Persist derived event statuses that have drifted."""
    return sweeps.sweep_event_statuses().model_dump(mode="json")


@shared_task(name="events.sweep_reminders")
def sweep_reminders() -> dict[str, t.Any]:
    """Remind registrants of events that start tomorrow."""
    return sweeps.sweep_reminders().model_dump(mode="json")


@shared_task(name="events.sweep_no_shows")
def sweep_no_shows() -> dict[str, t.Any]:
    """Mark registrants of finished events who never checked in."""
    return sweeps.sweep_no_shows().model_dump(mode="json")
