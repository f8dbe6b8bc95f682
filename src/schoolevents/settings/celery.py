from celery.schedules import crontab
from decouple import config

from .base import DEBUG, REDIS_HOST, REDIS_PORT, REMINDER_SWEEP_HOUR, TIME_ZONE

CELERY_REDIS_DB = config("CELERY_REDIS_DB", default=0, cast=int)

# CELERY
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default=f"redis://{REDIS_HOST}:{REDIS_PORT}/{CELERY_REDIS_DB}")
CELERY_ACCEPT_CONTENT = ["application/json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TASK_IGNORE_RESULT = True
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = config("CELERY_TASK_ALWAYS_EAGER", cast=bool, default=DEBUG)
CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True

# Task execution settings
CELERY_TASK_TIME_LIMIT = 300  # Hard limit: kill task after 5 minutes
CELERY_TASK_SOFT_TIME_LIMIT = 240  # Soft limit: raise exception after 4 minutes
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ACKS_LATE = True  # Acknowledge tasks after completion (prevent task loss)

# Reconciliation sweeps. The no-show sweep runs after the status sweep in the same hour.
CELERY_BEAT_SCHEDULE = {
    "events.sweep_event_statuses": {
        "task": "events.sweep_event_statuses",
        "schedule": crontab(minute=0),
    },
    "events.sweep_no_shows": {
        "task": "events.sweep_no_shows",
        "schedule": crontab(minute=5),
    },
    "events.sweep_reminders": {
        "task": "events.sweep_reminders",
        "schedule": crontab(minute=0, hour=REMINDER_SWEEP_HOUR),
    },
    "notifications.cleanup_expired_notifications": {
        "task": "notifications.cleanup_expired_notifications",
        "schedule": crontab(minute=0, hour=0),
    },
    "common.cleanup_email_logs": {
        "task": "common.cleanup_email_logs",
        "schedule": crontab(minute=30, hour=0),
    },
}
