"""Real-time broadcast settings.

Registration counters and check-ins are published on Redis pub/sub channels.
Delivery is best-effort: nothing in the registration path depends on it.
"""

from decouple import config

from .base import REDIS_HOST, REDIS_PORT

REALTIME_ENABLED = config("REALTIME_ENABLED", default=True, cast=bool)
REALTIME_REDIS_DB = config("REALTIME_REDIS_DB", default=2, cast=int)
REALTIME_REDIS_URL = config("REALTIME_REDIS_URL", default=f"redis://{REDIS_HOST}:{REDIS_PORT}/{REALTIME_REDIS_DB}")
REALTIME_CHANNEL_PREFIX = config("REALTIME_CHANNEL_PREFIX", default="schoolevents")
