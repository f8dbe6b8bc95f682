"""Best-effort real-time broadcasting of registration and attendance counters."""

import typing as t
from functools import lru_cache

import orjson
import redis
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)


class Topic:
    REGISTRATION_NEW = "registration:new"
    REGISTRATION_CANCELLED = "registration:cancelled"
    ATTENDANCE_CHECKED_IN = "attendance:checked_in"
    EVENT_STATUS = "event:status"
    EVENT_CREATED = "event:created"
    EVENT_UPDATED = "event:updated"
    EVENT_DELETED = "event:deleted"


class Broadcaster(t.Protocol):
    def emit(self, topic: str, payload: dict[str, t.Any]) -> None:
        """Publish ``payload`` on ``topic``. Must never raise."""


class NullBroadcaster:
    """Drops every message. Used when real-time delivery is disabled."""

    def emit(self, topic: str, payload: dict[str, t.Any]) -> None:
        logger.debug("broadcast_dropped", topic=topic)


class RedisBroadcaster:
    """Publishes JSON messages on Redis pub/sub, one channel per topic."""

    def __init__(self, client: redis.Redis, prefix: str) -> None:
        self.client = client
        self.prefix = prefix

    def channel(self, topic: str) -> str:
        return f"{self.prefix}:{topic}"

    def emit(self, topic: str, payload: dict[str, t.Any]) -> None:
        message = orjson.dumps({"topic": topic, "payload": payload}, default=str)
        try:
            self.client.publish(self.channel(topic), message)
        except redis.RedisError:
            logger.exception("broadcast_failed", topic=topic)


@lru_cache(maxsize=1)
def get_broadcaster() -> Broadcaster:
    """The process-wide broadcaster, chosen by the REALTIME_ENABLED setting."""
    if not settings.REALTIME_ENABLED:
        return NullBroadcaster()
    client = redis.Redis.from_url(settings.REALTIME_REDIS_URL, socket_connect_timeout=1, socket_timeout=1)
    return RedisBroadcaster(client, prefix=settings.REALTIME_CHANNEL_PREFIX)
