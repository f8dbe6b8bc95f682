"""Shared fixtures for all apps."""

import secrets
import string
import typing as t
from datetime import datetime, time, timedelta

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import SchoolUser
from events.service.broadcaster import get_broadcaster
from schoolevents.celery import app as celery_app


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously.

    This ensures that Celery tasks run immediately in the same process,
    allowing tests to verify their side effects without async complications.
    """
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    celery_app.conf.update(task_always_eager=True, task_eager_propagates=True)


@pytest.fixture(autouse=True)
def disable_realtime(settings: t.Any) -> t.Iterator[None]:
    """Use the no-op broadcaster so tests never need a Redis server."""
    settings.REALTIME_ENABLED = False
    get_broadcaster.cache_clear()
    yield
    get_broadcaster.cache_clear()


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Throttle counters live in the cache, reset them between tests."""
    cache.clear()


class RecordingBroadcaster:
    """Collects emitted messages instead of publishing them."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, dict[str, t.Any]]] = []

    def emit(self, topic: str, payload: dict[str, t.Any]) -> None:
        self.messages.append((topic, payload))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.messages]


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


class SchoolUserFactory:
    """Factory for creating SchoolUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> SchoolUser:
        username = kwargs.pop(
            "username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)) + "@school.test"
        )
        email = kwargs.pop("email", username if "@" in username else f"{username}@school.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return SchoolUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> SchoolUser:
        return self.create_user(**kwargs)


@pytest.fixture
def school_user_factory() -> SchoolUserFactory:
    return SchoolUserFactory()


@pytest.fixture
def student(school_user_factory: SchoolUserFactory) -> SchoolUser:
    """A student with a student number and a house."""
    return school_user_factory(
        role=SchoolUser.Role.STUDENT, student_id="123456", grade="10", house=SchoolUser.House.REED
    )


@pytest.fixture
def other_student(school_user_factory: SchoolUserFactory) -> SchoolUser:
    return school_user_factory(role=SchoolUser.Role.STUDENT, student_id="654321", grade="11")


@pytest.fixture
def teacher(school_user_factory: SchoolUserFactory) -> SchoolUser:
    return school_user_factory(role=SchoolUser.Role.TEACHER)


@pytest.fixture
def school_admin(school_user_factory: SchoolUserFactory) -> SchoolUser:
    """An administrator by role, without Django superuser rights."""
    return school_user_factory(role=SchoolUser.Role.ADMIN)


@pytest.fixture
def superuser(school_user_factory: SchoolUserFactory) -> SchoolUser:
    """A superuser."""
    return school_user_factory(is_superuser=True, is_staff=True)


def _client_for(user: SchoolUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def student_client(student: SchoolUser) -> Client:
    return _client_for(student)


@pytest.fixture
def other_student_client(other_student: SchoolUser) -> Client:
    return _client_for(other_student)


@pytest.fixture
def teacher_client(teacher: SchoolUser) -> Client:
    return _client_for(teacher)


@pytest.fixture
def school_admin_client(school_admin: SchoolUser) -> Client:
    return _client_for(school_admin)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )
