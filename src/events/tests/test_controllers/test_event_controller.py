import typing as t
from datetime import timedelta

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse
from django.utils import timezone

from accounts.models import SchoolUser
from events.models import Event, Registration
from events.service.registration_service import RegistrationService

pytestmark = pytest.mark.django_db


def _event_payload(**overrides: t.Any) -> dict[str, t.Any]:
    start = timezone.now() + timedelta(days=4)
    payload = {
        "title": "Spring Concert",
        "description": "The school orchestra and choir.",
        "category": "Cultural",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(hours=2)).isoformat(),
        "location": "Auditorium",
        "capacity": 120,
        "price": "5.00",
    }
    payload.update(overrides)
    return payload


class TestBrowse:
    def test_anonymous_list(self, client: Client, event: Event, event_factory: t.Callable[..., Event]) -> None:
        event_factory(title="Draft", is_published=False)

        response = client.get(reverse("api:list_events"))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["results"][0]["id"] == str(event.pk)

    def test_organizer_sees_own_drafts(
        self, teacher_client: Client, event: Event, event_factory: t.Callable[..., Event]
    ) -> None:
        event_factory(title="Draft", is_published=False)

        response = teacher_client.get(reverse("api:list_events"))

        assert response.json()["count"] == 2

    def test_filter_and_search(
        self, client: Client, event: Event, event_factory: t.Callable[..., Event]
    ) -> None:
        event_factory(title="Football Final", category=Event.Category.SPORTS)

        by_category = client.get(reverse("api:list_events"), {"category": "Sports"})
        by_search = client.get(reverse("api:list_events"), {"search": "science"})

        assert [e["title"] for e in by_category.json()["results"]] == ["Football Final"]
        assert [e["title"] for e in by_search.json()["results"]] == ["Science Fair"]

    def test_detail_with_registration_flag(self, student_client: Client, registration: Registration) -> None:
        url = reverse("api:get_event", kwargs={"event_id": registration.event_id})

        response = student_client.get(url)

        assert response.status_code == 200
        data = response.json()
        assert data["is_registered"] is True
        assert data["registered_count"] == 1
        assert data["organizer"]["display_name"]

    def test_detail_anonymous(self, client: Client, event: Event) -> None:
        response = client.get(reverse("api:get_event", kwargs={"event_id": event.pk}))

        assert response.status_code == 200
        assert response.json()["is_registered"] is False

    def test_draft_is_hidden(self, client: Client, event_factory: t.Callable[..., Event]) -> None:
        draft = event_factory(is_published=False)

        response = client.get(reverse("api:get_event", kwargs={"event_id": draft.pk}))

        assert response.status_code == 404
        assert response.json()["code"] == "event_not_found"


class TestManage:
    def test_teacher_creates(self, teacher_client: Client) -> None:
        response = teacher_client.post(
            reverse("api:create_event"), data=orjson.dumps(_event_payload()), content_type="application/json"
        )

        assert response.status_code == 201, response.content
        data = response.json()
        assert data["status"] == "upcoming"
        assert data["registered_count"] == 0
        assert Event.objects.get(pk=data["id"]).title == "Spring Concert"

    def test_student_cannot_create(self, student_client: Client) -> None:
        response = student_client.post(
            reverse("api:create_event"), data=orjson.dumps(_event_payload()), content_type="application/json"
        )

        assert response.status_code == 403
        assert not Event.objects.exists()

    def test_anonymous_cannot_create(self, client: Client) -> None:
        response = client.post(
            reverse("api:create_event"), data=orjson.dumps(_event_payload()), content_type="application/json"
        )

        assert response.status_code == 401

    def test_end_before_start(self, teacher_client: Client) -> None:
        start = timezone.now() + timedelta(days=4)
        payload = _event_payload(end_date=(start - timedelta(hours=1)).isoformat(), start_date=start.isoformat())

        response = teacher_client.post(
            reverse("api:create_event"), data=orjson.dumps(payload), content_type="application/json"
        )

        assert response.status_code == 422

    def test_partial_update(self, teacher_client: Client, event: Event) -> None:
        url = reverse("api:update_event", kwargs={"event_id": event.pk})

        response = teacher_client.put(url, data=orjson.dumps({"venue": "Room 12"}), content_type="application/json")

        assert response.status_code == 200, response.content
        event.refresh_from_db()
        assert event.venue == "Room 12"
        assert event.title == "Science Fair"

    def test_capacity_below_registrations(
        self,
        teacher_client: Client,
        registration: Registration,
        registration_service: RegistrationService,
        other_student: SchoolUser,
    ) -> None:
        registration_service.register(registration.event_id, other_student)
        url = reverse("api:update_event", kwargs={"event_id": registration.event_id})

        response = teacher_client.put(url, data=orjson.dumps({"capacity": 1}), content_type="application/json")

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "capacity_below_registered"
        assert body["payload"]["registered_count"] == 2

    def test_other_user_cannot_update(self, student_client: Client, event: Event) -> None:
        url = reverse("api:update_event", kwargs={"event_id": event.pk})

        response = student_client.put(url, data=orjson.dumps({"title": "Mine"}), content_type="application/json")

        assert response.status_code == 403

    def test_cancel(self, teacher_client: Client, registration: Registration) -> None:
        url = reverse("api:cancel_event", kwargs={"event_id": registration.event_id})

        response = teacher_client.post(
            url, data=orjson.dumps({"reason": "Heavy snow"}), content_type="application/json"
        )

        assert response.status_code == 200, response.content
        assert response.json()["status"] == "cancelled"

        again = teacher_client.post(url, data=orjson.dumps({}), content_type="application/json")
        assert again.status_code == 409
        assert again.json()["code"] == "event_already_cancelled"

    def test_delete(self, teacher_client: Client, registration: Registration) -> None:
        url = reverse("api:delete_event", kwargs={"event_id": registration.event_id})

        response = teacher_client.delete(url)

        assert response.status_code == 204
        assert not Event.objects.filter(pk=registration.event_id).exists()
        assert not Registration.objects.exists()
