import pytest
from django.contrib import admin
from django.test.client import Client
from django.urls import reverse

from accounts.models import SchoolUser
from events.admin import RegistrationAdmin
from events.admin.base import RegistrationInline
from events.models import Event, Registration

pytestmark = pytest.mark.django_db


@pytest.fixture
def superuser_client(superuser: SchoolUser) -> Client:
    client = Client()
    client.force_login(superuser)
    return client


def test_lifecycle_fields_are_read_only() -> None:
    model_admin = RegistrationAdmin(Registration, admin.site)
    inline = RegistrationInline(Event, admin.site)

    for field in ("status", "payment_status", "event", "user"):
        assert field in model_admin.readonly_fields
    for field in ("status", "payment_status"):
        assert field in inline.readonly_fields


def test_change_form_cannot_reopen_a_cancelled_registration(
    superuser_client: Client, registration: Registration
) -> None:
    Registration.objects.filter(pk=registration.pk).update(status=Registration.Status.CANCELLED)
    url = reverse("admin:events_registration_change", args=[registration.pk])

    superuser_client.post(url, {"status": "registered", "payment_status": "pending", "notes": ""})

    registration.refresh_from_db()
    assert registration.status == Registration.Status.CANCELLED


def test_registrations_cannot_be_added_or_deleted(superuser_client: Client, registration: Registration) -> None:
    assert superuser_client.get(reverse("admin:events_registration_add")).status_code == 403
    url = reverse("admin:events_registration_delete", args=[registration.pk])
    assert superuser_client.post(url, {"post": "yes"}).status_code == 403
    assert Registration.objects.filter(pk=registration.pk).exists()


def test_cancel_action_goes_through_the_service(superuser_client: Client, registration: Registration) -> None:
    response = superuser_client.post(
        reverse("admin:events_registration_changelist"),
        {"action": "cancel_registrations", "_selected_action": [str(registration.pk)]},
    )

    assert response.status_code == 302
    registration.refresh_from_db()
    assert registration.status == Registration.Status.CANCELLED
    assert registration.cancelled_at is not None
    assert Event.objects.get(pk=registration.event_id).registered_count == 0


def test_check_in_action_goes_through_the_service(
    superuser_client: Client, ongoing_registration: Registration, superuser: SchoolUser
) -> None:
    response = superuser_client.post(
        reverse("admin:events_registration_changelist"),
        {"action": "check_in_registrations", "_selected_action": [str(ongoing_registration.pk)]},
    )

    assert response.status_code == 302
    ongoing_registration.refresh_from_db()
    assert ongoing_registration.status == Registration.Status.ATTENDED
    assert ongoing_registration.check_in_method == Registration.CheckInMethod.MANUAL
    assert ongoing_registration.checked_in_by_id == superuser.pk
    assert Event.objects.get(pk=ongoing_registration.event_id).attended_count == 1


def test_failed_action_leaves_the_registration_alone(superuser_client: Client, registration: Registration) -> None:
    Registration.objects.filter(pk=registration.pk).update(status=Registration.Status.CANCELLED)

    response = superuser_client.post(
        reverse("admin:events_registration_changelist"),
        {"action": "check_in_registrations", "_selected_action": [str(registration.pk)]},
    )

    assert response.status_code == 302
    registration.refresh_from_db()
    assert registration.status == Registration.Status.CANCELLED
    assert Event.objects.get(pk=registration.event_id).attended_count == 0
