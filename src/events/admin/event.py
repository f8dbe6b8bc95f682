"""Admin classes for Event and SweepCheckpoint."""

import typing as t

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest

from events import models
from events.admin.base import RegistrationInline
from events.exceptions import RegistrationError
from events.service.event_service import EventService
@admin.register(models.Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin model for Events."""

    list_display = [
        "title",
        "category",
        "status",
        "start_date",
        "end_date",
        "registered_count",
        "capacity",
        "attended_count",
        "price",
        "is_published",
    ]
    list_filter = ["category", "status", "is_published", "is_featured", "requires_registration"]
    search_fields = ["title", "location", "venue", "organizer__email"]
    raw_id_fields = ["organizer"]
    readonly_fields = ["id", "status", "registered_count", "attended_count", "created_at", "updated_at"]
    date_hierarchy = "start_date"
    inlines = [RegistrationInline]
    actions = ["cancel_events"]

    fieldsets = [
        ("Details", {"fields": ("title", "description", "category", "organizer", ("location", "venue"))}),
        (
            "Schedule",
            {"fields": (("start_date", "end_date"), "registration_deadline", "status")},
        ),
        (
            "Registration",
            {
                "fields": (
                    ("capacity", "registered_count", "attended_count"),
                    "price",
                    ("requires_registration", "is_published", "is_featured"),
                )
            },
        ),
        ("Metadata", {"fields": ("id", "created_at", "updated_at")}),
    ]

    @admin.action(description="Cancel selected events")
    def cancel_events(self, request: HttpRequest, queryset: QuerySet[models.Event]) -> None:
        service = EventService()
        done = 0
        for event in queryset:
            try:
                service.cancel_event(event.pk, t.cast(t.Any, request.user), reason="Cancelled by the school.")
            except RegistrationError as exc:
                self.message_user(request, f"{event.title}: {exc.message}", messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"{done} event(s) cancelled.", messages.SUCCESS)


@admin.register(models.SweepCheckpoint)
class SweepCheckpointAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["name", "last_run_at", "updated_at"]
    readonly_fields = ["created_at", "updated_at"]
