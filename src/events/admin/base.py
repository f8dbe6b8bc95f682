"""Shared admin mixins and inlines for the events app."""

import typing as t

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from events import models


class UserLinkMixin:
    """Mixin to add a link to the related user."""

    @admin.display(description="User")
    def user_link(self, obj: t.Any) -> str:
        user = obj.user
        url = reverse("admin:accounts_schooluser_change", args=[user.id])
        return format_html('<a href="{}">{}</a>', url, user.display_name)


class EventLinkMixin:
    """Mixin to add a link to the related event."""

    @admin.display(description="Event")
    def event_link(self, obj: t.Any) -> str | None:
        if not obj.event:
            return None
        url = reverse("admin:events_event_change", args=[obj.event.id])
        return format_html('<a href="{}">{}</a>', url, obj.event.title)


class RegistrationInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.Registration
    extra = 0
    fields = ["user", "ticket_number", "status", "payment_status", "attended_at"]
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False

    def has_delete_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False
