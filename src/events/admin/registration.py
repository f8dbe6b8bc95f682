"""Admin classes for Registration."""

import typing as t

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest

from events import models
from events.admin.base import EventLinkMixin, UserLinkMixin
from events.exceptions import RegistrationError
from events.service.check_in_service import CheckInService
from events.service.registration_service import RegistrationService


@admin.register(models.Registration)
class RegistrationAdmin(admin.ModelAdmin, UserLinkMixin, EventLinkMixin):  # type: ignore[type-arg]
    """Registrations are created through the API and change state only through the services."""

    list_display = [
        "ticket_number",
        "event_link",
        "user_link",
        "status",
        "payment_status",
        "payment_amount",
        "registered_at",
        "attended_at",
        "reminder_sent",
    ]
    list_filter = ["status", "payment_status", "payment_method", "check_in_method", "reminder_sent"]
    search_fields = ["ticket_number", "qr_code", "event__title", "user__email", "user__student_id"]
    readonly_fields = [
        "id",
        "event",
        "user",
        "status",
        "payment_status",
        "payment_amount",
        "payment_method",
        "card_last4",
        "qr_code",
        "ticket_number",
        "registered_at",
        "attended_at",
        "cancelled_at",
        "cancellation_reason",
        "check_in_method",
        "checked_in_by",
        "reminder_sent",
        "reminder_sent_at",
        "transaction_id",
        "payment_date",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "registered_at"
    list_select_related = ["event", "user"]
    actions = ["cancel_registrations", "check_in_registrations"]

    def has_add_permission(self, request: t.Any) -> bool:
        return False

    def has_delete_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        # Deleting would leave the event counters behind; cancel instead.
        return False

    @admin.action(description="Cancel selected registrations")
    def cancel_registrations(self, request: HttpRequest, queryset: QuerySet[models.Registration]) -> None:
        service = RegistrationService()
        self._apply(
            request,
            queryset,
            lambda r: service.cancel(r.pk, request.user, reason="Cancelled by staff"),  # type: ignore[arg-type]
        )

    @admin.action(description="Check in selected registrations")
    def check_in_registrations(self, request: HttpRequest, queryset: QuerySet[models.Registration]) -> None:
        service = CheckInService()
        self._apply(request, queryset, lambda r: service.check_in_manual(r.pk, request.user))  # type: ignore[arg-type]

    def _apply(
        self,
        request: HttpRequest,
        queryset: QuerySet[models.Registration],
        operation: t.Callable[[models.Registration], t.Any],
    ) -> None:
        done = 0
        for registration in queryset:
            try:
                operation(registration)
            except RegistrationError as exc:
                self.message_user(request, f"{registration.ticket_number}: {exc.message}", messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"{done} registration(s) updated.", messages.SUCCESS)
