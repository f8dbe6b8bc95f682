"""Registration, payment and check-in schemas."""

import datetime
from decimal import Decimal
from uuid import UUID

from django.db.models import Q
from django.utils import timezone
from ninja import FilterSchema, ModelSchema, Schema
from pydantic import Field

from accounts.schema import MinimalSchoolUserSchema
from common.schema import ReasonString
from events.models import Registration
from events.service.types import CheckInResult, PaymentDetails

from .event import MinimalEventSchema


class PaymentDetailsSchema(PaymentDetails):
    """Simulated payment details. Card payments need the last four digits of the card."""


class RegisterSchema(Schema):
    payment_details: PaymentDetailsSchema | None = None
    notes: str = Field(default="", max_length=1000)


class CancelRegistrationSchema(Schema):
    reason: ReasonString = ""


class RegistrationSchema(ModelSchema):
    id: UUID
    event: MinimalEventSchema
    payment_amount: Decimal

    class Meta:
        model = Registration
        fields = [
            "qr_code",
            "ticket_number",
            "status",
            "registered_at",
            "attended_at",
            "cancelled_at",
            "cancellation_reason",
            "check_in_method",
            "notes",
            "reminder_sent",
            "payment_status",
            "payment_method",
            "transaction_id",
            "card_last4",
            "payment_date",
        ]


class AttendeeRegistrationSchema(ModelSchema):
    """A registration as seen by the event organizer."""

    id: UUID
    user: MinimalSchoolUserSchema
    payment_amount: Decimal

    class Meta:
        model = Registration
        fields = [
            "ticket_number",
            "status",
            "registered_at",
            "attended_at",
            "cancelled_at",
            "check_in_method",
            "payment_status",
            "payment_method",
        ]


class RegistrationStatsSchema(Schema):
    total: int
    registered: int
    attended: int
    cancelled: int
    no_show: int


class EventRegistrationsSchema(Schema):
    event: MinimalEventSchema
    stats: RegistrationStatsSchema
    registrations: list[AttendeeRegistrationSchema]


class TicketQRCodeSchema(Schema):
    registration_id: UUID
    ticket_number: str
    qr_code: str
    qr_code_data_url: str
    valid: bool
    event_end_date: datetime.datetime


CheckInResultSchema = CheckInResult


class RegistrationFilterSchema(FilterSchema):
    status: Registration.Status | None = None
    upcoming_only: bool = False

    def filter_upcoming_only(self, upcoming_only: bool) -> Q:
        """Only registrations for events that have not ended yet."""
        if upcoming_only:
            return Q(event__end_date__gte=timezone.now())
        return Q()


