"""Event schemas."""

import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.db.models import Q
from django.utils import timezone
from ninja import FilterSchema, ModelSchema, Schema
from pydantic import AwareDatetime, Field, StringConstraints, model_validator

from accounts.schema import MinimalSchoolUserSchema
from common.schema import ReasonString, StrippedString
from events.models import Event, Registration

TitleString = t.Annotated[str, StringConstraints(min_length=1, max_length=100, strip_whitespace=True)]


class MinimalEventSchema(ModelSchema):
    id: UUID
    price: Decimal
    available_slots: int
    is_full: bool

    class Meta:
        model = Event
        fields = [
            "title",
            "category",
            "start_date",
            "end_date",
            "location",
            "venue",
            "capacity",
            "registered_count",
            "attended_count",
            "status",
            "registration_deadline",
        ]


class EventDetailSchema(MinimalEventSchema):
    organizer: MinimalSchoolUserSchema
    description: str
    requires_registration: bool
    is_published: bool
    is_featured: bool
    is_registered: bool = False

    @staticmethod
    def resolve_is_registered(obj: Event, context: t.Any) -> bool:
        """Whether the requesting user holds a registration that was not cancelled."""
        user = context["request"].user
        if not user.is_authenticated:
            return False
        return Registration.objects.active().filter(event=obj, user=user).exists()


class EventEditSchema(Schema):
    """Partial update. Only the fields that are sent are changed."""

    title: TitleString | None = None
    description: StrippedString | None = Field(None, max_length=2000)
    category: Event.Category | None = None
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime | None = None
    location: StrippedString | None = Field(None, max_length=255)
    venue: StrippedString | None = Field(None, max_length=255)
    capacity: int | None = Field(None, ge=1)
    price: Decimal | None = Field(None, ge=0, max_digits=8, decimal_places=2)
    registration_deadline: AwareDatetime | None = None
    requires_registration: bool | None = None
    is_published: bool | None = None
    is_featured: bool | None = None


class EventCreateSchema(EventEditSchema):
    title: TitleString
    description: StrippedString = Field(..., max_length=2000)
    category: Event.Category
    start_date: AwareDatetime
    end_date: AwareDatetime
    location: StrippedString = Field(..., max_length=255)
    venue: StrippedString = Field("", max_length=255)
    capacity: int = Field(..., ge=1)
    price: Decimal = Field(Decimal("0.00"), ge=0, max_digits=8, decimal_places=2)
    requires_registration: bool = True
    is_published: bool = True
    is_featured: bool = False

    @model_validator(mode="after")
    def end_after_start(self) -> t.Self:
        if self.end_date < self.start_date:
            raise ValueError("End date must be after start date.")
        return self


class CancelEventSchema(Schema):
    reason: ReasonString = ""


class EventFilterSchema(FilterSchema):
    category: Event.Category | None = None
    status: Event.Status | None = None
    featured: bool | None = Field(None, q="is_featured")  # type: ignore[call-overload]
    starts_after: datetime | None = Field(None, q="start_date__gte")  # type: ignore[call-overload]
    starts_before: datetime | None = Field(None, q="start_date__lte")  # type: ignore[call-overload]
    upcoming_only: bool = False

    def filter_upcoming_only(self, upcoming_only: bool) -> Q:
        """Only events that have not ended yet."""
        if upcoming_only:
            return Q(end_date__gte=timezone.now())
        return Q()
