import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_extra.searching import Searching, searching
from ninja_jwt.authentication import JWTAuth

from common.authentication import OptionalAuth
from common.schema import ValidationErrorResponse
from common.throttling import WriteThrottle
from events import schema
from events.controllers.user_aware_controller import UserAwareController
from events.exceptions import EventNotFoundError
from events.models import Event
from events.service.event_service import EventService


@api_controller("/events", auth=OptionalAuth(), tags=["Events"])
class EventController(UserAwareController):
    """Browse events. Teachers and administrators also manage them here."""

    def event_service(self) -> EventService:
        return EventService()

    def get_queryset(self) -> QuerySet[Event]:
        return Event.objects.for_user(self.maybe_user()).select_related("organizer")

    def get_one(self, event_id: UUID) -> Event:
        event = self.get_queryset().filter(pk=event_id).first()
        if event is None:
            raise EventNotFoundError(event_id=str(event_id))
        return event

    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.MinimalEventSchema])
    @paginate(PageNumberPaginationExtra, page_size=12)
    @searching(Searching, search_fields=["title", "description", "location", "venue"])
    def list_events(
        self,
        params: schema.EventFilterSchema = Query(...),  # type: ignore[type-arg]
        order_by: t.Literal["start_date", "-start_date", "-created_at"] = "start_date",
    ) -> QuerySet[Event]:
        """Browse events, soonest first by default.

        Filter by `category`, `status`, `featured` or a start date range, and search with `search`.
        """
        return params.filter(self.get_queryset()).order_by(order_by)

    @route.get("/{uuid:event_id}", url_name="get_event", response=schema.EventDetailSchema)
    def get_event(self, event_id: UUID) -> Event:
        """Event details, including whether the current user is registered."""
        return self.get_one(event_id)

    @route.post(
        "/",
        url_name="create_event",
        auth=JWTAuth(),
        throttle=WriteThrottle(),
        response={201: schema.EventDetailSchema, 400: ValidationErrorResponse},
    )
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, Event]:
        """Create an event organized by the current user. Teachers and administrators only."""
        return 201, self.event_service().create_event(self.user(), **payload.model_dump())

    @route.put(
        "/{uuid:event_id}",
        url_name="update_event",
        auth=JWTAuth(),
        throttle=WriteThrottle(),
        response={200: schema.EventDetailSchema, 400: ValidationErrorResponse},
    )
    def update_event(self, event_id: UUID, payload: schema.EventEditSchema) -> Event:
        """Update an event. Organizer or administrator only.

        Capacity cannot drop below the number of current registrations.
        """
        return self.event_service().update_event(event_id, self.user(), **payload.model_dump(exclude_unset=True))

    @route.post(
        "/{uuid:event_id}/cancel",
        url_name="cancel_event",
        auth=JWTAuth(),
        throttle=WriteThrottle(),
        response=schema.EventDetailSchema,
    )
    def cancel_event(self, event_id: UUID, payload: schema.CancelEventSchema) -> Event:
        """Cancel an event. Registrants are notified. Organizer or administrator only."""
        return self.event_service().cancel_event(event_id, self.user(), reason=payload.reason)

    @route.delete(
        "/{uuid:event_id}",
        url_name="delete_event",
        auth=JWTAuth(),
        throttle=WriteThrottle(),
        response={204: None},
    )
    def delete_event(self, event_id: UUID) -> tuple[int, None]:
        """Delete an event and all its registrations. Organizer or administrator only."""
        self.event_service().delete_event(event_id, self.user())
        return 204, None
