from uuid import UUID

from django.db.models import QuerySet
from django.utils import timezone
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_jwt.authentication import JWTAuth

from common.schema import ValidationErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import schema
from events.controllers.user_aware_controller import UserAwareController
from events.exceptions import EventNotFoundError, ForbiddenError, RegistrationNotFoundError
from events.models import Event, Registration
from events.service.registration_service import RegistrationService
from events.utils import qr_code_data_url


@api_controller("/registrations", auth=JWTAuth(), tags=["Registrations"], throttle=WriteThrottle())
class RegistrationController(UserAwareController):
    """Register for events and manage your own registrations."""

    def registration_service(self) -> RegistrationService:
        return RegistrationService()

    @route.get(
        "/mine",
        url_name="my_registrations",
        response=PaginatedResponseSchema[schema.RegistrationSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def my_registrations(
        self,
        params: schema.RegistrationFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[Registration]:
        """List the authenticated user's registrations, newest first.

        Filter by `status`, or pass `upcoming_only=true` to hide events that already ended.
        """
        return params.filter(Registration.objects.filter(user=self.user()).select_related("event"))

    @route.get(
        "/event/{uuid:event_id}",
        url_name="event_registrations",
        response=schema.EventRegistrationsSchema,
        throttle=UserDefaultThrottle(),
    )
    def event_registrations(self, event_id: UUID) -> dict[str, object]:
        """All registrations of an event with counts by status. Organizer or administrator only."""
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise EventNotFoundError(event_id=str(event_id))
        user = self.user()
        if event.organizer_id != user.pk and not user.is_administrator:
            raise ForbiddenError("Only the organizer can see the registrations of this event.")
        return {
            "event": event,
            "stats": Registration.objects.stats_for_event(event),
            "registrations": list(Registration.objects.filter(event=event).select_related("user")),
        }

    @route.post(
        "/{uuid:event_id}",
        url_name="register",
        response={201: schema.RegistrationSchema, 400: ValidationErrorResponse},
    )
    def register(self, event_id: UUID, payload: schema.RegisterSchema) -> tuple[int, Registration]:
        """Register for an event.

        Paid events can be paid right away by including `payment_details`. Otherwise the
        registration stays `pending` until paid via the payment endpoint.
        """
        registration = self.registration_service().register(
            event_id, self.user(), payment=payload.payment_details, notes=payload.notes
        )
        return 201, registration

    @route.put(
        "/{uuid:registration_id}/cancel",
        url_name="cancel_registration",
        response=schema.RegistrationSchema,
    )
    def cancel(self, registration_id: UUID, payload: schema.CancelRegistrationSchema) -> Registration:
        """Cancel a registration. Completed payments are marked for refund."""
        return self.registration_service().cancel(registration_id, self.user(), reason=payload.reason)

    @route.post(
        "/{uuid:registration_id}/payment",
        url_name="complete_payment",
        response=schema.RegistrationSchema,
    )
    def complete_payment(self, registration_id: UUID, payload: schema.PaymentDetailsSchema) -> Registration:
        """Pay for a pending registration."""
        return self.registration_service().complete_payment(registration_id, self.user(), payload)

    @route.get(
        "/{uuid:registration_id}/qr",
        url_name="registration_qr_code",
        response=schema.TicketQRCodeSchema,
        throttle=UserDefaultThrottle(),
    )
    def qr_code(self, registration_id: UUID) -> schema.TicketQRCodeSchema:
        """The ticket QR code as a PNG data URL, for display at the entrance."""
        registration = Registration.objects.select_related("event").filter(pk=registration_id).first()
        if registration is None:
            raise RegistrationNotFoundError(registration_id=str(registration_id))
        user = self.user()
        if registration.user_id != user.pk and not user.is_administrator:
            raise ForbiddenError("You can only view your own tickets.")
        return schema.TicketQRCodeSchema(
            registration_id=registration.pk,
            ticket_number=registration.ticket_number,
            qr_code=registration.qr_code,
            qr_code_data_url=qr_code_data_url(registration.qr_code),
            valid=registration.is_ticket_valid(timezone.now()),
            event_end_date=registration.event.end_date,
        )
