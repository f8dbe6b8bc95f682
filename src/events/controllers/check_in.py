from uuid import UUID

from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from common.throttling import CheckInThrottle
from events import schema
from events.controllers.user_aware_controller import UserAwareController
from events.service.check_in_service import CheckInService
from events.service.types import CheckInResult


@api_controller("/registrations", auth=JWTAuth(), tags=["Check-in"], throttle=CheckInThrottle())
class CheckInController(UserAwareController):
    """Door check-in for staff: by scanned QR code or by registration lookup."""

    def check_in_service(self) -> CheckInService:
        return CheckInService()

    @route.post("/check-in/{qr_code}", url_name="check_in", response=schema.CheckInResultSchema)
    def check_in(self, qr_code: str) -> CheckInResult:
        """Check in the holder of a scanned ticket.

        Fails when the ticket is unknown, expired, already used, cancelled or unpaid. An
        already checked in ticket reports the original check-in time.
        """
        return self.check_in_service().check_in(qr_code, self.user())

    @route.post(
        "/{uuid:registration_id}/check-in",
        url_name="check_in_manual",
        response=schema.CheckInResultSchema,
    )
    def check_in_manual(self, registration_id: UUID) -> CheckInResult:
        """Check in an attendee looked up by registration, when the QR code cannot be scanned."""
        return self.check_in_service().check_in_manual(registration_id, self.user())
