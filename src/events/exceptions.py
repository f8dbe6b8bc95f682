import typing as t
from datetime import datetime
from decimal import Decimal


class RegistrationError(Exception):
    """Base class for registration lifecycle errors.

    Carries a machine readable ``code`` and a JSON-friendly ``payload`` that the API
    exception handler puts in the response body.
    """

    code = "registration_error"
    status_code = 400
    default_message = "The registration could not be processed."

    def __init__(self, message: str | None = None, **payload: t.Any) -> None:
        self.message = message or self.default_message
        self.payload = payload
        super().__init__(self.message)


class NotFoundError(RegistrationError):
    code = "not_found"
    status_code = 404
    default_message = "Not found."


class EventNotFoundError(NotFoundError):
    code = "event_not_found"
    default_message = "Event not found."


class RegistrationNotFoundError(NotFoundError):
    code = "registration_not_found"
    default_message = "Registration not found."


class InvalidTicketCodeError(NotFoundError):
    code = "invalid_code"
    default_message = "Invalid code."


class ForbiddenError(RegistrationError):
    code = "forbidden"
    status_code = 403
    default_message = "You do not have permission to perform this action."


class ConflictError(RegistrationError):
    code = "conflict"
    status_code = 409


class AlreadyRegisteredError(ConflictError):
    code = "already_registered"
    default_message = "Already registered for this event."


class AlreadyCancelledError(ConflictError):
    code = "already_cancelled"
    default_message = "Registration is already cancelled."


class EventAlreadyCancelledError(ConflictError):
    code = "event_already_cancelled"
    default_message = "Event is already cancelled."


class RegistrationClosedError(RegistrationError):
    code = "registration_closed"
    default_message = "Registration is closed for this event."


class CapacityExceededError(RegistrationClosedError):
    code = "capacity_exceeded"
    default_message = "Event is full."


class InvalidStateError(RegistrationError):
    code = "invalid_state"
    default_message = "The registration is not in a state that allows this action."


class InvalidTransitionError(InvalidStateError):
    code = "invalid_transition"


class TicketExpiredError(InvalidStateError):
    code = "ticket_expired"
    default_message = "Ticket expired."

    def __init__(self, end_date: datetime) -> None:
        super().__init__(end_date=end_date.isoformat())


class AlreadyCheckedInError(InvalidStateError):
    code = "already_checked_in"
    default_message = "Already checked in."

    def __init__(self, attended_at: datetime | None) -> None:
        self.attended_at = attended_at
        super().__init__(attended_at=attended_at.isoformat() if attended_at else None)


class RegistrationCancelledError(InvalidStateError):
    code = "registration_cancelled"
    default_message = "Registration cancelled."


class PaymentRequiredError(InvalidStateError):
    code = "payment_required"
    default_message = "Payment required."

    def __init__(self, amount: Decimal, payment_status: str) -> None:
        self.amount = amount
        super().__init__(payment_amount=str(amount), payment_status=payment_status)


class PaymentDeclinedError(RegistrationError):
    code = "payment_declined"
    default_message = "Payment details were declined."


class TicketIdentityUnavailableError(RegistrationError):
    """Raised when no collision-free ticket identity could be generated."""

    code = "ticket_identity_unavailable"
    status_code = 503
    default_message = "Could not issue a ticket right now. Please retry."


class DispatchFailedError(Exception):
    """Raised inside a sweep transaction when a notification could not be queued, to undo its bookkeeping."""


class CapacityBelowRegisteredError(InvalidStateError):
    code = "capacity_below_registered"
    default_message = "Capacity cannot be lower than the number of registrations."
