"""Events schema package.

Schemas are split into modules that mirror the models package and re-exported here.
"""

from .event import (
    CancelEventSchema,
    EventCreateSchema,
    EventDetailSchema,
    EventEditSchema,
    EventFilterSchema,
    MinimalEventSchema,
)
from .registration import (
    AttendeeRegistrationSchema,
    CancelRegistrationSchema,
    CheckInResultSchema,
    EventRegistrationsSchema,
    PaymentDetailsSchema,
    RegisterSchema,
    RegistrationFilterSchema,
    RegistrationSchema,
    RegistrationStatsSchema,
    TicketQRCodeSchema,
)

__all__ = [
    "CancelEventSchema",
    "EventCreateSchema",
    "EventDetailSchema",
    "EventEditSchema",
    "EventFilterSchema",
    "MinimalEventSchema",
    "AttendeeRegistrationSchema",
    "CancelRegistrationSchema",
    "CheckInResultSchema",
    "EventRegistrationsSchema",
    "PaymentDetailsSchema",
    "RegisterSchema",
    "RegistrationFilterSchema",
    "RegistrationSchema",
    "RegistrationStatsSchema",
    "TicketQRCodeSchema",
]
