from .event import Event, EventManager, EventQuerySet, derive_status
from .registration import (
    Registration,
    RegistrationManager,
    RegistrationQuerySet,
    generate_qr_code,
    generate_ticket_number,
)
from .sweep import SweepCheckpoint

__all__ = [
    "Event",
    "EventManager",
    "EventQuerySet",
    "derive_status",
    "Registration",
    "RegistrationManager",
    "RegistrationQuerySet",
    "generate_qr_code",
    "generate_ticket_number",
    "SweepCheckpoint",
]
