"""Input and result types for the registration and check-in services."""

import datetime
import typing as t
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentDetails(BaseModel):
    """Simulated payment details supplied at registration or payment time."""

    method: t.Literal["card", "cash"] = "card"
    card_last4: str | None = Field(default=None, max_length=4)
    transaction_id: str | None = Field(default=None, max_length=64)

    @property
    def is_acceptable(self) -> bool:
        """Cash is always accepted; a card needs its last four digits."""
        if self.method == "cash":
            return True
        return bool(self.card_last4) and len(self.card_last4) == 4 and self.card_last4.isdigit()


class CheckInUser(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    student_id: str | None = None
    grade: str = ""
    house: str = ""


class CheckInTicket(BaseModel):
    registration_id: uuid.UUID
    ticket_number: str
    event_id: uuid.UUID
    event_title: str
    status: str
    attended_at: datetime.datetime
    check_in_method: str
    payment_status: str
    payment_amount: Decimal


class CheckInResult(BaseModel):
    """Details shown to the check-in operator after a successful scan."""

    user: CheckInUser
    ticket: CheckInTicket
    attended_count: int


class SweepResult(BaseModel):
    """Outcome of one run of a scheduled sweep."""

    name: str
    window_start: datetime.datetime | None = None
    window_end: datetime.datetime | None = None
    processed: int = 0
    changed: int = 0
    failed: int = 0
    failures: list[str] = Field(default_factory=list)

    def record_failure(self, entity_id: t.Any) -> None:
        self.failed += 1
        self.failures.append(str(entity_id))
