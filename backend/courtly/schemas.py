from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .domain.catalog import Court, Timeslot
from .models import Reservation, ReservationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    error: str


class TimeslotRead(CamelModel):
    id: str
    label: str

    @classmethod
    def from_domain(cls, slot: Timeslot) -> "TimeslotRead":
        return cls(id=slot.id, label=slot.label)


class TimeslotsResponse(CamelModel):
    timeslots: list[TimeslotRead]


class CourtRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    price_per_hour: Optional[int] = None

    @classmethod
    def from_domain(cls, court: Court) -> "CourtRead":
        return cls(
            id=court.id,
            name=court.name,
            description=court.description,
            price_per_hour=court.price_per_hour,
        )


class CourtsResponse(CamelModel):
    courts: list[CourtRead]


class CheckoutSessionCreate(CamelModel):
    date: str = ""
    timeslot_id: Optional[str] = None
    timeslots: Optional[list[str]] = None
    court_id: str = ""

    def requested_timeslots(self) -> list[str]:
        """The list field wins; the single legacy field is used only when the list is empty or null."""
        if self.timeslots:
            return list(self.timeslots)
        if self.timeslot_id:
            return [self.timeslot_id]
        return []


class CheckoutSessionResponse(CamelModel):
    url: Optional[str] = None
    error: Optional[str] = None


class ConfirmResponse(CamelModel):
    ok: bool
    error: Optional[str] = None


class NowResponse(CamelModel):
    now_unix_ms: int
    now_iso: str = Field(alias="nowISO")
    timezone: str
    utc_offset_minutes: int


class MockPaymentCreate(CamelModel):
    date: str = ""
    timeslots: list[str] = Field(default_factory=list)
    court_id: str = ""
    amount: int = Field(default=0, ge=0)
    card_number: str = ""
    card_name: str = ""
    expiry_month: str = ""
    expiry_year: str = ""
    cvv: str = ""


class MockPaymentResponse(CamelModel):
    success: bool
    booking_id: Optional[str] = None
    error: Optional[str] = None


class ReservationRead(CamelModel):
    id: int
    date: str
    timeslot_id: str
    court_id: str
    user_email: Optional[str] = None
    amount: int
    status: ReservationStatus
    created_at: datetime
    payment_ref: str

    @field_serializer("created_at")
    def _ser_created_at(self, dt: datetime) -> str:
        # Stored as naive UTC.
        return dt.replace(tzinfo=timezone.utc).isoformat()

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            id=reservation.id,
            date=reservation.date,
            timeslot_id=reservation.timeslot_id,
            court_id=reservation.court_id,
            user_email=reservation.user_email,
            amount=reservation.amount,
            status=reservation.status,
            created_at=reservation.created_at,
            payment_ref=reservation.payment_ref,
        )
