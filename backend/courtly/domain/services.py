from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import StrEnum
from typing import Collection, Iterable, Mapping, Sequence

from .catalog import TIMESLOT_IDS, Court
from .errors import InvalidBookingRequestError, SlotTooSoonError

logger = logging.getLogger(__name__)

BOOKING_GRACE = timedelta(minutes=30)
DATE_FORMAT = "%Y-%m-%d"

# Currencies the payment provider takes in major units.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "IDR", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


class CutoffOutcome(StrEnum):
    ALLOWED = "allowed"
    TOO_SOON = "too_soon"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CheckoutIntent:
    """What the customer is booking, carried across the payment redirect as session metadata."""

    date: str
    court_id: str
    timeslots: tuple[str, ...]

    def to_metadata(self) -> dict[str, str]:
        return {
            "date": self.date,
            "timeslots": ",".join(self.timeslots),
            "courtId": self.court_id,
        }

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, str]) -> "CheckoutIntent":
        timeslots = parse_timeslots(metadata.get("timeslots"))
        if not timeslots:
            legacy = (metadata.get("timeslotId") or "").strip()
            if legacy:
                timeslots = [legacy]
        return cls(
            date=metadata.get("date") or "",
            court_id=metadata.get("courtId") or "",
            timeslots=tuple(timeslots),
        )


def parse_timeslots(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def validate_booking_request(
    date: str,
    court_id: str,
    timeslots: Sequence[str],
    *,
    known_court_ids: Collection[str] | None = None,
) -> None:
    """
    Client-side validation of a booking request, in the order callers report it:
    missing court or slots first, then malformed date, unknown court, unknown or repeated slots.
    """
    if not court_id:
        raise InvalidBookingRequestError("missing courtId")
    if not timeslots:
        raise InvalidBookingRequestError("missing timeslots")
    if not is_valid_date(date):
        raise InvalidBookingRequestError("invalid date, expected YYYY-MM-DD")
    if known_court_ids is not None and court_id not in known_court_ids:
        raise InvalidBookingRequestError(f"unknown court: {court_id}")
    for timeslot_id in timeslots:
        if timeslot_id not in TIMESLOT_IDS:
            raise InvalidBookingRequestError(f"unknown timeslot: {timeslot_id}")
    if len(set(timeslots)) != len(timeslots):
        raise InvalidBookingRequestError("duplicate timeslot in request")


def is_valid_date(value: str) -> bool:
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except (TypeError, ValueError):
        return False
    return parsed.strftime(DATE_FORMAT) == value


def check_booking_cutoff(
    date: str,
    timeslot_id: str,
    *,
    zone: tzinfo | None,
    now: datetime,
    grace: timedelta = BOOKING_GRACE,
) -> CutoffOutcome:
    """
    Compare the slot's wall-clock start in the venue zone against now + grace.

    Unparseable input or a missing zone yields SKIPPED: the check is best effort
    and must never fail a request on its own.
    """
    if zone is None:
        logger.warning("booking cutoff skipped: venue time zone unavailable")
        return CutoffOutcome.SKIPPED
    start_text = timeslot_id.split("-", 1)[0].strip()
    try:
        slot_start = datetime.strptime(f"{date} {start_text}", f"{DATE_FORMAT} %H:%M").replace(tzinfo=zone)
    except ValueError:
        logger.warning("booking cutoff skipped: cannot parse date=%r timeslot=%r", date, timeslot_id)
        return CutoffOutcome.SKIPPED
    if slot_start < now.astimezone(zone) + grace:
        return CutoffOutcome.TOO_SOON
    return CutoffOutcome.ALLOWED


def ensure_not_too_soon(
    date: str,
    timeslots: Sequence[str],
    *,
    zone: tzinfo | None,
    now: datetime,
    message: str = "cannot book a past/soon timeslot",
) -> CutoffOutcome:
    """Only the first requested slot is checked."""
    if not timeslots or not date:
        return CutoffOutcome.SKIPPED
    outcome = check_booking_cutoff(date, timeslots[0], zone=zone, now=now)
    if outcome is CutoffOutcome.TOO_SOON:
        raise SlotTooSoonError(message)
    return outcome


def is_zero_decimal_currency(currency: str) -> bool:
    return currency.upper() in ZERO_DECIMAL_CURRENCIES


def to_minor_units(price: int, currency: str) -> int:
    if is_zero_decimal_currency(currency):
        return price
    return price * 100


def available_courts(courts: Iterable[Court], occupied: set[str]) -> list[Court]:
    return [court for court in courts if court.id not in occupied]


def split_amount(total: int, parts: int) -> list[int]:
    """Divide total evenly; the remainder goes to the first part so the shares sum to total."""
    if parts <= 0:
        raise ValueError("parts must be positive")
    share, remainder = divmod(total, parts)
    return [share + remainder] + [share] * (parts - 1)
