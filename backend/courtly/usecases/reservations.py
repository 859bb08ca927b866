import random
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Sequence

from ..domain.catalog import Court
from ..domain.errors import InvalidBookingRequestError, PaymentNotCompletedError, SlotUnavailableError
from ..domain.payments import PaymentGateway
from ..domain.repositories import ReservationRepository
from ..domain.services import CheckoutIntent, ensure_not_too_soon, split_amount, validate_booking_request
from ..models import Reservation, ReservationStatus


@dataclass(frozen=True)
class CardDetails:
    number: str
    name: str
    expiry_month: str
    expiry_year: str
    cvv: str

    def is_complete(self) -> bool:
        return all((self.number, self.name, self.expiry_month, self.expiry_year, self.cvv))


async def commit_reservations(
    res_repo: ReservationRepository,
    *,
    intent: CheckoutIntent,
    user_email: str | None,
    amount_total: int,
    payment_ref: str,
) -> list[Reservation]:
    """
    Write one paid reservation per slot after re-checking each (date, slot, court).

    Callers run this inside one transaction. The pre-check gives a clean conflict for
    the common case; the store's unique constraint rejects a concurrent writer that
    slips in between check and insert, and the transaction rolls back the whole batch.
    """
    for timeslot_id in intent.timeslots:
        occupied = await res_repo.occupied_courts(intent.date, timeslot_id, intent.court_id)
        if intent.court_id in occupied:
            raise SlotUnavailableError(
                "one or more selected slots already reserved",
                date=intent.date,
                court_id=intent.court_id,
                timeslot_id=timeslot_id,
            )

    created: list[Reservation] = []
    for timeslot_id, amount in zip(intent.timeslots, split_amount(amount_total, len(intent.timeslots))):
        created.append(
            await res_repo.create(
                date=intent.date,
                timeslot_id=timeslot_id,
                court_id=intent.court_id,
                user_email=user_email,
                amount=amount,
                payment_ref=payment_ref,
                status=ReservationStatus.PAID,
            )
        )
    return created


async def confirm_checkout(
    gateway: PaymentGateway,
    res_repo: ReservationRepository,
    *,
    session_id: str,
    zone: tzinfo | None,
    now: datetime,
) -> list[Reservation]:
    session = await gateway.retrieve_checkout_session(session_id)
    if not session.is_paid:
        raise PaymentNotCompletedError("payment not completed")

    intent = CheckoutIntent.from_metadata(session.metadata)
    if not intent.date or not intent.court_id or not intent.timeslots:
        raise InvalidBookingRequestError("checkout session has no booking details")

    # The checkout may have sat idle long enough for the slot to start.
    ensure_not_too_soon(intent.date, intent.timeslots, zone=zone, now=now, message="timeslot is in the past")
    return await commit_reservations(
        res_repo,
        intent=intent,
        user_email=session.customer_email,
        amount_total=session.amount_total or 0,
        payment_ref=session.id,
    )


def generate_booking_id() -> str:
    return f"BK-{random.randrange(100_000_000)}"


async def process_mock_payment(
    res_repo: ReservationRepository,
    *,
    courts: Sequence[Court],
    date: str,
    court_id: str,
    timeslots: Sequence[str],
    amount: int,
    card: CardDetails,
    zone: tzinfo | None,
    now: datetime,
) -> tuple[str, list[Reservation]]:
    """Simulated payment: any non-empty card details are accepted, then the booking is committed."""
    validate_booking_request(date, court_id, timeslots, known_court_ids={court.id for court in courts})
    if not card.is_complete():
        raise InvalidBookingRequestError("missing card details")
    ensure_not_too_soon(date, timeslots, zone=zone, now=now)

    booking_id = generate_booking_id()
    intent = CheckoutIntent(date=date, court_id=court_id, timeslots=tuple(timeslots))
    created = await commit_reservations(
        res_repo,
        intent=intent,
        user_email=None,
        amount_total=amount,
        payment_ref=booking_id,
    )
    return booking_id, created


async def get_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
) -> Reservation | None:
    return await res_repo.get(reservation_id)
