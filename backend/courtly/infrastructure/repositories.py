from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.catalog import Court
from ..domain.errors import SlotUnavailableError
from ..domain.repositories import CourtRepository, ReservationRepository
from ..models import SLOT_UNIQUE_CONSTRAINT, CourtRecord, Reservation, ReservationStatus
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)

# MySQL names the violated key; SQLite lists the constrained columns instead.
_SLOT_CONFLICT_MARKERS = (
    SLOT_UNIQUE_CONSTRAINT,
    "UNIQUE constraint failed: reservations.date, reservations.timeslot_id, reservations.court_id",
)


def is_slot_conflict(exc: IntegrityError) -> bool:
    """True when the integrity error is the (date, timeslot, court) uniqueness rule and nothing else."""
    text = str(exc.orig)
    return any(marker in text for marker in _SLOT_CONFLICT_MARKERS)


class SqlAlchemyCourtRepository(CourtRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_active(self) -> list[Court]:
        stmt = (
            select(CourtRecord)
            .where(CourtRecord.active.is_(True))
            .order_by(CourtRecord.position, CourtRecord.id)
        )
        rows = await self.session.scalars(stmt)
        return [
            Court(
                id=row.id,
                name=row.name,
                description=row.description,
                price_per_hour=row.price_per_hour,
                active=row.active,
            )
            for row in rows
        ]


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def occupied_courts(
        self,
        date: str,
        timeslot_id: str,
        court_id: str | None = None,
    ) -> set[str]:
        stmt = select(Reservation.court_id).where(
            Reservation.date == date,
            Reservation.timeslot_id == timeslot_id,
            Reservation.status == ReservationStatus.PAID,
        )
        if court_id is not None:
            stmt = stmt.where(Reservation.court_id == court_id)
        rows = await self.session.scalars(stmt)
        return set(rows)

    async def create(
        self,
        *,
        date: str,
        timeslot_id: str,
        court_id: str,
        user_email: str | None,
        amount: int,
        payment_ref: str,
        status: ReservationStatus,
    ) -> Reservation:
        reservation = Reservation(
            date=date,
            timeslot_id=timeslot_id,
            court_id=court_id,
            user_email=user_email,
            amount=amount,
            status=status,
            created_at=utc_now_naive(),
            payment_ref=payment_ref,
        )
        self.session.add(reservation)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if not is_slot_conflict(exc):
                logger.error("reservation insert failed date=%s timeslot=%s court=%s: %s", date, timeslot_id, court_id, exc.orig)
                raise
            logger.info(
                "reservation insert rejected by unique constraint date=%s timeslot=%s court=%s",
                date,
                timeslot_id,
                court_id,
            )
            raise SlotUnavailableError(
                "one or more selected slots already reserved",
                date=date,
                court_id=court_id,
                timeslot_id=timeslot_id,
            ) from exc
        return reservation

    async def get(self, reservation_id: int) -> Reservation | None:
        return await self.session.get(Reservation, reservation_id)
