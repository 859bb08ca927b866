from __future__ import annotations

from typing import Protocol

from ..models import Reservation, ReservationStatus
from .catalog import Court


class CourtRepository(Protocol):
    async def list_active(self) -> list[Court]: ...


class ReservationRepository(Protocol):
    async def occupied_courts(
        self,
        date: str,
        timeslot_id: str,
        court_id: str | None = None,
    ) -> set[str]: ...

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
    ) -> Reservation: ...

    async def get(self, reservation_id: int) -> Reservation | None: ...
