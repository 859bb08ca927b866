from typing import Sequence

from ..domain.catalog import DEFAULT_COURTS, Court
from ..domain.repositories import CourtRepository, ReservationRepository
from ..domain.services import available_courts


async def list_courts(court_repo: CourtRepository) -> list[Court]:
    courts = await court_repo.list_active()
    if not courts:
        return list(DEFAULT_COURTS)
    return courts


async def list_available_courts(
    court_repo: CourtRepository,
    res_repo: ReservationRepository,
    *,
    date: str,
    timeslots: Sequence[str],
    court_id: str | None = None,
) -> list[Court]:
    """
    Catalog courts not reserved in any of the given timeslots, in catalog order.
    Without a date or timeslots there is nothing to check and the whole catalog is returned.
    """
    courts = await list_courts(court_repo)
    if not date or not timeslots:
        return courts

    occupied: set[str] = set()
    for timeslot_id in timeslots:
        occupied |= await res_repo.occupied_courts(date, timeslot_id, court_id)
    return available_courts(courts, occupied)
