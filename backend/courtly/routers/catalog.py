import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, get_venue_clock
from ..domain.catalog import generate_timeslots
from ..domain.services import parse_timeslots
from ..infrastructure.repositories import SqlAlchemyCourtRepository, SqlAlchemyReservationRepository
from ..schemas import CourtRead, CourtsResponse, NowResponse, TimeslotRead, TimeslotsResponse
from ..usecases import courts as court_usecase
from ..utils.time import VenueClock, utc_offset_minutes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["catalog"])


@router.get("/timeslots", response_model=TimeslotsResponse)
async def list_timeslots() -> TimeslotsResponse:
    return TimeslotsResponse(timeslots=[TimeslotRead.from_domain(slot) for slot in generate_timeslots()])


@router.get("/courts", response_model=CourtsResponse, response_model_exclude_none=True)
async def list_courts(
    date: str = Query(default="", description="YYYY-MM-DD"),
    timeslots: str = Query(default="", description="Comma-separated timeslot ids"),
    timeslot: str = Query(default="", description="Single timeslot id, used when timeslots is empty"),
    session: AsyncSession = Depends(get_session),
) -> CourtsResponse:
    court_repo = SqlAlchemyCourtRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        courts = await court_usecase.list_available_courts(
            court_repo,
            res_repo,
            date=date,
            timeslots=parse_timeslots(timeslots or timeslot),
        )
    except SQLAlchemyError:
        logger.exception("availability lookup failed for date=%s timeslots=%s", date, timeslots or timeslot)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="reservation store unavailable")
    return CourtsResponse(courts=[CourtRead.from_domain(court) for court in courts])


@router.get("/now", response_model=NowResponse)
async def get_now(clock: VenueClock = Depends(get_venue_clock)) -> NowResponse:
    now = clock.now()
    return NowResponse(
        now_unix_ms=int(now.timestamp() * 1000),
        now_iso=now.isoformat(timespec="seconds"),
        timezone=clock.zone_name,
        utc_offset_minutes=utc_offset_minutes(now),
    )
