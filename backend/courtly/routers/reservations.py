from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import ReservationRead
from ..usecases import reservations as reservation_usecase

router = APIRouter(prefix="", tags=["reservations"])


@router.get("/reservations/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    reservation = await reservation_usecase.get_reservation(res_repo, reservation_id=reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
    return ReservationRead.from_db(reservation=reservation)
