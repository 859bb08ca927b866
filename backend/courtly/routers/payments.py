import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, get_venue_clock
from ..domain.errors import InvalidBookingRequestError, SlotTooSoonError, SlotUnavailableError
from ..infrastructure.repositories import SqlAlchemyCourtRepository, SqlAlchemyReservationRepository
from ..schemas import MockPaymentCreate, MockPaymentResponse
from ..usecases import courts as court_usecase
from ..usecases import reservations as reservation_usecase
from ..usecases.reservations import CardDetails
from ..utils.audit_log import emit_audit_log
from ..utils.time import VenueClock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["payments"])


def _payment_failure(status_code: int, message: str) -> HTTPException:
    body = MockPaymentResponse(success=False, error=message).model_dump(by_alias=True, exclude_none=True)
    return HTTPException(status_code=status_code, detail=body)


@router.post("/process-payment", response_model=MockPaymentResponse, response_model_exclude_none=True)
async def process_payment(
    payload: MockPaymentCreate,
    session: AsyncSession = Depends(get_session),
    clock: VenueClock = Depends(get_venue_clock),
) -> MockPaymentResponse:
    """Simulated card payment; no card data is checked beyond presence."""
    court_repo = SqlAlchemyCourtRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    card = CardDetails(
        number=payload.card_number,
        name=payload.card_name,
        expiry_month=payload.expiry_month,
        expiry_year=payload.expiry_year,
        cvv=payload.cvv,
    )
    try:
        async with session.begin():
            courts = await court_usecase.list_courts(court_repo)
            booking_id, created = await reservation_usecase.process_mock_payment(
                res_repo,
                courts=courts,
                date=payload.date,
                court_id=payload.court_id,
                timeslots=payload.timeslots,
                amount=payload.amount,
                card=card,
                zone=clock.zone,
                now=clock.now(),
            )
            for reservation in created:
                emit_audit_log(
                    action="reservation.created",
                    initiator="customer",
                    reservation_id=reservation.id,
                    date=reservation.date,
                    timeslot_id=reservation.timeslot_id,
                    court_id=reservation.court_id,
                    payment_ref=reservation.payment_ref,
                    amount=reservation.amount,
                    status=reservation.status,
                    extra={"payment_method": "mock"},
                )
    except (InvalidBookingRequestError, SlotTooSoonError) as exc:
        raise _payment_failure(status.HTTP_400_BAD_REQUEST, str(exc))
    except SlotUnavailableError as exc:
        return MockPaymentResponse(success=False, error=str(exc))
    except SQLAlchemyError:
        logger.exception("mock payment commit failed for date=%s court=%s", payload.date, payload.court_id)
        raise _payment_failure(status.HTTP_503_SERVICE_UNAVAILABLE, "reservation store unavailable")
    except RuntimeError:
        raise _payment_failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "audit log failed")

    return MockPaymentResponse(success=True, booking_id=booking_id)
