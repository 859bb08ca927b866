import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_payment_gateway, get_session, get_venue_clock
from ..domain.errors import (
    InvalidBookingRequestError,
    PaymentNotCompletedError,
    PaymentProviderError,
    SlotTooSoonError,
    SlotUnavailableError,
)
from ..domain.payments import PaymentGateway
from ..infrastructure.repositories import SqlAlchemyCourtRepository, SqlAlchemyReservationRepository
from ..schemas import CheckoutSessionCreate, CheckoutSessionResponse, ConfirmResponse
from ..usecases import checkout as checkout_usecase
from ..usecases import courts as court_usecase
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import VenueClock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["checkout"])


def _confirm_failure(status_code: int, message: str) -> HTTPException:
    body = ConfirmResponse(ok=False, error=message).model_dump(by_alias=True, exclude_none=True)
    return HTTPException(status_code=status_code, detail=body)


@router.post("/checkout-session", response_model=CheckoutSessionResponse, response_model_exclude_none=True)
async def create_checkout_session(
    payload: CheckoutSessionCreate,
    court: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
    clock: VenueClock = Depends(get_venue_clock),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutSessionResponse:
    court_repo = SqlAlchemyCourtRepository(session)
    try:
        courts = await court_usecase.list_courts(court_repo)
    except SQLAlchemyError:
        logger.exception("court catalog lookup failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="reservation store unavailable")

    try:
        checkout, intent = await checkout_usecase.create_checkout_session(
            gateway,
            courts=courts,
            date=payload.date,
            court_id=payload.court_id or court or "",
            timeslots=payload.requested_timeslots(),
            price_per_slot=settings.price_per_slot,
            currency=settings.price_currency,
            public_base_url=settings.public_base_url,
            zone=clock.zone,
            now=clock.now(),
        )
    except (InvalidBookingRequestError, SlotTooSoonError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except PaymentProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    try:
        emit_audit_log(
            action="checkout.created",
            initiator="customer",
            date=intent.date,
            court_id=intent.court_id,
            payment_ref=checkout.id,
            extra={"timeslots": list(intent.timeslots)},
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")
    return CheckoutSessionResponse(url=checkout.url)


@router.get("/confirm", response_model=ConfirmResponse, response_model_exclude_none=True)
async def confirm_checkout(
    session_id: str = Query(default=""),
    session: AsyncSession = Depends(get_session),
    clock: VenueClock = Depends(get_venue_clock),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> ConfirmResponse:
    if not session_id:
        raise _confirm_failure(status.HTTP_400_BAD_REQUEST, "missing session_id")

    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            created = await reservation_usecase.confirm_checkout(
                gateway,
                res_repo,
                session_id=session_id,
                zone=clock.zone,
                now=clock.now(),
            )
            # Inside the transaction: a reservation is only committed once it is audited.
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
                )
    except SlotUnavailableError as exc:
        try:
            emit_audit_log(
                action="reservation.conflict",
                initiator="customer",
                date=exc.date,
                court_id=exc.court_id,
                timeslot_id=exc.timeslot_id,
                payment_ref=session_id,
                message=str(exc),
            )
        except RuntimeError:
            raise _confirm_failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "audit log failed")
        return ConfirmResponse(ok=False, error=str(exc))
    except (InvalidBookingRequestError, SlotTooSoonError, PaymentNotCompletedError) as exc:
        return ConfirmResponse(ok=False, error=str(exc))
    except PaymentProviderError as exc:
        raise _confirm_failure(status.HTTP_502_BAD_GATEWAY, str(exc))
    except SQLAlchemyError:
        logger.exception("reservation commit failed for checkout session %s", session_id)
        raise _confirm_failure(status.HTTP_503_SERVICE_UNAVAILABLE, "reservation store unavailable")
    except RuntimeError:
        raise _confirm_failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "audit log failed")

    logger.info("confirmed checkout session %s with %d reservation(s)", session_id, len(created))
    return ConfirmResponse(ok=True)
