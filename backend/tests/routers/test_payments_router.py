from datetime import datetime, timedelta, timezone
from typing import Any, cast

import pytest
from courtly.domain.catalog import DEFAULT_COURTS
from courtly.domain.errors import InvalidBookingRequestError, SlotTooSoonError, SlotUnavailableError
from courtly.models import Reservation, ReservationStatus
from courtly.routers import payments as router
from courtly.schemas import MockPaymentCreate
from courtly.usecases.reservations import CardDetails
from courtly.utils.time import VenueClock
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

CLOCK = VenueClock(zone_name="Asia/Jakarta", zone=timezone(timedelta(hours=7)))


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


PAYLOAD = MockPaymentCreate.model_validate(
    {
        "date": "2025-06-01",
        "timeslots": ["18:00-19:00"],
        "courtId": "court-4",
        "amount": 50000,
        "cardNumber": "4242424242424242",
        "cardName": "A Player",
        "expiryMonth": "12",
        "expiryYear": "30",
        "cvv": "123",
    }
)


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    async def fake_list_courts(*args: object, **kwargs: object) -> list:
        return list(DEFAULT_COURTS)

    monkeypatch.setattr(router, "SqlAlchemyCourtRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyReservationRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router.court_usecase, "list_courts", fake_list_courts)
    monkeypatch.setattr(router, "emit_audit_log", fake_emit)
    return calls


def _raising(exc: Exception):
    async def fake_process(*args: object, **kwargs: object) -> None:
        raise exc

    return fake_process


async def _pay():
    return await router.process_payment(payload=PAYLOAD, session=cast(AsyncSession, DummySession()), clock=CLOCK)


@pytest.mark.asyncio
async def test_process_payment_returns_booking_id(monkeypatch, audit_calls) -> None:
    seen: dict[str, Any] = {}

    async def fake_process(res_repo: object, **kwargs: Any) -> tuple[str, list[Reservation]]:
        seen.update(kwargs)
        reservation = Reservation(
            id=9,
            date="2025-06-01",
            timeslot_id="18:00-19:00",
            court_id="court-4",
            user_email=None,
            amount=50000,
            status=ReservationStatus.PAID,
            created_at=datetime(2025, 6, 1),
            payment_ref="BK-7",
        )
        return "BK-7", [reservation]

    monkeypatch.setattr(router.reservation_usecase, "process_mock_payment", fake_process)

    result = await _pay()
    assert (result.success, result.booking_id) == (True, "BK-7")
    assert seen["card"] == CardDetails("4242424242424242", "A Player", "12", "30", "123")
    assert [court.id for court in seen["courts"]] == ["court-1", "court-2", "court-3", "court-4"]
    assert audit_calls[0]["action"] == "reservation.created"
    assert audit_calls[0]["extra"] == {"payment_method": "mock"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [InvalidBookingRequestError("missing card details"), SlotTooSoonError("cannot book a past/soon timeslot")],
)
async def test_process_payment_bad_request_is_400(monkeypatch, audit_calls, exc: Exception) -> None:
    monkeypatch.setattr(router.reservation_usecase, "process_mock_payment", _raising(exc))

    with pytest.raises(HTTPException) as excinfo:
        await _pay()
    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == {"success": False, "error": str(exc)}


@pytest.mark.asyncio
async def test_process_payment_conflict_is_success_false(monkeypatch, audit_calls) -> None:
    monkeypatch.setattr(
        router.reservation_usecase,
        "process_mock_payment",
        _raising(SlotUnavailableError("one or more selected slots already reserved")),
    )

    result = await _pay()
    assert result.success is False
    assert result.booking_id is None
    assert result.error == "one or more selected slots already reserved"
    assert audit_calls == []


@pytest.mark.asyncio
async def test_process_payment_store_failure_is_503(monkeypatch, audit_calls) -> None:
    monkeypatch.setattr(
        router.reservation_usecase,
        "process_mock_payment",
        _raising(OperationalError("INSERT", {}, Exception("lost connection"))),
    )

    with pytest.raises(HTTPException) as excinfo:
        await _pay()
    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == {"success": False, "error": "reservation store unavailable"}
