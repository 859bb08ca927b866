from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from courtly.domain.catalog import DEFAULT_COURTS, Court
from courtly.domain.errors import PaymentProviderError, SlotUnavailableError
from courtly.domain.payments import CheckoutSession, LineItem
from courtly.models import Reservation, ReservationStatus

UTC7 = timezone(timedelta(hours=7))


class FakeCourtRepo:
    def __init__(self, courts: Optional[list[Court]] = None) -> None:
        self.courts = courts if courts is not None else []

    async def list_active(self) -> list[Court]:
        return list(self.courts)


class FakeReservationRepo:
    """In-memory reservation store with the same (date, timeslot, court) uniqueness as the real table."""

    def __init__(self, *, yield_between_check_and_write: bool = False) -> None:
        self.rows: list[Reservation] = []
        self.queries: list[tuple[str, str, Optional[str]]] = []
        self.yield_between_check_and_write = yield_between_check_and_write

    def seed(self, date: str, timeslot_id: str, court_id: str) -> None:
        self.rows.append(
            Reservation(
                id=len(self.rows) + 1,
                date=date,
                timeslot_id=timeslot_id,
                court_id=court_id,
                user_email=None,
                amount=0,
                status=ReservationStatus.PAID,
                created_at=datetime(2025, 1, 1),
                payment_ref="seed",
            )
        )

    async def occupied_courts(self, date: str, timeslot_id: str, court_id: Optional[str] = None) -> set[str]:
        self.queries.append((date, timeslot_id, court_id))
        occupied = {
            row.court_id
            for row in self.rows
            if row.date == date and row.timeslot_id == timeslot_id and (court_id is None or row.court_id == court_id)
        }
        if self.yield_between_check_and_write:
            await asyncio.sleep(0)
        return occupied

    async def create(self, **kwargs: Any) -> Reservation:
        key = (kwargs["date"], kwargs["timeslot_id"], kwargs["court_id"])
        if any((row.date, row.timeslot_id, row.court_id) == key for row in self.rows):
            raise SlotUnavailableError(
                "one or more selected slots already reserved",
                date=kwargs["date"],
                court_id=kwargs["court_id"],
                timeslot_id=kwargs["timeslot_id"],
            )
        reservation = Reservation(id=len(self.rows) + 1, created_at=datetime(2025, 1, 1), **kwargs)
        self.rows.append(reservation)
        return reservation

    async def get(self, reservation_id: int) -> Optional[Reservation]:
        return next((row for row in self.rows if row.id == reservation_id), None)


class FakeGateway:
    def __init__(self, session: Optional[CheckoutSession] = None, error: Optional[str] = None) -> None:
        self.session = session
        self.error = error
        self.created: list[dict[str, Any]] = []
        self.retrieved: list[str] = []

    async def create_checkout_session(
        self,
        *,
        line_item: LineItem,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        if self.error is not None:
            raise PaymentProviderError(self.error)
        self.created.append(
            {"line_item": line_item, "metadata": metadata, "success_url": success_url, "cancel_url": cancel_url}
        )
        return CheckoutSession(id="cs_test_1", url="https://checkout.stripe.test/c/cs_test_1", metadata=metadata)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self.retrieved.append(session_id)
        if self.error is not None:
            raise PaymentProviderError(self.error)
        assert self.session is not None
        return self.session


def paid_session(metadata: dict[str, str], *, amount_total: int = 100000, session_id: str = "cs_paid") -> CheckoutSession:
    return CheckoutSession(
        id=session_id,
        metadata=metadata,
        amount_total=amount_total,
        customer_email="player@example.com",
        payment_status="paid",
    )


@pytest.fixture
def courts() -> list[Court]:
    return list(DEFAULT_COURTS)


@pytest.fixture
def morning_now() -> datetime:
    """07:00 at UTC+7 on the booking date used throughout the tests."""
    return datetime(2025, 6, 1, 7, 0, tzinfo=UTC7)


@pytest.fixture
def court_repo() -> FakeCourtRepo:
    return FakeCourtRepo()


@pytest.fixture
def res_repo() -> FakeReservationRepo:
    return FakeReservationRepo()


@pytest.fixture
def make_res_repo() -> type[FakeReservationRepo]:
    return FakeReservationRepo


@pytest.fixture
def make_gateway() -> type[FakeGateway]:
    return FakeGateway


@pytest.fixture
def make_paid_session() -> Any:
    return paid_session
