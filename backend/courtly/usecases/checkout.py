from datetime import datetime, tzinfo
from typing import Sequence
from urllib.parse import urlencode

from ..domain.catalog import Court
from ..domain.payments import CheckoutSession, LineItem, PaymentGateway
from ..domain.services import CheckoutIntent, ensure_not_too_soon, to_minor_units, validate_booking_request

PRODUCT_NAME = "Badminton Court Reservation"


def build_line_item(intent: CheckoutIntent, *, price_per_slot: int, currency: str) -> LineItem:
    return LineItem(
        name=PRODUCT_NAME,
        description=f"{intent.date} [{', '.join(intent.timeslots)}] - {intent.court_id}",
        currency=currency.lower(),
        unit_amount=to_minor_units(price_per_slot, currency),
        quantity=len(intent.timeslots),
    )


def build_redirect_urls(intent: CheckoutIntent, *, public_base_url: str) -> tuple[str, str]:
    query = urlencode({"date": intent.date, "timeslots": ",".join(intent.timeslots), "court": intent.court_id})
    # Stripe substitutes the placeholder itself, so it must stay unencoded.
    success_url = f"{public_base_url}/success?{query}&session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{public_base_url}/cancel"
    return success_url, cancel_url


async def create_checkout_session(
    gateway: PaymentGateway,
    *,
    courts: Sequence[Court],
    date: str,
    court_id: str,
    timeslots: Sequence[str],
    price_per_slot: int,
    currency: str,
    public_base_url: str,
    zone: tzinfo | None,
    now: datetime,
) -> tuple[CheckoutSession, CheckoutIntent]:
    validate_booking_request(date, court_id, timeslots, known_court_ids={court.id for court in courts})
    ensure_not_too_soon(date, timeslots, zone=zone, now=now)

    intent = CheckoutIntent(date=date, court_id=court_id, timeslots=tuple(timeslots))
    success_url, cancel_url = build_redirect_urls(intent, public_base_url=public_base_url)
    session = await gateway.create_checkout_session(
        line_item=build_line_item(intent, price_per_slot=price_per_slot, currency=currency),
        metadata=intent.to_metadata(),
        success_url=success_url,
        cancel_url=cancel_url,
    )
    return session, intent
