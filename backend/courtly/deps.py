from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .domain.payments import PaymentGateway
from .infrastructure.payments import StripeCheckoutGateway
from .utils.time import VenueClock


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_venue_clock(settings: Settings = Depends(get_settings)) -> VenueClock:
    return VenueClock.for_zone(settings.time_zone)


def get_payment_gateway(settings: Settings = Depends(get_settings)) -> PaymentGateway:
    return StripeCheckoutGateway(api_key=settings.stripe_secret_key)
