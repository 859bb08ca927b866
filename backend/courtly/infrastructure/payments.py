from __future__ import annotations

import logging
from typing import Any

import stripe
from fastapi.concurrency import run_in_threadpool

from ..domain.errors import PaymentProviderError
from ..domain.payments import CheckoutSession, LineItem, PaymentGateway

logger = logging.getLogger(__name__)


def _plain_dict(obj: Any) -> dict[str, str]:
    if not obj:
        return {}
    return {str(key): str(obj[key]) for key in obj.keys()}


def _to_checkout_session(obj: Any) -> CheckoutSession:
    details = getattr(obj, "customer_details", None)
    return CheckoutSession(
        id=obj.id,
        url=getattr(obj, "url", None),
        metadata=_plain_dict(getattr(obj, "metadata", None)),
        amount_total=getattr(obj, "amount_total", None),
        customer_email=getattr(details, "email", None) if details is not None else None,
        payment_status=getattr(obj, "payment_status", None),
    )


class StripeCheckoutGateway(PaymentGateway):
    """Hosted Stripe Checkout. SDK calls are blocking and run in the thread pool."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    async def create_checkout_session(
        self,
        *,
        line_item: LineItem,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "line_items": [
                {
                    "quantity": line_item.quantity,
                    "price_data": {
                        "currency": line_item.currency.lower(),
                        "unit_amount": line_item.unit_amount,
                        "product_data": {
                            "name": line_item.name,
                            "description": line_item.description,
                        },
                    },
                }
            ],
            "metadata": metadata,
        }
        try:
            created = await run_in_threadpool(stripe.checkout.Session.create, api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.error("stripe checkout session create failed: %s", exc)
            raise PaymentProviderError(exc.user_message or str(exc)) from exc
        return _to_checkout_session(created)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        try:
            retrieved = await run_in_threadpool(stripe.checkout.Session.retrieve, session_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error("stripe checkout session %s retrieve failed: %s", session_id, exc)
            raise PaymentProviderError(exc.user_message or str(exc)) from exc
        return _to_checkout_session(retrieved)
