from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

# Stripe reports one of these once the customer has paid (or nothing was owed).
SETTLED_PAYMENT_STATUSES = frozenset({"paid", "no_payment_required"})


@dataclass(frozen=True)
class LineItem:
    name: str
    description: str
    currency: str
    unit_amount: int
    quantity: int


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    amount_total: int | None = None
    customer_email: str | None = None
    payment_status: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status in SETTLED_PAYMENT_STATUSES


class PaymentGateway(Protocol):
    async def create_checkout_session(
        self,
        *,
        line_item: LineItem,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession: ...

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession: ...
