from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "checkout.created",
    "reservation.created",
    "reservation.conflict",
]
AuditInitiator = Literal["customer", "system"]


def _build_audit_logger(name: str = "audit") -> logging.Logger:
    """One JSON document per line on stderr, kept out of the application log tree."""
    audit_logger = logging.getLogger(name)
    audit_logger.setLevel(logging.INFO)
    if not audit_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        audit_logger.addHandler(handler)
    audit_logger.propagate = False
    return audit_logger


_audit_logger = _build_audit_logger()


@dataclass
class AuditEvent:
    action: str
    initiator: str
    date: Optional[str] = None
    court_id: Optional[str] = None
    timeslot_id: Optional[str] = None
    reservation_id: Optional[int] = None
    payment_ref: Optional[str] = None
    amount: Optional[int] = None
    status: Optional[str] = None
    message: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self, extra: Optional[dict[str, Any]] = None) -> str:
        document = {key: value for key, value in asdict(self).items() if value is not None}
        document["level"] = "info"
        if extra:
            document.update(extra)
        return json.dumps(document, ensure_ascii=True)


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    date: Optional[str],
    court_id: Optional[str],
    timeslot_id: Optional[str] = None,
    reservation_id: Optional[int] = None,
    payment_ref: Optional[str] = None,
    amount: Optional[int] = None,
    status: Optional[Any] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """
    Write one audit event for a booking action.

    Empty fields are omitted and ``extra`` keys are merged at the top level.
    Raises RuntimeError when the event cannot be written.
    """
    event = AuditEvent(
        action=action,
        initiator=initiator,
        date=date,
        court_id=court_id,
        timeslot_id=timeslot_id,
        reservation_id=reservation_id,
        payment_ref=payment_ref,
        amount=amount,
        status=status.value if isinstance(status, Enum) else status,
        message=message,
        request_id=get_request_id(),
    )
    try:
        _audit_logger.info(event.to_json(extra))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
