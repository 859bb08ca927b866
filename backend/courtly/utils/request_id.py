from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INCOMING_LENGTH = 128

_request_id_ctx: ContextVar[str | None] = ContextVar("courtly_request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(incoming: str | None) -> str:
    """Reuse the caller's id when it is short printable ASCII, otherwise mint one."""
    if incoming:
        candidate = incoming.strip()
        if 0 < len(candidate) <= _MAX_INCOMING_LENGTH and candidate.isascii() and candidate.isprintable():
            return candidate
    return generate_request_id()


def set_request_id(request_id: str | None) -> None:
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
