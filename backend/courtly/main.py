import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .database import engine, init_models
from .routers import catalog, checkout, payments, reservations
from .schemas import ErrorResponse
from .utils.request_id import REQUEST_ID_HEADER, resolve_request_id, set_request_id

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await init_models()
    logger.info("courtly started (time zone %s, currency %s)", settings.time_zone, settings.price_currency)
    yield
    await engine.dispose()


app = FastAPI(title="Courtly Booking API", lifespan=lifespan)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Endpoints with their own failure shape pass it pre-built as the detail.
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = ErrorResponse(error=str(exc.detail)).model_dump()
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "invalid body"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        message = f"invalid request: {location} {errors[0].get('msg', '')}".strip()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=ErrorResponse(error=message).model_dump())


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)
app.middleware("http")(request_id_middleware)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(catalog.router)
app.include_router(checkout.router)
app.include_router(payments.router)
app.include_router(reservations.router)


def run() -> None:
    uvicorn.run("courtly.main:app", host="0.0.0.0", port=settings.port)
