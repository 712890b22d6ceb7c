# inspector_booking/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from inspector_booking.db import init_db
from inspector_booking.errors import SchedulingError, StorageUnavailable
from inspector_booking.logging_config import setup_logging
from inspector_booking.routers import (
    auth_routes,
    bookings_routes,
    inspectors_routes,
    public_routes,
    users_routes,
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    yield


app = FastAPI(title="Inspector Booking API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(inspectors_routes.router)
app.include_router(bookings_routes.router)
app.include_router(public_routes.router)


def _error_response(exc: SchedulingError) -> JSONResponse:
    body = {"detail": exc.detail, "error": exc.name}
    if exc.retryable:
        body["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return _error_response(exc)


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Storage unavailable on {request.method} {request.url.path}: {exc}")
    return _error_response(StorageUnavailable("Storage temporarily unavailable, please retry"))


@app.get("/health")
def health_check():
    return {"status": "ok"}
