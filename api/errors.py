"""Mapping of domain errors to HTTP responses"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from domain.errors import (
    CapacityExceeded, DomainError, DuplicateEmail, DuplicateInventoryItem, DuplicateMenuItem,
    DuplicateTableNumber, EmptyOrder, Forbidden, InvalidCredentials, InvalidGuestCount,
    InvalidInterval, InvalidQuantity, InvalidStatus, InventoryItemNotFound, MenuItemNotFound,
    MenuItemUnavailable, OrderNotFound, PastReservation, ReservationNotFound, SlotConflict,
    TableNotFound, UserNotFound
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidInterval: status.HTTP_400_BAD_REQUEST,
    PastReservation: status.HTTP_400_BAD_REQUEST,
    CapacityExceeded: status.HTTP_400_BAD_REQUEST,
    InvalidGuestCount: status.HTTP_400_BAD_REQUEST,
    InvalidStatus: status.HTTP_400_BAD_REQUEST,
    DuplicateTableNumber: status.HTTP_400_BAD_REQUEST,
    DuplicateEmail: status.HTTP_400_BAD_REQUEST,
    DuplicateMenuItem: status.HTTP_400_BAD_REQUEST,
    DuplicateInventoryItem: status.HTTP_400_BAD_REQUEST,
    MenuItemUnavailable: status.HTTP_400_BAD_REQUEST,
    EmptyOrder: status.HTTP_400_BAD_REQUEST,
    InvalidQuantity: status.HTTP_400_BAD_REQUEST,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    TableNotFound: status.HTTP_404_NOT_FOUND,
    ReservationNotFound: status.HTTP_404_NOT_FOUND,
    UserNotFound: status.HTTP_404_NOT_FOUND,
    MenuItemNotFound: status.HTTP_404_NOT_FOUND,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    InventoryItemNotFound: status.HTTP_404_NOT_FOUND,
    SlotConflict: status.HTTP_409_CONFLICT,
}


def status_code_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_code_for(exc)
    logger.info("%s %s -> %d %s", request.method, request.url.path, code, type(exc).__name__)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content={"detail": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc) -> JSONResponse:
    """Malformed requests and entities failing their own field rules are reported as 400"""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message or "Invalid request", "errors": jsonable_errors(errors)}
    )


def jsonable_errors(errors):
    return [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
