from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from storefront.core.exceptions import (
    InsufficientStock,
    InvalidOrderState,
    NotFound,
    OrderCancelled,
    PersistenceFailure,
    StockBusy,
    StorefrontError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 400,
    NotFound: 404,
    InsufficientStock: 409,
    StockBusy: 409,
    OrderCancelled: 409,
    InvalidOrderState: 409,
    PersistenceFailure: 503,
}


def status_code_for(exc: StorefrontError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    body = {"detail": str(exc)}
    if isinstance(exc, InsufficientStock):
        body.update(item_id=exc.item_id, requested=exc.requested, available=exc.available)
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
