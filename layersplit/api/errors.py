"""Map domain exceptions onto HTTP responses"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from layersplit.api.dependencies import get_request_id
from layersplit.domain.exceptions import (
    AdapterFailure,
    DomainException,
    InvalidAddressError,
    InvalidAmountError,
    InvalidSplit,
    MissingWalletLink,
    NotFound,
    ReconciliationMismatch,
    StateConflict,
)

STATUS_BY_ERROR = [
    (NotFound, 404),
    (InvalidSplit, 422),
    (InvalidAmountError, 422),
    (InvalidAddressError, 422),
    (MissingWalletLink, 409),
    (StateConflict, 409),
    (ReconciliationMismatch, 409),
    (AdapterFailure, 502),
]


def status_for(exc: DomainException) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_for(exc)
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    logging.log(
        level,
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "entity": exc.entity,
            "entity_id": exc.entity_id,
            "detail": exc.detail(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
