"""Map domain exceptions onto HTTP responses with an ``{"error": ...}`` body."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import (
    DatabaseError,
    ExpectedVersionError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    TransactionError,
    ValidationError,
)

from storefront.exceptions import (
    CheckoutFailedError,
    NotAuthenticatedError,
    NotAuthorizedError,
    PersistenceError,
    ReferentialIntegrityError,
    StorefrontError,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    ValidationError: 422,
    ObjectNotFoundError: 404,
    InvalidStateError: 409,
    ReferentialIntegrityError: 409,
    ExpectedVersionError: 409,
    NotAuthenticatedError: 401,
    NotAuthorizedError: 403,
    CheckoutFailedError: 503,
    PersistenceError: 503,
    TransactionError: 503,
    DatabaseError: 503,
}

_UNAVAILABLE = PersistenceError.default_message


def status_code_for(exc: ProteanException) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 500


def _first_message(messages) -> str:
    if isinstance(messages, dict):
        for value in messages.values():
            if value:
                return _first_message(value)
    elif isinstance(messages, list | tuple):
        if messages:
            return _first_message(messages[0])
    elif messages:
        return str(messages)
    return "Invalid input"


def error_message_for(exc: ProteanException, status_code: int) -> str:
    if isinstance(exc, StorefrontError):
        return exc.message
    if isinstance(exc, ValidationError):
        return _first_message(exc.messages)
    # Store errors carry driver detail that must not reach the caller
    if status_code >= 500:
        return _UNAVAILABLE
    if exc.args and isinstance(exc.args[0], str):
        return exc.args[0]
    return "Request could not be completed"


async def domain_error_handler(request: Request, exc: ProteanException) -> JSONResponse:
    status_code = status_code_for(exc)
    message = error_message_for(exc, status_code)
    content = {"error": message}
    if isinstance(exc, ValidationError) and isinstance(exc.messages, dict):
        content["fields"] = exc.messages

    if status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=str(exc))
    else:
        logger.info("Request rejected", path=request.url.path, status_code=status_code, error=message)
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProteanException, domain_error_handler)
