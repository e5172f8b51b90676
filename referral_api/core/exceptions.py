"""
Domain exceptions and the handlers that turn them into JSON responses.

Every error leaves the API as ``{"error": <message>}`` with the status code
carried by the exception class.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ReferralError(Exception):
    """Base exception class for the referral service"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReferralError):
    """400 missing or malformed input"""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ReferralError):
    """400 uniqueness violation (the public API reports conflicts as bad requests)"""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ReferralError):
    """404 unknown wallet or identifier"""

    status_code = status.HTTP_404_NOT_FOUND


class StoreError(ReferralError):
    """500 underlying database failure"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def referral_error_handler(request: Request, exc: ReferralError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")

    first = errors[0]
    # loc looks like ("body", "wallet_address"); drop the "body" part
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        f"Invalid {field}: {message}" if field else f"Invalid request: {message}",
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReferralError, referral_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
