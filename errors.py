"""
Error types and their JSON rendering.

Every failure a handler can report maps onto one of these classes and is
rendered as {"error": "<message>"}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(APIError):
    """Malformed or incomplete input."""

    status_code = 400


class ConflictError(APIError):
    """Duplicate business key. Reported as 400, not 409."""

    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class InternalError(APIError):
    """Hashing, store or decode failure. The message never carries details."""

    status_code = 500


def error_body(message: str) -> dict:
    return {"error": message}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=error_body("Invalid request"))


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
