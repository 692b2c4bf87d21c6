import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(RelayError):
    """The caller omitted or malformed a required field."""

    status_code = 400


class UpstreamError(RelayError):
    """The provider call failed or returned an unusable response."""

    status_code = 500


def create_error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    if details is None:
        logging.error(f"Error {status_code}: {error}")
        return JSONResponse(status_code=status_code, content={"error": error})

    logging.error(f"Error {status_code}: {error} ({details})")
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return create_error_response(exc.status_code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed JSON or wrongly typed fields; missing fields are handled by the routes
    errors = exc.errors()
    if not errors:
        return create_error_response(400, "Invalid request body.")

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    if location:
        message = f"{location}: {message}"
    return create_error_response(400, f"Invalid request body ({message}).")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
