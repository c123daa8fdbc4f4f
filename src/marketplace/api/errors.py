"""Translate raised errors into the ``{"success": false, ...}`` envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.shared.errors import InternalError, InvalidInput, MarketplaceError, NotFound

logger = structlog.get_logger(__name__)


def _failure(error: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _first_message(messages) -> str | None:
    if isinstance(messages, dict):
        for field_name, errors in messages.items():
            if errors:
                return f"{field_name}: {errors[0]}"
    return None


def register_error_handlers(app: FastAPI) -> None:
    """Register envelope-producing handlers for every error the API can raise."""

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
        logger.info("request.rejected", kind=exc.kind, code=exc.code, error=exc.message)
        return _failure(exc)

    @app.exception_handler(ValidationError)
    async def domain_validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _failure(InvalidInput(_first_message(exc.messages)))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = None
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
        return _failure(InvalidInput(message))

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
        return _failure(NotFound())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.failed", error_type=type(exc).__name__)
        return _failure(InternalError())
