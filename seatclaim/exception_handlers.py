"""Translate errors into the failure envelope at the request boundary."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from seatclaim.config import get_settings
from seatclaim.exceptions import ClaimError, ValidationFailedError
from seatclaim.schemas.common import ErrorResponse, FieldError

settings = get_settings()
logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, errors: list[dict] | None = None) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        errors=[FieldError(**e) for e in errors] if errors else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


async def claim_error_handler(request: Request, exc: ClaimError) -> JSONResponse:
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    errors = exc.errors if isinstance(exc, ValidationFailedError) else None
    return _envelope(exc.status_code, exc.message, errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "request", "message": error.get("msg", "")})
    logger.info(f"Validation error on {request.url.path}: {errors}")
    return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) if settings.DEBUG else "Internal server error",
    )


# Exception handler mapping
EXCEPTION_HANDLERS = {
    ClaimError: claim_error_handler,
    StarletteHTTPException: http_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
