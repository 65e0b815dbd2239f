"""
Error taxonomy shared by the checkout, webhook and order admin routes.

Every error carries the HTTP status it maps to and is rendered by
``register_exception_handlers`` as ``{"error": ..., "details": ...}``.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class StorefrontError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(StorefrontError):
    """Malformed or incomplete client input."""

    status_code = status.HTTP_400_BAD_REQUEST


class DatabaseError(StorefrontError):
    """Persistence gateway failure."""


class NotFoundError(DatabaseError):
    status_code = status.HTTP_404_NOT_FOUND


class PaymentProviderError(StorefrontError):
    """Payment provider API failure or timeout."""


class DataInconsistencyError(StorefrontError):
    """A provider record points at an order this store does not have."""


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request.failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Body schema failures are client errors like any other validation failure
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning("request.invalid_body", path=request.url.path, details=details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body.", "details": details},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
