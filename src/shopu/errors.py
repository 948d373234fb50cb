"""Application errors and their HTTP translation.

Domain rule violations are raised as protean `ValidationError` (400 with
field details) and missing records as `ObjectNotFoundError` (404). The
`ShopuError` family covers request-level failures that carry their own
status code: tenant resolution, authentication and payment gateway errors.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class ShopuError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, **details) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        payload.update(self.details)
        return payload


class MissingHostError(ShopuError):
    status_code = 400
    default_message = "Host header is required"


class TenantNotFoundError(ShopuError):
    status_code = 404
    default_message = "Tenant not found"


class TenantInactiveError(ShopuError):
    status_code = 403
    default_message = "Store is currently inactive"


class AuthenticationError(ShopuError):
    status_code = 401
    default_message = "Authentication required"


class PaymentGatewayError(ShopuError):
    status_code = 502
    default_message = "Payment gateway request failed"


class GatewayNotConfiguredError(PaymentGatewayError):
    status_code = 503
    default_message = "Payment gateway is not configured"


def error_messages(exc: Exception):
    """Return the field -> messages mapping carried by a protean exception."""
    messages = getattr(exc, "messages", None)
    if messages:
        return messages
    return exc.args[0] if exc.args else str(exc)


async def shopu_error_handler(request: Request, exc: ShopuError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("Request failed", path=request.url.path, status_code=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def domain_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": error_messages(exc)},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        field = ".".join(location) or "request"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found", "details": error_messages(exc)})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on a FastAPI app."""
    app.add_exception_handler(ShopuError, shopu_error_handler)
    app.add_exception_handler(ValidationError, domain_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
