"""Error kinds raised by the rate client, cache and conversion engine.

Nothing in the core recovers from these; the command surface (CLI or HTTP
service) decides how to present them. The FastAPI handlers at the bottom map
each kind onto a status code with the usual ``{"error", "detail"}`` body.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger("fxconvert.errors")


class FxConvertError(Exception):
    """Base class for every failure surfaced to the command surface."""

    code = "error"


class ConfigurationError(FxConvertError):
    code = "configuration_error"


class InvalidCurrency(FxConvertError):
    code = "invalid_currency"

    def __init__(self, message: str = "Invalid currency code."):
        super().__init__(message)


class RateLimitExceeded(FxConvertError):
    code = "rate_limit_exceeded"

    def __init__(self, message: str = "API request limit exceeded."):
        super().__init__(message)


class UnexpectedServiceError(FxConvertError):
    code = "unexpected_service_error"

    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        detail = body if body is not None else "Failed to read response body."
        super().__init__(
            f"An unexpected error occurred (HTTP {status_code}): {detail}"
        )


class TransportError(FxConvertError):
    code = "transport_error"


class MalformedResponse(FxConvertError):
    code = "malformed_response"


class InvalidAmount(FxConvertError):
    code = "invalid_amount"


_STATUS_BY_KIND = {
    InvalidCurrency: status.HTTP_404_NOT_FOUND,
    RateLimitExceeded: status.HTTP_429_TOO_MANY_REQUESTS,
    UnexpectedServiceError: status.HTTP_502_BAD_GATEWAY,
    TransportError: status.HTTP_502_BAD_GATEWAY,
    MalformedResponse: status.HTTP_502_BAD_GATEWAY,
    InvalidAmount: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: FxConvertError) -> int:
    for kind, code in _STATUS_BY_KIND.items():
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def fxconvert_error_handler(request: Request, exc: FxConvertError):  # type: ignore
    code = status_for(exc)
    logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"error": exc.code, "detail": str(exc)},
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
