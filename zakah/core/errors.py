"""Error kinds raised by the calculator and the HTTP handlers that render them.

Domain code raises the ``ZakahError`` subclasses below; ``create_app`` wires
the handlers so every failure reaches the client as a JSON body of the form
``{"error": <code>, "detail": <message>, "display_seconds": <n>}``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging

logger = logging.getLogger("zakah.errors")

DEFAULT_DISPLAY_SECONDS = 5


class ZakahError(Exception):
    """Base class for all calculator errors."""

    error_code = "zakah_error"


class InvalidDateError(ZakahError, ValueError):
    """Malformed Hijri date, or one before the supported reference epoch."""

    error_code = "invalid_date"


class InvalidInputError(ZakahError, ValueError):
    """A calculation precondition is not met."""

    error_code = "invalid_input"

    def __init__(self, field: str, code: str, message: str):
        super().__init__(message)
        self.field = field
        self.code = code
        self.message = message


class RateSourceUnavailable(ZakahError):
    """A rate source could not produce a usable RateSet.

    Always absorbed by the provider fallback chain.
    """

    error_code = "rate_source_unavailable"


class CalculationFailure(ZakahError):
    """An arithmetic invariant was violated (e.g. a zero rate reached a division)."""

    error_code = "calculation_failure"


class RequestRejected(ZakahError):
    """A request arrived while another one was still in flight."""

    error_code = "busy"


def _display_seconds(request: Request) -> int:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return DEFAULT_DISPLAY_SECONDS
    return settings.error_display_seconds


def _error_body(request: Request, error: str, detail, **extra) -> dict:
    body = {"error": error, "detail": detail}
    body.update(extra)
    body["display_seconds"] = _display_seconds(request)
    return body


def not_found_handler(request: Request, exc):  # type: ignore
    if getattr(exc, "status_code", 404) != 404:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, "http_error", exc.detail),
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(
            request,
            "not_found",
            exc.detail
            if exc.detail != "Not Found"
            else f"No route for {request.method} {request.url.path}",
        ),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, "validation_error", jsonable_errors(exc)),
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic puts the raised exception object under ctx; keep only its text
    out = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        out.append(err)
    return out


def invalid_date_handler(request: Request, exc: InvalidDateError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, exc.error_code, str(exc)),
    )


def invalid_input_handler(request: Request, exc: InvalidInputError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            request, exc.error_code, exc.message, field=exc.field, code=exc.code
        ),
    )


def request_rejected_handler(request: Request, exc: RequestRejected):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(request, exc.error_code, str(exc)),
    )


def calculation_failure_handler(request: Request, exc: CalculationFailure):  # type: ignore
    logger.error("calculation failure: %s", exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, exc.error_code, str(exc)),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "internal_error", "An unexpected error occurred."),
    )
