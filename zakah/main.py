from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .routers import health, calendar, rates, zakah


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    # Initialize logging early
    init_logging(debug=settings.debug)

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(errors.InvalidDateError, errors.invalid_date_handler)
    app.add_exception_handler(errors.InvalidInputError, errors.invalid_input_handler)
    app.add_exception_handler(errors.RequestRejected, errors.request_rejected_handler)
    app.add_exception_handler(errors.CalculationFailure, errors.calculation_failure_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(calendar.router)
    app.include_router(rates.router)
    app.include_router(zakah.router)

    @app.get("/")
    async def root():
        return {"message": "Zakah Calculator API", "version": settings.version}

    return app


app = create_app()
