"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from household.api.groups import router as groups_router
from household.api.users import router as users_router
from household.app_logging import configure_logging
from household.containers import AppContainer
from household.services.errors import (
    DuplicateRecordError,
    HouseholdError,
    InvalidInputError,
    NotFoundError,
    StoreError,
)

_ERROR_STATUS: dict[type[HouseholdError], int] = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    DuplicateRecordError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(users_router)
    app.include_router(groups_router)

    @app.exception_handler(HouseholdError)
    async def handle_household_error(
        request: Request, exc: HouseholdError
    ) -> JSONResponse:
        status_code = error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _describe_validation_error(exc)},
        )

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        """Simple health check endpoint."""
        return "Server is running!"

    return app


def error_status(exc: HouseholdError) -> int:
    """Return the HTTP status for a service error."""
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid request body"
    location = first.get("loc") or ()
    field = str(location[-1]) if len(location) > 1 else ""
    if not field:
        return "Invalid request body"
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {first.get('msg', 'invalid value')}"
