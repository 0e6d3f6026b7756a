"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api import users
from src.config import Settings, get_settings
from src.database import get_database
from src.schemas.user import ErrorEnvelope, FieldViolationResponse
from src.services.errors import UserServiceError, UserValidationError

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

SERVICE_DESCRIPTION = {
    "message": "Welcome to the Users API",
    "version": API_VERSION,
    "endpoints": {
        "getUsers": "GET /api/users",
        "getUser": "GET /api/users?id=:id",
        "createUser": "POST /api/users",
        "updateUser": "PUT /api/users/:id",
        "deleteUser": "DELETE /api/users/:id",
    },
}


def _error_response(status_code: int, body: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _field_path(loc: tuple) -> str:
    # Drop the request part FastAPI prefixes ("body", "query", "path").
    parts = loc[1:] if loc and loc[0] in ("body", "query", "path") else loc
    return ".".join(str(part) for part in parts)


async def user_service_error_handler(request: Request, exc: UserServiceError) -> JSONResponse:
    """Render domain errors as failure envelopes."""
    errors = None
    if isinstance(exc, UserValidationError):
        errors = [FieldViolationResponse(path=v.path, message=v.message) for v in exc.errors]
    return _error_response(exc.status_code, ErrorEnvelope(message=exc.message, errors=errors))


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed request bodies the same way as schema violations."""
    errors = [
        FieldViolationResponse(path=_field_path(tuple(error["loc"])), message=error["msg"])
        for error in exc.errors()
    ]
    return _error_response(
        status.HTTP_400_BAD_REQUEST, ErrorEnvelope(message="Validation error", errors=errors)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) as failure envelopes."""
    return _error_response(exc.status_code, ErrorEnvelope(message=str(exc.detail)))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and return a generic 500 without internal detail."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorEnvelope(message="Internal Server Error")
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the store at startup and release it on shutdown."""
    database = get_database()
    try:
        database.create_all()
    except Exception:
        logger.exception("Failed to start server")
        raise
    yield
    database.dispose()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Users API",
        description="CRUD API for user records",
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(UserServiceError, user_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(users.router)

    @app.get("/")
    async def root():
        """Describe the service and its endpoints."""
        return SERVICE_DESCRIPTION

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "environment": settings.environment}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port)
