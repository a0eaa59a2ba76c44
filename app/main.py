"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.clock import system_clock
from app.core.errors import (
    ApprovalServiceError,
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from app.core.expiry_sweeper import ExpirySweeper
from app.database import AsyncSessionLocal, close_db, init_db
from app.logging_config import configure_logging, get_logger
from app.middleware.user_isolation import UserIsolationMiddleware
from app.routes import comments, delegations, health, requests, users
from app.schemas.error import ErrorResponse

# Configure logging
configure_logging()
logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    StateError: status.HTTP_400_BAD_REQUEST,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("application_starting", version=settings.app_version)

    # Production schemas come from Alembic migrations
    if settings.debug:
        await init_db()

    expiry_sweeper = ExpirySweeper(
        session_factory=AsyncSessionLocal,
        clock=system_clock,
        interval_seconds=settings.delegation_sweep_interval_seconds,
        run_on_startup=settings.delegation_sweep_on_startup,
    )
    app.state.expiry_sweeper = expiry_sweeper
    await expiry_sweeper.start()
    logger.info("expiry_sweeper_started")

    logger.info("application_started")

    yield

    logger.info("application_shutting_down")

    await expiry_sweeper.stop()
    logger.info("expiry_sweeper_stopped")

    await close_db()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Approval workflow with time-bounded delegation of approval authority",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(ApprovalServiceError)
async def approval_service_error_handler(
    request: Request, exc: ApprovalServiceError
) -> JSONResponse:
    """Render domain errors as ErrorResponse bodies."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(
        "request_failed",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        error=exc.message,
    )
    body = ErrorResponse(
        detail=exc.message,
        error_code=exc.error_code,
        metadata=jsonable_encoder(exc.context) or None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def custom_openapi():
    """Custom OpenAPI schema with Bearer Authentication."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "JWT whose 'sub' claim is the user's UUID.",
        }
    }

    openapi_schema["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(UserIsolationMiddleware)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(requests.router)
app.include_router(comments.router)
app.include_router(delegations.router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
