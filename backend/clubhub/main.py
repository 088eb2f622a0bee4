"""
ClubHub FastAPI Application - Main entry point.

ClubHub runs the organizational side of a club: one President, divisions led
by division heads, and groups inside each division.

- Division heads: assignment and removal (President only)
- Division membership: adding members (with a mandatory group), withdrawal
  and reinstatement
- Groups: soft removal and reinstatement of group members
- Members: deactivation, bulk withdrawal and permanent removal

The President is bootstrapped with ``scripts/promote_president.py``; there is
no HTTP endpoint for it.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clubhub.core.config import settings
from clubhub.core.deps import get_notifier
from clubhub.core.errors import (
    ServiceError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    ValidationError,
)
from clubhub.db.base import init_db, dispose_db
from clubhub.schemas.common import ErrorResponse
from clubhub.api.v1 import health, divisions, groups, heads, members

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Note: In production, use Alembic migrations instead
    await init_db()
    yield
    await get_notifier().drain()
    await dispose_db()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map service errors to HTTP responses."""
    code = status.HTTP_400_BAD_REQUEST
    for error_type, error_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            code = error_status
            break
    if code == status.HTTP_400_BAD_REQUEST:
        logger.error(f"Unmapped service error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(
            code=code,
            message=exc.message,
            error_code=exc.error_code,
            data=exc.details,
        ).model_dump(),
    )


app.include_router(health.router, prefix=settings.API_V1_PREFIX, tags=["health"])
app.include_router(
    divisions.router,
    prefix=f"{settings.API_V1_PREFIX}/v1/divisions",
    tags=["divisions"]
)
app.include_router(
    groups.router,
    prefix=f"{settings.API_V1_PREFIX}/v1/groups",
    tags=["groups"]
)
app.include_router(
    heads.router,
    prefix=f"{settings.API_V1_PREFIX}/v1/division-heads",
    tags=["division-heads"]
)
app.include_router(
    members.router,
    prefix=f"{settings.API_V1_PREFIX}/v1/members",
    tags=["members"]
)
