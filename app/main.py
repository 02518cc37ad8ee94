"""
Main FastAPI application entry point.
Configures the application, middleware, and routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.api.routes import (
    activities,
    admin_quotations,
    auth,
    client_dashboard,
    client_quotations,
    health,
    legacy_quotations,
    standard_content,
    users,
)
from app.core.config import settings
from app.core.exceptions import PersistenceFailure
from app.core.logging import get_logger, setup_logging
from app.db.session import create_db_and_tables, engine
from app.models.user import UserRole
from app.schemas.user import UserCreate
from app.services.user_service import UserService

setup_logging()
logger = get_logger(__name__)


def bootstrap_admin() -> None:
    """Create the first admin account if it does not exist yet."""
    with Session(engine) as session:
        if UserService.get_by_email(session, settings.FIRST_ADMIN_EMAIL):
            return
        logger.info("Creating first admin user...")
        admin = UserCreate(
            email=settings.FIRST_ADMIN_EMAIL,
            password=settings.FIRST_ADMIN_PASSWORD,
            full_name="Admin User",
        )
        UserService.create(session, admin, role=UserRole.ADMIN)
        logger.info(f"Admin user created: {settings.FIRST_ADMIN_EMAIL}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Creates tables and the first admin on startup.
    """
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")

    logger.info("Creating database tables...")
    create_db_and_tables()

    if settings.DISABLE_BOOTSTRAP_USERS:
        logger.info("User bootstrapping disabled (DISABLE_BOOTSTRAP_USERS=true)")
    else:
        try:
            bootstrap_admin()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create admin user: {e}")
            logger.warning("Continuing without admin user. Admin endpoints may not work.")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    lifespan=lifespan,
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "content-type", "accept"],
    )


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(PersistenceFailure)
async def persistence_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Database failures become a generic 500; the detail stays in the logs."""
    logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(standard_content.router, prefix=settings.API_PREFIX)
app.include_router(admin_quotations.router, prefix=settings.API_PREFIX)
app.include_router(activities.router, prefix=settings.API_PREFIX)
app.include_router(client_dashboard.router, prefix=settings.API_PREFIX)
app.include_router(client_quotations.router, prefix=settings.API_PREFIX)
app.include_router(legacy_quotations.router, prefix=settings.API_PREFIX)
