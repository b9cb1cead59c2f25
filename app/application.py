"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from app.api import create_protected_router
from app.config import settings
from app.middleware import APIKeyMiddleware
from app.utils.db import close_db, init_db
from app.utils.exception_handlers import register_exception_handlers

# Public endpoints outside the API key check
router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint."""
    return {"message": "LMS Subject Directory API", "version": settings.API_VERSION}


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.API_TITLE,
        description="Subject directory of the learning management system",
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(APIKeyMiddleware)
    register_exception_handlers(app)

    # Setup routes
    app.include_router(router)
    app.include_router(create_protected_router())

    return app
