"""FastAPI backend for the Stieregg apartment site."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from stieregg import __version__
from stieregg.config import get_settings
from stieregg.services.availability_service import create_availability_service
from stieregg.utils.logger import get_logger, setup_logging

from .routes import error_response, get_availability_service, router, set_availability_service

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    settings = get_settings()
    setup_logging(settings.app.log_level, settings.app.log_format)

    service = create_availability_service(settings)
    set_availability_service(service)
    logger.info("availability_service_initialized", apartments=len(service.catalog))

    yield

    await service.close()
    set_availability_service(None)
    logger.info("availability_service_closed")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Stieregg Availability API",
        description="Apartment availability from booking platform calendars, "
        "seasonal minimum stays and booking inquiries.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix=settings.app.api_prefix)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors with the same {"error": ...} body as the routes."""
        return error_response(exc.status_code, str(exc.detail))

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint with cache statistics."""
        service = get_availability_service()
        return {
            "status": "healthy",
            "version": __version__,
            "apartments": len(service.catalog),
            "cache": service.cache.get_cache_stats(),
        }

    return app


app = create_app()
