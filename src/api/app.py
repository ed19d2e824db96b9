"""
FastAPI application for the wardrobe service.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:app --host 0.0.0.0 --port 8080 --workers 1

Upload sessions are held in process memory, so run a single worker or
route each user to the same worker.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import health, outfits, profile, tryon, uploads, wardrobe
from config.settings import get_settings
from core.errors import WardrobeError
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware
from services.session_manager import get_upload_session_store


logger = get_logger(__name__)

ROUTERS = (
    health.router,
    wardrobe.router,
    uploads.router,
    outfits.router,
    profile.router,
    tryon.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Set up logging on startup; drop expired upload sessions on shutdown."""
    settings = get_settings()
    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )
    logger.info(
        "Wardrobe API starting",
        environment=settings.environment,
        port=settings.port,
        clean_image_strategy=settings.clean_image_strategy,
    )
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set; analysis, styling and try-on will fail")
    if settings.clean_image_strategy == "remove_background" and not settings.photoroom_api_key:
        logger.warning("PHOTOROOM_API_KEY not set; uploads will store the original photo as the clean image")

    yield

    cleared = get_upload_session_store().clear_expired()
    logger.info("Wardrobe API stopped", expired_sessions_cleared=cleared)


async def wardrobe_error_handler(request: Request, exc: WardrobeError) -> JSONResponse:
    """Render a WardrobeError as ``{"detail", "error"[, "details"]}``."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("Request error", error=exc.code, status_code=exc.status_code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Wardrobe API",
        description=(
            "Backend for the digital wardrobe app: photograph clothing to catalog it, "
            "get outfit suggestions from an AI stylist, and try outfits on a personal model."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Added last runs first: tracing wraps CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestTracingMiddleware)

    app.add_exception_handler(WardrobeError, wardrobe_error_handler)

    for router in ROUTERS:
        app.include_router(router)

    return app


app = create_app()
