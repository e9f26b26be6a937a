"""
AgriDrone Backend - Main Application Entry Point
Application Factory Pattern with ORJSONResponse.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from src.core.config import settings
from src.core.database import close_db, init_db
from src.core.exceptions import (
    AgriDroneException,
    agridrone_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from src.core.logging import RequestContextMiddleware, configure_logging, get_logger

# Configure logging on module load
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(
        "Starting AgriDrone Backend",
        environment=settings.environment,
        debug=settings.debug,
    )

    if settings.run_db_init:
        await init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down AgriDrone Backend")
    await close_db()


TAGS_METADATA = [
    {"name": "auth", "description": "Registration, login and the current user."},
    {"name": "organizations", "description": "Buyer, vendor and operator organizations."},
    {"name": "fields", "description": "Field polygons and geodesic area."},
    {"name": "pricing", "description": "Rate cards, quote estimates and operator matching."},
    {"name": "marketplace", "description": "Service jobs, offers and offer messages."},
    {"name": "ecommerce", "description": "Catalog, cart, checkout and orders."},
    {"name": "health", "description": "Liveness and metrics."},
]

API_DESCRIPTION = """
Marketplace for agricultural drone services.

Buyers draw their fields and post spray, spread or mapping jobs. Operators
price them with their rate cards and bid; buyers accept one offer. Vendors
sell drones and parts through the catalog.

All money amounts are integer cents. Authenticate with
`Authorization: Bearer <token>`; select the acting organization with
`X-Organization-Id` when the user belongs to several.
"""


def create_application() -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.
    """
    app = FastAPI(
        title=f"{settings.project_name} API",
        description=API_DESCRIPTION,
        version=settings.app_version,
        openapi_url=f"{settings.api_v1_str}/openapi.json" if settings.debug else None,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        default_response_class=ORJSONResponse,
        openapi_tags=TAGS_METADATA,
        lifespan=lifespan,
    )

    from src.core.sentry import init_sentry
    init_sentry()

    if settings.prometheus_enabled:
        from src.core.metrics import MetricsMiddleware
        app.add_middleware(MetricsMiddleware)

    app.add_middleware(RequestContextMiddleware)

    # Exception handlers
    app.add_exception_handler(AgriDroneException, agridrone_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _include_routers(app)

    @app.get("/health", tags=["health"], response_class=ORJSONResponse)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "agridrone-backend"}

    @app.get("/", tags=["health"], response_class=ORJSONResponse)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "AgriDrone Backend",
            "version": settings.app_version,
            "docs": "/docs" if settings.debug else "disabled",
        }

    return app


def _include_routers(app: FastAPI) -> None:
    """
    Include all module routers.
    Each module has its own router with its own prefix.

    API Versioning: Only /api/v1/... is supported.
    """
    from src.core.metrics import router as metrics_router
    from src.modules.auth.router import organizations_router
    from src.modules.auth.router import router as auth_router
    from src.modules.ecommerce.router import catalog_router, orders_router
    from src.modules.ecommerce.router import router as ecommerce_router
    from src.modules.fields.router import router as fields_router
    from src.modules.marketplace.router import offers_router
    from src.modules.marketplace.router import router as jobs_router
    from src.modules.pricing.router import quotes_router
    from src.modules.pricing.router import router as rate_cards_router

    api_v1_prefix = settings.api_v1_str  # /api/v1

    routers = [
        (auth_router, "auth"),
        (organizations_router, "organizations"),
        (fields_router, "fields"),
        (rate_cards_router, "rate-cards"),
        (quotes_router, "quotes"),
        (jobs_router, "jobs"),
        (offers_router, "offers"),
        (catalog_router, "catalog"),
        (ecommerce_router, "ecommerce"),
        (orders_router, "orders"),
    ]

    for router, _ in routers:
        app.include_router(router, prefix=api_v1_prefix)

    # Metrics router at root level (no prefix)
    if settings.prometheus_enabled:
        app.include_router(metrics_router)

    logger.info(
        "Routers registered",
        modules=[name for _, name in routers],
        api_version="v1",
        api_prefix=api_v1_prefix,
    )


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
