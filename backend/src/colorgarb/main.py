"""ColorGarb Order Portal - FastAPI application

Serves the order workflow and authorization engine:
- /api/v1/orders         list, read, create, stage updates, bulk updates, history
- /api/v1/audit          stage history and access-attempt queries (staff only)
- /health, /metrics      observability

Run locally with:
    uvicorn colorgarb.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .audit.router import router as audit_router
from .config import Settings, get_settings
from .database import dispose_engine
from .http_errors import register_exception_handlers
from .observability.logging_config import configure_logging, get_logger
from .observability.middleware import REQUEST_ID_HEADER, CorrelationMiddleware
from .observability.router import router as observability_router
from .orders.router import router as orders_router

API_PREFIX = "/api/v1"

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        f"ColorGarb API starting (environment={settings.ENVIRONMENT}, "
        f"single_stage_step={settings.ENFORCE_SINGLE_STAGE_STEP}, "
        f"bulk_max={settings.BULK_UPDATE_MAX_ORDERS})"
    )
    yield
    dispose_engine()
    logger.info("ColorGarb API stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    API docs are only served outside production.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    show_docs = settings.ENVIRONMENT != "production"
    application = FastAPI(
        title="ColorGarb Order Portal API",
        description="Order workflow and authorization engine",
        version="0.1.0",
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=lifespan,
    )
    application.state.settings = settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    # Added last so it wraps CORS and every response carries the request id
    application.add_middleware(CorrelationMiddleware)

    register_exception_handlers(application)

    application.include_router(observability_router)
    application.include_router(orders_router, prefix=API_PREFIX)
    application.include_router(audit_router, prefix=API_PREFIX)

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        return {
            "name": "ColorGarb Order Portal API",
            "version": application.version,
            "docs": application.docs_url,
            "endpoints": {
                "orders": f"{API_PREFIX}/orders",
                "bulk_update": f"{API_PREFIX}/orders/bulk-update",
                "stage_history": f"{API_PREFIX}/audit/stage-history",
                "access_attempts": f"{API_PREFIX}/audit/access-attempts",
            },
        }

    return application


app = create_app()
