"""Statement reconciliation API: FastAPI entry point.

Serves the statement engine over HTTP: parsing and saving pasted NMB and
CRDB statements, batch history, and the customer directory.
"""

import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging
from apps.api.domains.batches.router import router as batches_router
from apps.api.domains.mappings.router import router as mappings_router
from apps.api.domains.statements.router import router as statements_router
from apps.api.routers import health
from packages.statement_engine import __version__ as ENGINE_VERSION

logger = structlog.get_logger()

APP_VERSION = settings.APP_VERSION if settings else "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup/shutdown hooks."""
    setup_logging(
        log_level=settings.log_level if settings else "INFO",
        json_output=settings.is_production if settings else False,
    )
    logger.info("app_starting", version=APP_VERSION, engine_version=ENGINE_VERSION)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Statement Reconciliation API",
    description="Parses pasted bank statements into reconciled, de-duplicated batches.",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(statements_router, prefix="/api/v1")
app.include_router(batches_router, prefix="/api/v1")
app.include_router(mappings_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
