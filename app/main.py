"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes and exception handlers
- Middleware (access logging, CORS)
- Request throttling
- Startup/shutdown of the shared store and identity clients

Startup fails (and the server exits) if the store is unreachable or the
identity provider cannot be initialized.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import endpoints
from app.api.errors import add_exception_handlers
from app.core.clients import initialize_clients, shutdown_clients
from app.core.exceptions import StoreError
from app.core.rate_limit import limiter
from app.core.setting import settings
from app.db.session import ping_database
from app.middleware.logging import add_logging_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Slug Shortener Service",
    description="Create, list, update and delete short slugs and resolve them to redirect targets",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)

app.state.limiter = limiter
add_exception_handlers(app)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """Service banner."""
    return {
        "message": "Slug Shortener Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint for monitoring.

    Pings the database; answers 503 when it is unreachable.
    """
    clients = request.app.state.clients
    try:
        await ping_database(clients.engine, clients.connect_timeout)
    except StoreError as e:
        logger.warning(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy"},
        )
    return {"status": "healthy"}


app.include_router(endpoints.router, tags=["Slugs"])


@app.on_event("startup")
async def startup_event():
    """Connect the store and the identity provider; abort startup on failure."""
    try:
        app.state.clients = await initialize_clients(settings)
    except Exception:
        logger.critical("Failed to initialize service clients", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Release shared clients."""
    clients = getattr(app.state, "clients", None)
    if clients is not None:
        await shutdown_clients(clients)
