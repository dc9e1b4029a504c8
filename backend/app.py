"""
LeadForge Backend - Unified Application Entry Point
Mounts the lead enrichment and settings services under a single FastAPI application
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import check_connection, init_database
from services.auth import router as auth_router
from services.container import get_container
from services.leadgen.app import app as leadgen_app
from services.settings.app import app as settings_app
from shared.config import config
from shared.logging_utils import setup_logging

logger = setup_logging("leadforge-backend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, seed settings and run the scheduler loop for the app's lifetime."""
    await init_database()
    container = get_container()
    try:
        inserted = await container.settings.seed_defaults()
        if inserted:
            logger.info(f"Seeded {inserted} default settings")
    except Exception as e:
        logger.error(f"Failed to seed default settings: {e!s}")

    if config.get("scheduler_enabled", True):
        await container.worker.start()
    try:
        yield
    finally:
        if container.worker.running:
            await container.worker.stop()


app = FastAPI(
    title="LeadForge Backend API",
    description="""
    Unified API for batch lead enrichment and outreach message drafting.

    All endpoints are documented below. Service routes are organized by tag.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "User authentication and token management",
        },
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Lead Enrichment",
            "description": "Jobs, records, regeneration and case matching - mounted at /api/v1/leadgen",
        },
        {
            "name": "Settings",
            "description": "Prompt templates and regional tone texts - mounted at /api/v1/settings",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, tags=["Authentication"])

# Routes to exclude (internal FastAPI docs routes)
EXCLUDED_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"}

MOUNTED_SERVICES = (
    (leadgen_app, "/api/v1/leadgen", "Lead Enrichment", "leadgen"),
    (settings_app, "/api/v1/settings", "Settings", "settings"),
)

for service_app, prefix, tag, name_prefix in MOUNTED_SERVICES:
    for route in service_app.routes:
        if hasattr(route, "path") and hasattr(route, "endpoint"):
            # Skip internal documentation routes
            if route.path in EXCLUDED_PATHS:
                continue
            route_kwargs = {
                "path": f"{prefix}{route.path}",
                "endpoint": route.endpoint,
                "methods": route.methods,
                "tags": [tag],
            }
            if hasattr(route, "name"):
                route_kwargs["name"] = f"{name_prefix}_{route.name}"
            if hasattr(route, "response_model"):
                route_kwargs["response_model"] = route.response_model
            if getattr(route, "status_code", None):
                route_kwargs["status_code"] = route.status_code
            if hasattr(route, "response_class"):
                route_kwargs["response_class"] = route.response_class
            app.add_api_route(**route_kwargs)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "LeadForge Backend API",
        "version": "1.0.0",
        "services": {
            "leadgen": {
                "base_url": "/api/v1/leadgen",
                "health": "/api/v1/leadgen/health",
            },
            "settings": {
                "base_url": "/api/v1/settings",
                "health": "/api/v1/settings/health",
            },
            "auth": {
                "token_endpoint": "/token",
            },
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for all services"""
    container = get_container()
    database_ok = await check_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "services": {
            "api_gateway": "operational",
            "leadgen": "operational",
            "settings": "operational",
            "scheduler": "running" if container.worker.running else "stopped",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting LeadForge Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
