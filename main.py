"""
Planning & Cost Control API
"""
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from core.settings import settings
from routers.projects import router as projects_router
from routers.boq import router as boq_router
from routers.kpi import router as kpi_router, dashboard_router
from routers.cost_control import routers as cost_control_routers
from routers.prayer_times import router as prayer_times_router
from connections.db_init import init_db_async, check_db_connection_async, missing_tables_async
from connections.postgres_connection import DatabaseConnection

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Planning & Cost Control API...")
    try:
        await init_db_async(create_tables=settings.DB_CREATE_TABLES)
        DatabaseConnection.get_async_engine()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down Planning & Cost Control API...")
    try:
        await DatabaseConnection.close_async_engine()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}", exc_info=True)


app = FastAPI(
    title="Planning & Cost Control API",
    description="BOQ activities, KPIs, dashboards and cost-control ledgers",
    version=API_VERSION,
    lifespan=lifespan
)

app.include_router(projects_router)
app.include_router(boq_router)
app.include_router(kpi_router)
app.include_router(dashboard_router)
for ledger_router in cost_control_routers:
    app.include_router(ledger_router)
app.include_router(prayer_times_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": f"Planning & Cost Control API v{API_VERSION}",
        "version": API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "projects": "/projects - List, create, update and delete projects",
            "boq": {
                "activities": "/boq/activities - Filtered, paginated BOQ activities",
                "facets": "/boq/facets - Filter options for the selected projects",
                "delete": "/boq/activities/{id} - Delete (blocked while Actual KPIs exist)",
                "bulk_delete": "/boq/activities/bulk-delete - All-or-nothing bulk delete",
            },
            "kpi": "/kpi - List and record Planned/Actual KPIs",
            "dashboard": "/dashboard/kpi-summary - Planned vs actual totals",
            "cost_control": {
                name: f"/cost-control/{name} - List, import, export and edit"
                for name in ("hired-manpower", "other-cost", "rented-equipment", "transportation")
            },
            "prayer_times": "/prayer-times, /prayer-times/next",
        },
    }


@app.get("/health")
async def health():
    """Database connectivity plus any mapped table missing from the schema."""
    try:
        if not await check_db_connection_async():
            return {"status": "degraded", "database": "disconnected", "api_version": API_VERSION}
        missing = await missing_tables_async()
        return {
            "status": "degraded" if missing else "healthy",
            "database": "connected",
            "missing_tables": missing,
            "api_version": API_VERSION
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e),
            "api_version": API_VERSION
        }
