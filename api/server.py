"""
Time Budget API Server - REST API for the daily time budget dashboard.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import sqlite3
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.budget_router import router as budget_router
from api.response_models import HealthResponse
from timebudget import config
from timebudget import db as db_module
from timebudget.observability import CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Time Budget API",
    description="Plan a day as labeled, non-overlapping time blocks",
    version="1.0.0",
)

# Dev default: allow all origins; Production: set CORS_ORIGINS to a comma-separated list
cors_origins = (
    ["*"]
    if config.CORS_ORIGINS == "*"
    else [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(budget_router, prefix="/api")


# ==== DB Startup & Migrations ====
@app.on_event("startup")
async def run_db_migrations_on_startup():
    """Converge the schema and log DB info at startup."""
    db_path = db_module.get_db_path()
    logger.info("=== Time Budget Startup ===")
    logger.info("DB path: %s (exists: %s)", db_path, db_path.exists())

    migration_result = db_module.run_startup_migrations()
    if migration_result.get("columns_added"):
        logger.info("Migrations added columns: %s", migration_result["columns_added"])


@app.exception_handler(sqlite3.Error)
async def sqlite_error_handler(request: Request, exc: sqlite3.Error):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Liveness plus schema version."""
    timestamp = datetime.now().isoformat()
    try:
        info = db_module.get_db_info()
    except sqlite3.Error as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "timestamp": timestamp, "details": {"error": str(e)}},
        )
    return {
        "status": "healthy",
        "timestamp": timestamp,
        "schema_version": info["user_version"],
        "details": {
            "db_exists": info["exists"],
            "target_schema_version": info["target_schema_version"],
        },
    }


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Time Budget API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8420)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    json_logs = None if config.LOG_JSON is None else config.LOG_JSON == "1"
    configure_logging(config.LOG_LEVEL, json_format=json_logs)
    uvicorn.run("api.server:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
