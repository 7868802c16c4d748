import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, ENV, LOG_FORMAT, LOG_LEVEL
from .db import init_db
from .logging_config import setup_structured_logging
from .middleware.request_context import RequestContextMiddleware
from .routers.reports import router as reports_router
from .routers.upload import router as upload_router

setup_structured_logging(use_json=LOG_FORMAT == "json", log_level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize database (with error handling)
try:
    init_db()
except Exception as e:
    logger.error(f"Database initialization failed: {e}")
    # Don't crash on startup - let it fail on first request if needed

app = FastAPI(title="CreditSea Report API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(upload_router)
app.include_router(reports_router)

logger.info(f"CreditSea Report API ready (env={ENV})")


@app.get("/api/health")
def health():
    """JSON health/info endpoint for monitoring and scripts."""
    return {
        "status": "OK",
        "message": "CreditSea Report API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
