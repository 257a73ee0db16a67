"""
TaxBridge - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taxbridge import __version__
from taxbridge.config import settings
from taxbridge.database import init_db, close_db
from taxbridge.routers import tax, payroll, pit, subscription
from taxbridge.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    # Production schemas are managed by Alembic
    if not settings.is_production:
        await init_db()
        logger.info("Database tables initialized")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Nigerian tax engine for the Nigeria Tax Act 2025: PAYE, PIT, CIT, VAT, WHT and payroll",
    version=__version__,
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
    }


@app.get("/api/v1")
async def api_root():
    """API v1 root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API v1",
        "endpoints": {
            "tax": "/api/v1/tax",
            "payroll": "/api/v1/payroll",
            "pit": "/api/v1/pit",
            "subscription": "/api/v1/subscription",
        },
    }


# ===========================================
# API ROUTERS
# ===========================================

# Stateless calculators (PAYE, CIT, VAT, WHT)
app.include_router(tax.router, prefix="/api/v1/tax", tags=["Tax Calculators"])
# Payroll System (Nigerian Compliance)
app.include_router(payroll.router, prefix="/api/v1/payroll", tags=["Payroll"])
# Personal Income Tax
app.include_router(pit.router, prefix="/api/v1/pit", tags=["Personal Income Tax"])
# Plans & Billing
app.include_router(subscription.router, prefix="/api/v1/subscription", tags=["Subscription"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
