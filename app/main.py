# ================================
# MAIN APPLICATION (main.py)
# ================================

from datetime import datetime, timezone
import uuid
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

# Core imports
from app.config import settings
from app.core.exceptions import AppException
from app.schemas.base import ErrorResponse

# API Routes
from app.api import API_VERSION, API_DESCRIPTION
from app.api.v1 import telegram, commissions, bookings

import logging
import uvicorn

# ================================
# LOGGING CONFIGURATION
# ================================

logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
# httpx logs full request URLs, which contain the bot token
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

# ================================
# APPLICATION LIFECYCLE
# ================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""

    # Startup
    logger.info(f"Starting {settings.APP_NAME}")
    await startup_tasks()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")
    await shutdown_tasks()

async def startup_tasks():
    """Tasks to run on application startup"""

    # Initialize database
    await initialize_database()

    # Check Telegram configuration
    check_telegram_configuration()

    # Initialize and start background scheduler
    await initialize_background_scheduler()

async def shutdown_tasks():
    """Tasks to run on application shutdown"""

    # Stop background scheduler
    await stop_background_scheduler()

    # Close database connections
    from app.core.database import engine
    engine.dispose()

    logger.info("Application shutdown complete")

async def initialize_database():
    """Initialize database connection and run migrations"""
    try:
        from app.core.database import engine
        from sqlalchemy import text

        # Test database connection
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        logger.info("Database connection established")

        if settings.DEBUG:
            # Local development: create tables directly
            from app.models import Base
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created (DEBUG)")
        else:
            await run_database_migrations()

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

async def run_database_migrations():
    """Run Alembic database migrations"""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")

        logger.info("Database migrations completed")

    except Exception as e:
        logger.error(f"Database migration failed: {e}")
        raise

def check_telegram_configuration():
    """Warn early about settings the bot cannot work without"""
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN not set, notifications will not be delivered")
    if not settings.ADMIN_CHAT_IDS:
        logger.warning("ADMIN_CHAT_IDS empty, admin and unassigned-owner notifications will be dropped")
    if not settings.TELEGRAM_WEBHOOK_SECRET:
        logger.warning("TELEGRAM_WEBHOOK_SECRET not set, webhook accepts unauthenticated calls")

async def initialize_background_scheduler():
    """Initialize and start the background task scheduler"""
    try:
        from app.core.scheduler import scheduler, initialize_scheduler

        # Initialize with default tasks
        initialize_scheduler()

        # Start the scheduler
        await scheduler.start()

        logger.info("Background scheduler started successfully")

    except Exception as e:
        logger.error(f"Failed to start background scheduler: {e}")
        # Don't raise - app should work even without scheduler

async def stop_background_scheduler():
    """Stop the background task scheduler"""
    try:
        from app.core.scheduler import scheduler

        await scheduler.stop()

    except Exception as e:
        logger.error(f"Error stopping background scheduler: {e}")

# ================================
# FASTAPI APPLICATION
# ================================

app = FastAPI(
    title=settings.APP_NAME,
    version=API_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# ================================
# MIDDLEWARE CONFIGURATION
# ================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Attach a request id for error correlation"""
    request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response

# ================================
# EXCEPTION HANDLERS
# ================================

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handler für Application-spezifische Exceptions"""
    content = ErrorResponse(
        detail=exc.detail,
        error_code=exc.error_code,
        request_id=getattr(request.state, "request_id", None)
    )
    return JSONResponse(status_code=exc.status_code, content=content.model_dump())

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler für Standard HTTP Exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "request_id": getattr(request.state, "request_id", None)
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handler für unbehandelte Exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    content = ErrorResponse(
        detail="Internal server error" if not settings.DEBUG else str(exc),
        error_code="INTERNAL_ERROR",
        request_id=getattr(request.state, "request_id", None)
    )
    return JSONResponse(status_code=500, content=content.model_dump())

# ================================
# HEALTH CHECK ENDPOINTS
# ================================

@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": API_VERSION
    }

@app.get("/health/detailed", tags=["Health"])
async def detailed_health_check():
    """Detailed health check with dependencies"""
    health_status = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {}
    }

    # Database check
    try:
        from app.core.database import engine
        from sqlalchemy import text

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except Exception:
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "degraded"

    # Telegram configuration
    health_status["checks"]["telegram"] = "configured" if settings.TELEGRAM_BOT_TOKEN else "not_configured"

    # Scheduler
    from app.core.scheduler import scheduler
    health_status["checks"]["scheduler"] = scheduler.get_task_status() if scheduler.running else "stopped"

    return health_status

@app.get("/ready", tags=["Health"])
async def readiness_check():
    """Kubernetes readiness probe"""
    try:
        from app.core.database import engine
        from sqlalchemy import text

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        return {"status": "ready"}
    except Exception:
        raise HTTPException(status_code=503, detail="Service not ready")

# ================================
# API ROUTES
# ================================

# Telegram webhook
app.include_router(
    telegram.router,
    prefix="/api/v1/telegram",
    tags=["Telegram"],
    responses={403: {"description": "Invalid webhook secret"}}
)

# Commission ledger (operators)
app.include_router(
    commissions.router,
    prefix="/api/v1/commissions",
    tags=["Commissions"],
    responses={
        403: {"description": "Invalid admin API key"},
        404: {"description": "Resource not found"},
        409: {"description": "Commission not due yet"}
    }
)

# Bookings (operators)
app.include_router(
    bookings.router,
    prefix="/api/v1/bookings",
    tags=["Bookings"],
    responses={
        403: {"description": "Invalid admin API key"},
        404: {"description": "Booking not found"}
    }
)

# ================================
# ROOT ENDPOINT
# ================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": API_VERSION,
        "docs_url": "/docs" if settings.DEBUG else None,
        "health_url": "/health",
        "available_endpoints": {
            "telegram": "/api/v1/telegram/webhook",
            "commissions": "/api/v1/commissions",
            "bookings": "/api/v1/bookings"
        }
    }

# ================================
# DEVELOPMENT SERVER
# ================================

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True
    )
