"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clubcheckin.api.v1.router import api_router
from clubcheckin.api.deps import get_db
from clubcheckin.core.config import settings
from clubcheckin.core.exceptions import CheckInError
from clubcheckin.core.rate_limit import limiter
from clubcheckin.core.logging_config import setup_logging, get_logger
from clubcheckin.db import Base, engine
from clubcheckin.middleware import LoggingMiddleware
from clubcheckin.realtime import Broadcaster

# Initialize structured logging
setup_logging(level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()

logger.info(
    "application_starting",
    app_title=settings.APP_TITLE,
    app_version=settings.APP_VERSION,
    environment=settings.ENVIRONMENT,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Deployed databases are migrated with Alembic
    if settings.ENVIRONMENT == "development":
        Base.metadata.create_all(bind=engine)
    yield
    logger.info("application_stopping", **app.state.broadcaster.stats())


app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.state.broadcaster = Broadcaster(queue_size=settings.REALTIME_QUEUE_SIZE)


@app.exception_handler(CheckInError)
async def checkin_error_handler(request: Request, exc: CheckInError):
    """Render domain errors as {"detail", "code"} with their HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """429 with a retry-later message; Retry-After is the limit's window length."""
    retry_after = exc.limit.limit.get_expiry()
    logger.warning("rate_limited", limit=str(exc.limit.limit))
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many attempts ({exc.detail}). Please wait and try again.",
            "code": "RATE_LIMITED",
        },
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("database_unavailable", error=str(exc.orig))
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Service temporarily unavailable. Please try again.",
            "code": "SERVICE_UNAVAILABLE",
        },
    )


# Add logging middleware (must be added before other middleware for proper request tracking)
app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response


# CORS middleware - configured for cookie-based auth
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-API-Version", "Retry-After"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        - status: "healthy" or "unhealthy"
        - environment: Current environment setting
        - database: Database connection status
        - realtime: Open connections and subscriber group counts

    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "database": {"status": "connected"},
        "realtime": request.app.state.broadcaster.stats(),
    }

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = "unreachable"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
