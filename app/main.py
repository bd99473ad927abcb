"""
Field Operations API - Main Application

SECURITY FEATURES:
- Conditional API docs (disabled in production by default)
- Structured logging with correlation ids, without sensitive data
- Production-hardened configuration
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.api.router import api_router
from app.config import settings
from app.core.schema import schema_registry
from app.database import async_session_maker, init_db
from app.exceptions import FieldOpsException, create_exception_handlers
from app.middleware import CorrelationIdMiddleware, CorrelationLogFilter
# Import all models to register them with SQLAlchemy metadata before init_db()
from app.models import (  # noqa: F401
    Profile, JobOrder, WorkflowStepRecord, JobOrderHistory, OperatorStatusHistory,
    DailyJobLog, Timecard, StandbyLog, AccessRequest, Equipment, Inventory,
)

# Configure logging; every record carries the request's correlation ids
logging.basicConfig(
    level=settings.LOG_LEVEL or (logging.DEBUG if settings.DEBUG else logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s/%(request_id)s] %(message)s",
)
for handler in logging.getLogger().handlers:
    handler.addFilter(CorrelationLogFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Field Operations API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    # SECURITY: Don't log full database URL, just prefix
    if settings.DATABASE_URL:
        logger.info(f"Database URL prefix: {settings.DATABASE_URL[:30]}...")
    try:
        await init_db()
        async with async_session_maker() as session:
            await schema_registry.refresh(session)
        logger.info("Database initialized successfully")
    except (SQLAlchemyError, OSError) as e:
        # SECURITY: Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - some features may not work")
    yield
    # Shutdown
    logger.info("Shutting down Field Operations API...")


# SECURITY: Conditionally enable docs based on settings
docs_url = "/docs" if settings.DOCS_ENABLED else None
redoc_url = "/redoc" if settings.DOCS_ENABLED else None

app = FastAPI(
    title="Field Operations API",
    description="Job orders, on-site workflow and time tracking for field crews",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

# CORS middleware
# SECURITY: Restrict origins to known frontend URLs
allowed_origins = [settings.FRONTEND_URL]

if not settings.is_production:
    allowed_origins.extend([
        "http://localhost:3000",  # Next.js dev server
        "http://localhost:5173",  # Vite dev server
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# RFC 7807 error bodies
handlers = create_exception_handlers(allowed_origins)
app.add_exception_handler(FieldOpsException, handlers["field_ops"])
app.add_exception_handler(StarletteHTTPException, handlers["http"])
app.add_exception_handler(RequestValidationError, handlers["validation"])
app.add_exception_handler(SQLAlchemyError, handlers["database"])
app.add_exception_handler(Exception, handlers["generic"])

# Include routers
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "Field Operations API",
        "version": "1.0.0",
        "health": "/health",
    }
    # Only include docs link if enabled
    if settings.DOCS_ENABLED:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=5001,
        reload=settings.DEBUG,
    )
