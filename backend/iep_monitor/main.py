from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from iep_monitor import __version__
from iep_monitor.core.config import settings
from iep_monitor.core.database import init_db, close_db
from iep_monitor.core.exceptions import IEPMonitorError
from iep_monitor.core.logging_config import logger
from iep_monitor.core.middleware import RequestLoggingMiddleware
from iep_monitor.api.v1.router import api_router


async def ensure_database_ready() -> bool:
    """Create tables if they do not exist yet"""
    try:
        await init_db()
        logger.info("[Startup] Database tables ready")
        return True
    except Exception as e:
        logger.error(f"[Startup] Failed to ensure database ready: {e}", exc_info=True)
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    if not await ensure_database_ready():
        logger.warning("[Startup] Database not ready - requests may fail")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Compliance alerts and caseload analytics for IEP case records",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(IEPMonitorError)
async def iep_monitor_exception_handler(request: Request, exc: IEPMonitorError):
    if exc.http_status >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, **exc.to_dict()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")
