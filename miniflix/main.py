# miniflix/main.py
import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .api.v1.router import api_router
from .database import init_db, close_db, check_db_health
from .redis_client import redis_client

# ============================================================
# Setup Logging
# ============================================================
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================
# Startup/Shutdown Events
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan with async startup/shutdown
    """
    logger.info("🚀 Starting MiniFlix API...")
    logger.info(f"🔒 Debug mode: {settings.DEBUG}")

    startup_tasks = [init_db()]

    async def connect_redis():
        try:
            await redis_client.connect()
            logger.info("✅ Redis connected successfully")
        except Exception as e:
            logger.error(f"❌ Redis connection failed: {e}")
            logger.warning("⚠️ API will continue without Redis caching")

    if settings.CACHE_ENABLED:
        startup_tasks.append(connect_redis())

    try:
        await asyncio.gather(*startup_tasks)
    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    logger.info("✅ Application startup complete!")

    yield

    logger.info("🛑 Shutting down MiniFlix API...")

    shutdown_tasks = [close_db()]
    if settings.CACHE_ENABLED:
        shutdown_tasks.append(redis_client.disconnect())

    await asyncio.gather(*shutdown_tasks, return_exceptions=True)

    logger.info("👋 Goodbye!")


# ============================================================
# Create FastAPI Application
# ============================================================

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Playback progress and resume API for the MiniFlix catalog",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# ============================================================
# Middleware Configuration
# ============================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next: Callable):
    """Add unique request ID for tracing"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    """Log all requests with timing"""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"⬅️ {request.method} {request.url.path} "
        f"[{response.status_code}] {duration:.3f}s"
    )

    response.headers["X-Process-Time"] = str(duration)
    return response

# ============================================================
# API Routers
# ============================================================

app.include_router(api_router, prefix="/api/v1")

# ============================================================
# Root Endpoints
# ============================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Fast health check endpoint for load balancers
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health/detailed", tags=["Health"])
async def health_check_detailed() -> dict:
    """
    Detailed health check endpoint
    Checks database and Redis connectivity
    """
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }

    db_healthy = await check_db_health()
    health_status["database"] = "connected" if db_healthy else "disconnected"
    if not db_healthy:
        health_status["status"] = "degraded"

    if settings.CACHE_ENABLED:
        redis_healthy = await redis_client.ping()
        health_status["redis"] = "connected" if redis_healthy else "disconnected"
    else:
        health_status["redis"] = "disabled"

    return health_status

# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters answer 400"""
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid request data",
            "errors": jsonable_errors(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Keep route-supplied details; unmatched paths get a uniform 404 body"""
    content = {"detail": exc.detail}
    if exc.status_code == 404 and exc.detail == "Not Found":
        content = {"detail": "Endpoint not found", "path": str(request.url.path)}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"❌ Unhandled exception [Request ID: {request_id}]: {str(exc)}",
        exc_info=True
    )

    error_detail = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=500,
        content={
            "detail": error_detail,
            "request_id": request_id
        }
    )

# ============================================================
# Run Application
# ============================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "miniflix.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
