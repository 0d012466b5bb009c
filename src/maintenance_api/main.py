import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from maintenance_api.common.error_handlers import ServiceError
from maintenance_api.config import settings
from maintenance_api.database import db
from maintenance_api.exceptions import (
    general_exception_handler,
    http_exception_handler,
    pydantic_validation_exception_handler,
    service_exception_handler,
    validation_exception_handler,
)
from maintenance_api.rate_limiter import RATE_LIMITS, configure_rate_limiting, limiter
from maintenance_api.routers import (
    machines,
    maintenance_actions,
    maintenance_executions,
    operators,
    schedule,
    shifts,
)

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.info("🚀 FastAPI server starting up...")

    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Host: {settings.host}, Port: {settings.port}")
    logger.info(f"Debug mode: {settings.debug}")

    try:
        if await db.health_check():
            logger.info("✅ Database connection successful")
            db.create_all()
        else:
            logger.warning("⚠️ Database connection failed, continuing in degraded mode")
    except Exception as e:
        logger.warning(
            f"⚠️ Database health check error: {e}, continuing in degraded mode"
        )

    logger.info("✅ FastAPI server startup complete")
    yield
    # Shutdown
    logger.info("🔄 FastAPI server shutting down...")
    logger.info("✅ Server shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
)


def is_origin_allowed(origin: str) -> bool:
    """Check if origin is allowed based on our CORS policy"""
    if origin in settings.cors_origins_list:
        return True
    logging.getLogger(__name__).warning(f"CORS: Origin {origin} BLOCKED")
    return False


def _apply_cors_headers(response: Response, origin: str) -> None:
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = "*"
    response.headers["Access-Control-Max-Age"] = "86400"


# Custom CORS middleware + request timing
@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    perf_logger = logging.getLogger("maintenance.perf")
    origin = request.headers.get("origin")

    # Handle preflight requests first
    if request.method == "OPTIONS" and origin and is_origin_allowed(origin):
        preflight_response = Response(status_code=200)
        _apply_cors_headers(preflight_response, origin)
        return preflight_response

    start_time = time.monotonic()
    response = await call_next(request)

    duration = time.monotonic() - start_time
    if duration >= settings.slow_request_threshold_seconds:
        perf_logger.warning(
            "SLOW %s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
    else:
        perf_logger.info(
            "%s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )

    # Add timing header for client-side observability
    response.headers["X-Response-Time"] = f"{duration:.3f}s"

    if origin and is_origin_allowed(origin):
        _apply_cors_headers(response, origin)

    return response


# Configure rate limiting
configure_rate_limiting(app)

# Add exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(ServiceError, service_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include API routers
app.include_router(machines.router, prefix="/api")
app.include_router(maintenance_actions.router, prefix="/api")
app.include_router(maintenance_executions.router, prefix="/api")
app.include_router(operators.router, prefix="/api")
app.include_router(shifts.router, prefix="/api")
app.include_router(schedule.router, prefix="/api")


# Health check endpoint
@app.get("/health")
@limiter.limit(RATE_LIMITS["/health"])
async def health_check(request: Request):
    """Health check endpoint"""
    db_healthy = await db.health_check()

    if db_healthy:
        return JSONResponse({"status": "healthy", "message": "OK"})
    else:
        return JSONResponse(
            {"status": "unhealthy", "message": "Service temporarily unavailable"},
            status_code=503,
        )


# Root endpoint
@app.get("/")
@limiter.limit(RATE_LIMITS["/"])
async def root(request: Request):
    """Root endpoint with API information"""
    return JSONResponse({"message": "Maintenance Scheduling API", "status": "active"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "maintenance_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
