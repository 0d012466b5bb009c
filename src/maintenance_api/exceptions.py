import logging
import traceback

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from maintenance_api.common.error_handlers import ServiceError

logger = logging.getLogger(__name__)


def _error_list(exc: RequestValidationError | PydanticValidationError) -> list[dict]:
    return [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_code": getattr(exc, "error_code", None),
            "path": str(request.url),
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Request validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": _error_list(exc),
            "path": str(request.url),
        },
    )


async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
):
    """Handle Pydantic validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Data validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": _error_list(exc),
            "path": str(request.url),
        },
    )


async def service_exception_handler(request: Request, exc: ServiceError):
    """Handle service-layer exceptions raised out of routers"""
    if exc.http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Service error on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.http_status,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "path": str(request.url),
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unexpected error: {type(exc).__name__}: {exc}")
    logger.error(f"Full traceback: {traceback.format_exc()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_code": "INTERNAL_ERROR",
            "path": str(request.url),
        },
    )
