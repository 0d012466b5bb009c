"""
Service-layer errors and the transaction wrapper every write goes through
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

logger = logging.getLogger(__name__)

R = TypeVar("R")


class ServiceError(Exception):
    """Base exception for service-layer errors"""

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class ResourceNotFoundError(ServiceError):
    """A machine, action, operator, shift or execution id that does not exist"""

    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: int | str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} with ID {resource_id} not found", "RESOURCE_NOT_FOUND"
        )


class ValidationError(ServiceError):
    """Request is well formed but refers to unusable data (e.g. inactive shift)"""

    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, "VALIDATION_ERROR")


class ConflictError(ServiceError):
    """A write violated a unique or foreign key constraint"""

    http_status = status.HTTP_409_CONFLICT

    def __init__(self, message: str):
        super().__init__(message, "CONFLICT")


def safe_execute(
    session: Session, operation: Callable[[], R], rollback_on_error: bool = True
) -> R:
    """
    Run ``operation`` and commit, rolling back on failure.

    Service errors pass through unchanged. Constraint violations become
    ``ConflictError`` and anything else a generic ``ServiceError``.
    """
    name = getattr(operation, "__name__", "operation")
    try:
        result = operation()
        session.commit()
        return result
    except ServiceError:
        if rollback_on_error:
            session.rollback()
        raise
    except IntegrityError as e:
        if rollback_on_error:
            session.rollback()
        logger.warning(f"{name}: constraint violation: {e.orig}")
        raise ConflictError("Database constraint violation") from e
    except Exception as e:
        if rollback_on_error:
            session.rollback()
        logger.error(f"❌ {name} failed: {e}")
        raise ServiceError(f"Database operation failed: {e}") from e
