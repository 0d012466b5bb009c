"""
Common utilities module
"""

from maintenance_api.common.error_handlers import (
    ConflictError,
    ResourceNotFoundError,
    ServiceError,
    ValidationError,
    safe_execute,
)

__all__ = [
    "ConflictError",
    "ResourceNotFoundError",
    "ServiceError",
    "ValidationError",
    "safe_execute",
]
