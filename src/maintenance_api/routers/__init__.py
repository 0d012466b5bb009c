# API routers package
from . import (
    machines,
    maintenance_actions,
    maintenance_executions,
    operators,
    schedule,
    shifts,
)

__all__ = [
    "machines",
    "maintenance_actions",
    "maintenance_executions",
    "operators",
    "schedule",
    "shifts",
]
