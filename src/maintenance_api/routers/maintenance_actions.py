from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from maintenance_api.database import get_db
from maintenance_api.models import (
    ErrorResponse,
    MaintenanceActionCreate,
    MaintenanceActionResponse,
    MaintenanceActionUpdate,
)
from maintenance_api.services import maintenance_action_service

router = APIRouter(prefix="/maintenance-actions", tags=["maintenance-actions"])


@router.get("/", response_model=list[MaintenanceActionResponse])
async def get_actions(
    session: Annotated[Session, Depends(get_db)],
    machine_id: Annotated[int | None, Query()] = None,
) -> list[MaintenanceActionResponse]:
    """Get maintenance actions, optionally for one machine"""
    return [
        MaintenanceActionResponse.model_validate(action)
        for action in maintenance_action_service.get_actions(session, machine_id)
    ]


@router.post(
    "/",
    response_model=MaintenanceActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {"model": ErrorResponse, "description": "Unknown machine or periodicity"},
    },
)
async def create_action(
    action_data: MaintenanceActionCreate,
    session: Annotated[Session, Depends(get_db)],
) -> MaintenanceActionResponse:
    """Create a maintenance action"""
    return MaintenanceActionResponse.model_validate(
        maintenance_action_service.create(session, action_data)
    )


@router.get(
    "/{action_id}",
    response_model=MaintenanceActionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Maintenance action not found"},
    },
)
async def get_action(
    action_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> MaintenanceActionResponse:
    """Get specific maintenance action"""
    return MaintenanceActionResponse.model_validate(
        maintenance_action_service.get_by_id(session, action_id)
    )


@router.put(
    "/{action_id}",
    response_model=MaintenanceActionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Maintenance action not found"},
    },
)
async def update_action(
    action_id: int,
    action_data: MaintenanceActionUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> MaintenanceActionResponse:
    """Update specific maintenance action"""
    return MaintenanceActionResponse.model_validate(
        maintenance_action_service.update(session, action_id, action_data)
    )


@router.delete(
    "/{action_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Maintenance action not found"},
    },
)
async def delete_action(
    action_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> None:
    """Delete a maintenance action and its execution history"""
    maintenance_action_service.delete_action(session, action_id)
