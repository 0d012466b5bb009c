from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from maintenance_api.database import get_db
from maintenance_api.models import (
    ErrorResponse,
    MachineCreate,
    MachineResponse,
    MachineUpdate,
    MaintenanceActionResponse,
)
from maintenance_api.services import machine_service, maintenance_action_service

router = APIRouter(prefix="/machines", tags=["machines"])


@router.get("/", response_model=list[MachineResponse])
async def get_machines(
    session: Annotated[Session, Depends(get_db)],
) -> list[MachineResponse]:
    """Get all machines"""
    return [MachineResponse.model_validate(m) for m in machine_service.get_machines(session)]


@router.post(
    "/",
    response_model=MachineResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {"model": ErrorResponse, "description": "Unknown person in charge"},
    },
)
async def create_machine(
    machine_data: MachineCreate,
    session: Annotated[Session, Depends(get_db)],
) -> MachineResponse:
    """Create a new machine"""
    return MachineResponse.model_validate(machine_service.create(session, machine_data))


@router.get(
    "/{machine_id}",
    response_model=MachineResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Machine not found"},
    },
)
async def get_machine(
    machine_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> MachineResponse:
    """Get specific machine"""
    return MachineResponse.model_validate(machine_service.get_by_id(session, machine_id))


@router.get(
    "/{machine_id}/maintenance-actions",
    response_model=list[MaintenanceActionResponse],
    responses={
        404: {"model": ErrorResponse, "description": "Machine not found"},
    },
)
async def get_machine_actions(
    machine_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> list[MaintenanceActionResponse]:
    """Maintenance plan of one machine"""
    machine_service.get_by_id(session, machine_id)
    return [
        MaintenanceActionResponse.model_validate(action)
        for action in maintenance_action_service.get_actions(session, machine_id)
    ]


@router.put(
    "/{machine_id}",
    response_model=MachineResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Machine not found"},
    },
)
async def update_machine(
    machine_id: int,
    machine_data: MachineUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> MachineResponse:
    """Update specific machine"""
    return MachineResponse.model_validate(
        machine_service.update(session, machine_id, machine_data)
    )


@router.delete(
    "/{machine_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Machine not found"},
    },
)
async def delete_machine(
    machine_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> None:
    """Delete a machine with its maintenance plan and history"""
    machine_service.delete_machine(session, machine_id)
