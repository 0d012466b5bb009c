from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from maintenance_api.database import get_db
from maintenance_api.models import (
    ErrorResponse,
    ExecutionStatsResponse,
    MaintenanceExecutionCreate,
    MaintenanceExecutionResponse,
    MaintenanceExecutionUpdate,
)
from maintenance_api.services import maintenance_execution_service

router = APIRouter(prefix="/maintenance-executions", tags=["maintenance-executions"])


@router.get("/stats", response_model=list[ExecutionStatsResponse])
async def get_execution_stats(
    session: Annotated[Session, Depends(get_db)],
    machine_id: Annotated[int | None, Query()] = None,
) -> list[ExecutionStatsResponse]:
    """Per-action completion statistics for the current year"""
    return maintenance_execution_service.get_stats(session, machine_id=machine_id)


@router.get("/", response_model=list[MaintenanceExecutionResponse])
async def get_executions(
    session: Annotated[Session, Depends(get_db)],
    date_from: Annotated[date, Query(alias="from")],
    date_to: Annotated[date, Query(alias="to")],
) -> list[MaintenanceExecutionResponse]:
    """Executions scheduled within a date range (inclusive)"""
    return maintenance_execution_service.get_executions(session, date_from, date_to)


@router.post(
    "/",
    response_model=MaintenanceExecutionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {"model": ErrorResponse, "description": "Unknown action or operator"},
    },
)
async def upsert_execution(
    execution_data: MaintenanceExecutionCreate,
    session: Annotated[Session, Depends(get_db)],
) -> MaintenanceExecutionResponse:
    """Mark an occurrence completed or skipped, replacing any earlier record"""
    return maintenance_execution_service.upsert_execution(session, execution_data)


@router.put(
    "/{execution_id}",
    response_model=MaintenanceExecutionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Execution not found"},
    },
)
async def update_execution(
    execution_id: int,
    execution_data: MaintenanceExecutionUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> MaintenanceExecutionResponse:
    """Update a recorded execution"""
    return maintenance_execution_service.update_execution(
        session, execution_id, execution_data
    )


@router.delete(
    "/{execution_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Execution not found"},
    },
)
async def delete_execution(
    execution_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> None:
    """Delete an execution so the occurrence reverts to pending"""
    maintenance_execution_service.delete_execution(session, execution_id)
