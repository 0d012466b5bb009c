from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from maintenance_api.database import get_db
from maintenance_api.models import (
    DefaultShiftUpdate,
    ErrorResponse,
    OperatorResponse,
    RosterEntryResponse,
    ShiftCreate,
    ShiftOverrideRequest,
    ShiftOverrideResponse,
    ShiftResponse,
    ShiftUpdate,
)
from maintenance_api.services import operator_service, shift_service

router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.get("/", response_model=list[ShiftResponse])
async def get_shifts(
    session: Annotated[Session, Depends(get_db)],
) -> list[ShiftResponse]:
    """Active shift definitions"""
    return [
        ShiftResponse.model_validate(shift)
        for shift in shift_service.get_active_shifts(session)
    ]


@router.post(
    "/",
    response_model=ShiftResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_shift(
    shift_data: ShiftCreate,
    session: Annotated[Session, Depends(get_db)],
) -> ShiftResponse:
    """Create a shift definition"""
    return ShiftResponse.model_validate(shift_service.create(session, shift_data))


@router.get("/roster", response_model=list[RosterEntryResponse])
async def get_roster(
    session: Annotated[Session, Depends(get_db)],
    roster_date: Annotated[date, Query(alias="date")],
) -> list[RosterEntryResponse]:
    """Effective shift of every active operator on a date"""
    return shift_service.get_roster(session, roster_date)


@router.put(
    "/operators/{operator_id}/default",
    response_model=OperatorResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Operator not found"},
        422: {"model": ErrorResponse, "description": "Unknown or inactive shift"},
    },
)
async def set_default_shift(
    operator_id: int,
    data: DefaultShiftUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> OperatorResponse:
    """Set an operator's default shift; null clears it"""
    operator = operator_service.set_default_shift(session, operator_id, data)
    return OperatorResponse.model_validate(operator)


@router.post(
    "/overrides",
    response_model=ShiftOverrideResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Operator not found"},
        422: {"model": ErrorResponse, "description": "Unknown or inactive shift"},
    },
)
async def upsert_override(
    data: ShiftOverrideRequest,
    session: Annotated[Session, Depends(get_db)],
) -> ShiftOverrideResponse:
    """Create or replace a per-date override; a null shift marks a day off"""
    override = shift_service.upsert_override(session, data)
    return ShiftOverrideResponse.model_validate(override)


@router.delete("/overrides", status_code=status.HTTP_204_NO_CONTENT)
async def delete_override(
    session: Annotated[Session, Depends(get_db)],
    operator_id: Annotated[int, Query()],
    override_date: Annotated[date, Query(alias="date")],
) -> None:
    """Remove an override so the operator's default shift applies again"""
    shift_service.delete_override(session, operator_id, override_date)


@router.put(
    "/{shift_id}",
    response_model=ShiftResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Shift not found"},
    },
)
async def update_shift(
    shift_id: int,
    shift_data: ShiftUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> ShiftResponse:
    """Update a shift definition"""
    return ShiftResponse.model_validate(
        shift_service.update(session, shift_id, shift_data)
    )


@router.delete(
    "/{shift_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Shift not found"},
    },
)
async def delete_shift(
    shift_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> None:
    """Deactivate a shift definition"""
    shift_service.deactivate_shift(session, shift_id)
