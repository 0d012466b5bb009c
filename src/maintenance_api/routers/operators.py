from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from maintenance_api.database import get_db
from maintenance_api.models import (
    ErrorResponse,
    OperatorCreate,
    OperatorResponse,
    OperatorUpdate,
)
from maintenance_api.services import operator_service

router = APIRouter(prefix="/operators", tags=["operators"])


@router.get("/", response_model=list[OperatorResponse])
async def get_operators(
    session: Annotated[Session, Depends(get_db)],
    include_inactive: Annotated[bool, Query()] = False,
) -> list[OperatorResponse]:
    """Get operators with their authorization matrix"""
    return [
        OperatorResponse.model_validate(op)
        for op in operator_service.get_operators(session, include_inactive)
    ]


@router.post(
    "/",
    response_model=OperatorResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        422: {"model": ErrorResponse, "description": "Unknown or inactive shift"},
    },
)
async def create_operator(
    operator_data: OperatorCreate,
    session: Annotated[Session, Depends(get_db)],
) -> OperatorResponse:
    """Create an operator"""
    return OperatorResponse.model_validate(
        operator_service.create(session, operator_data)
    )


@router.get(
    "/{operator_id}",
    response_model=OperatorResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Operator not found"},
    },
)
async def get_operator(
    operator_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> OperatorResponse:
    """Get specific operator"""
    return OperatorResponse.model_validate(
        operator_service.get_by_id(session, operator_id)
    )


@router.put(
    "/{operator_id}",
    response_model=OperatorResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Operator not found"},
    },
)
async def update_operator(
    operator_id: int,
    operator_data: OperatorUpdate,
    session: Annotated[Session, Depends(get_db)],
) -> OperatorResponse:
    """Update operator details or authorizations"""
    return OperatorResponse.model_validate(
        operator_service.update(session, operator_id, operator_data)
    )


@router.delete(
    "/{operator_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Operator not found"},
    },
)
async def delete_operator(
    operator_id: int,
    session: Annotated[Session, Depends(get_db)],
) -> None:
    """Deactivate an operator"""
    operator_service.deactivate_operator(session, operator_id)
