import logging
import time
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel import Session

from maintenance_api.config import settings
from maintenance_api.database import get_db
from maintenance_api.models import DailyScheduleResponse, ErrorResponse
from maintenance_api.rate_limiter import RATE_LIMITS, limiter
from maintenance_api.services import schedule_service
from maintenance_engine import SchedulingConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get(
    "/daily",
    response_model=DailyScheduleResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid date or parameters"},
    },
)
@limiter.limit(RATE_LIMITS["/api/schedule/daily"])
async def get_daily_schedule(
    request: Request,
    session: Annotated[Session, Depends(get_db)],
    target_date: Annotated[date, Query(alias="date", description="YYYY-MM-DD")],
    break_duration: Annotated[
        int | None, Query(alias="breakDuration", ge=0, description="Minutes")
    ] = None,
    buffer: Annotated[int | None, Query(ge=0, description="Minutes")] = None,
    prioritize_mandatory: Annotated[bool, Query(alias="prioritizeMandatory")] = True,
    group_by_machine: Annotated[bool, Query(alias="groupByMachine")] = True,
) -> DailyScheduleResponse:
    """Compute the maintenance schedule for a date from current data"""
    config = SchedulingConfig(
        break_duration=(
            break_duration
            if break_duration is not None
            else settings.default_break_duration
        ),
        buffer_minutes=buffer if buffer is not None else settings.default_buffer_minutes,
        prioritize_mandatory=prioritize_mandatory,
        group_by_machine=group_by_machine,
    )

    start_time = time.time()
    schedule = schedule_service.compute_daily_schedule(session, target_date, config)
    result = DailyScheduleResponse.from_schedule(schedule)
    logger.info(
        f"✅ Daily schedule {target_date}: "
        f"{schedule.summary.scheduled_tasks}/{schedule.summary.total_tasks} scheduled, "
        f"{schedule.summary.unscheduled_tasks} unscheduled | "
        f"Total: {time.time() - start_time:.3f}s"
    )
    return result
