import logging
import re
from datetime import date, datetime, UTC
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import JSON, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlmodel import Column, SQLModel
from sqlmodel import Field as SQLField

from maintenance_engine import (
    ActionStatus,
    DailySchedule,
    ExecutionStatus,
    Periodicity,
    is_known_month,
    parse_periodicity,
)
from maintenance_engine.assembler import OperatorLane, ShiftSchedule
from maintenance_engine.slots import BreakWindow, ScheduledTask, UnscheduledTask

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_time_string(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format (00:00-23:59)")
    return value


def _normalize_periodicity(value: str | None) -> str | None:
    if value is None:
        return None
    parsed = parse_periodicity(value)
    if parsed is None:
        allowed = ", ".join(p.value for p in Periodicity)
        raise ValueError(f"Periodicity must be one of: {allowed}")
    return parsed.value


def _normalize_month(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    if not is_known_month(value):
        # Recurrence falls back to January for unknown month names
        logger.warning(f"Unrecognized month {value!r}, yearly occurrences use January")
        return value.strip()
    return value.strip().upper()


# Database Models (SQLModel)
class ShiftBase(SQLModel):
    """Base shift model"""

    name: str = SQLField(min_length=1, max_length=100)
    start_time: str = SQLField(max_length=5, description="Start time HH:MM")
    end_time: str = SQLField(
        max_length=5, description="End time HH:MM, earlier than start for overnight"
    )


class Shift(ShiftBase, table=True):  # type: ignore[call-arg]
    """Shift database model"""

    __tablename__ = "shifts"

    id: int | None = SQLField(default=None, primary_key=True)
    is_active: bool = SQLField(default=True, index=True)
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


class OperatorBase(SQLModel):
    """Base operator model"""

    name: str = SQLField(min_length=1, max_length=200)
    email: str | None = SQLField(default=None, max_length=200)
    department: str | None = SQLField(default=None, max_length=100)


class Operator(OperatorBase, table=True):  # type: ignore[call-arg]
    """Operator database model"""

    __tablename__ = "operators"

    id: int | None = SQLField(default=None, primary_key=True)
    is_active: bool = SQLField(default=True, index=True)
    default_shift_id: int | None = SQLField(default=None, foreign_key="shifts.id")
    # Authorization matrix: group name -> authorized
    authorizations: dict[str, Any] = SQLField(
        sa_column=Column(JSON), default_factory=dict
    )
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


class MachineBase(SQLModel):
    """Base machine model"""

    final_code: str = SQLField(min_length=1, max_length=50, index=True)
    type: str | None = SQLField(default=None, max_length=50)
    machine_group: str | None = SQLField(default=None, max_length=50)
    description: str | None = SQLField(default=None, max_length=255)
    area: str | None = SQLField(default=None, max_length=100)
    manufacturer: str | None = SQLField(default=None, max_length=100)
    model: str | None = SQLField(default=None, max_length=100)
    serial_number: str | None = SQLField(default=None, max_length=100)
    authorization_group: str | None = SQLField(default=None, max_length=100)
    maintenance_needed: bool = SQLField(default=True)
    maintenance_on_hold: bool = SQLField(default=False)
    person_in_charge_id: int | None = SQLField(
        default=None, foreign_key="operators.id"
    )


class Machine(MachineBase, table=True):  # type: ignore[call-arg]
    """Machine database model"""

    __tablename__ = "machines"

    id: int | None = SQLField(default=None, primary_key=True)
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


class MaintenanceActionBase(SQLModel):
    """Base maintenance action model"""

    action: str = SQLField(min_length=1, max_length=500)
    periodicity: str = SQLField(max_length=50)
    time_needed: int | None = SQLField(default=None, ge=1)
    maintenance_in_charge: bool = SQLField(default=False)
    status: ActionStatus = SQLField(
        default=ActionStatus.IDEAL,
        sa_column=Column(
            SQLEnum(ActionStatus, values_callable=lambda x: [e.value for e in x])
        ),
    )
    month: str | None = SQLField(default=None, max_length=20)


class MaintenanceAction(MaintenanceActionBase, table=True):  # type: ignore[call-arg]
    """Maintenance action database model"""

    __tablename__ = "maintenance_actions"

    id: int | None = SQLField(default=None, primary_key=True)
    machine_id: int = SQLField(foreign_key="machines.id", index=True)
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


class OperatorShiftOverride(SQLModel, table=True):  # type: ignore[call-arg]
    """Per-date shift override; a null shift marks a day off"""

    __tablename__ = "operator_shift_overrides"
    __table_args__ = (
        UniqueConstraint("operator_id", "shift_date", name="uq_override_operator_date"),
    )

    id: int | None = SQLField(default=None, primary_key=True)
    operator_id: int = SQLField(foreign_key="operators.id", index=True)
    shift_date: date = SQLField(index=True)
    shift_id: int | None = SQLField(default=None, foreign_key="shifts.id")
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


class MaintenanceExecutionBase(SQLModel):
    """Base maintenance execution model"""

    scheduled_date: date = SQLField(index=True)
    status: ExecutionStatus = SQLField(
        sa_column=Column(
            SQLEnum(ExecutionStatus, values_callable=lambda x: [e.value for e in x])
        ),
    )
    actual_time: int | None = SQLField(default=None, ge=0)
    completed_by_id: int | None = SQLField(default=None, foreign_key="operators.id")
    notes: str | None = SQLField(default=None, max_length=1000)


class MaintenanceExecution(MaintenanceExecutionBase, table=True):  # type: ignore[call-arg]
    """Recorded outcome of one maintenance occurrence"""

    __tablename__ = "maintenance_executions"
    __table_args__ = (
        UniqueConstraint(
            "action_id", "scheduled_date", name="uq_execution_action_date"
        ),
    )

    id: int | None = SQLField(default=None, primary_key=True)
    action_id: int = SQLField(foreign_key="maintenance_actions.id", index=True)
    machine_id: int = SQLField(foreign_key="machines.id")
    completed_date: datetime | None = SQLField(default=None)
    created_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = SQLField(default_factory=lambda: datetime.now(UTC))


# Request/Response Models
class ShiftCreate(ShiftBase):
    """Shift creation request"""

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_time_string(v)


class ShiftUpdate(BaseModel):
    """Shift update request"""

    name: str | None = Field(None, min_length=1, max_length=100)
    start_time: str | None = None
    end_time: str | None = None
    is_active: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _validate_time_string(v)


class ShiftResponse(ShiftBase):
    """Shift response model"""

    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OperatorCreate(OperatorBase):
    """Operator creation request"""

    authorizations: dict[str, bool] = Field(default_factory=dict)
    default_shift_id: int | None = None


class OperatorUpdate(BaseModel):
    """Operator update request"""

    name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, max_length=200)
    department: str | None = Field(None, max_length=100)
    is_active: bool | None = None
    authorizations: dict[str, bool] | None = None


class OperatorResponse(OperatorBase):
    """Operator response model"""

    id: int
    is_active: bool
    default_shift_id: int | None
    authorizations: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MachineCreate(MachineBase):
    """Machine creation request"""

    pass


class MachineUpdate(BaseModel):
    """Machine update request"""

    final_code: str | None = Field(None, min_length=1, max_length=50)
    type: str | None = Field(None, max_length=50)
    machine_group: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=255)
    area: str | None = Field(None, max_length=100)
    manufacturer: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    serial_number: str | None = Field(None, max_length=100)
    authorization_group: str | None = Field(None, max_length=100)
    maintenance_needed: bool | None = None
    maintenance_on_hold: bool | None = None
    person_in_charge_id: int | None = None


class MachineResponse(MachineBase):
    """Machine response model"""

    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaintenanceActionCreate(MaintenanceActionBase):
    """Maintenance action creation request"""

    machine_id: int

    @field_validator("periodicity")
    @classmethod
    def validate_periodicity(cls, v: str) -> str:
        return _normalize_periodicity(v)

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str | None) -> str | None:
        return _normalize_month(v)


class MaintenanceActionUpdate(BaseModel):
    """Maintenance action update request"""

    action: str | None = Field(None, min_length=1, max_length=500)
    periodicity: str | None = None
    time_needed: int | None = Field(None, ge=1)
    maintenance_in_charge: bool | None = None
    status: ActionStatus | None = None
    month: str | None = Field(None, max_length=20)

    @field_validator("periodicity")
    @classmethod
    def validate_periodicity(cls, v: str | None) -> str | None:
        return _normalize_periodicity(v)

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str | None) -> str | None:
        return _normalize_month(v)


class MaintenanceActionResponse(MaintenanceActionBase):
    """Maintenance action response model"""

    id: int
    machine_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DefaultShiftUpdate(BaseModel):
    """Set or clear an operator's default shift"""

    shift_id: int | None = None


class ShiftOverrideRequest(BaseModel):
    """Per-date override; ``shift_id`` null marks a day off"""

    operator_id: int
    date: date
    shift_id: int | None = None


class ShiftOverrideResponse(BaseModel):
    """Shift override response model"""

    id: int
    operator_id: int
    shift_date: date
    shift_id: int | None

    model_config = ConfigDict(from_attributes=True)


class RosterShiftInfo(BaseModel):
    shift_id: int
    shift_name: str
    start_time: str
    end_time: str


class RosterEntryResponse(BaseModel):
    """Effective shift of one operator on a date"""

    operator_id: int
    operator_name: str
    department: str
    default_shift_id: int | None = None
    default_shift_name: str | None = None
    effective_shift: RosterShiftInfo | None = None
    has_override: bool = False
    is_day_off: bool = False
    status: str


class MaintenanceExecutionCreate(BaseModel):
    """Record (or replace) the outcome of an occurrence"""

    action_id: int
    machine_id: int | None = None
    scheduled_date: date
    status: ExecutionStatus
    actual_time: int | None = Field(None, ge=0)
    completed_by_id: int | None = None
    notes: str | None = Field(None, max_length=1000)


class MaintenanceExecutionUpdate(BaseModel):
    """Maintenance execution update request"""

    status: ExecutionStatus | None = None
    actual_time: int | None = Field(None, ge=0)
    completed_by_id: int | None = None
    notes: str | None = Field(None, max_length=1000)


class MaintenanceExecutionResponse(BaseModel):
    """Maintenance execution response model"""

    id: int
    action_id: int
    machine_id: int
    scheduled_date: date
    status: ExecutionStatus
    actual_time: int | None = None
    completed_by_id: int | None = None
    completed_by_name: str | None = None
    completed_date: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ExecutionStatsResponse(BaseModel):
    """Completion statistics of one maintenance action for the current year"""

    action_id: int
    total_completed: int
    total_skipped: int
    total_records: int
    total_planned: int
    last_completed_date: datetime | None = None
    avg_actual_time: float | None = None
    completion_rate: int


# Daily schedule response models
class BreakWindowResponse(BaseModel):
    label: str
    start: str
    end: str
    start_minute: int
    end_minute: int

    @classmethod
    def from_window(cls, window: BreakWindow) -> "BreakWindowResponse":
        return cls(
            label=window.label,
            start=window.start_display,
            end=window.end_display,
            start_minute=window.start,
            end_minute=window.end,
        )


class ScheduledTaskResponse(BaseModel):
    id: str
    action_id: int
    machine_id: int
    machine_final_code: str
    machine_area: str
    action_text: str
    periodicity: str | None
    status: str
    maintenance_in_charge: bool
    time_needed: int
    assigned_operator_id: int
    assigned_operator_name: str
    start_time: str
    end_time: str
    start_minute: int
    end_minute: int
    execution_status: str | None = None
    execution_id: int | None = None
    completed_by_name: str | None = None
    scheduling_notes: list[str] = Field(default_factory=list)

    @classmethod
    def from_task(cls, task: ScheduledTask) -> "ScheduledTaskResponse":
        return cls(
            id=task.id,
            action_id=task.action_id,
            machine_id=task.machine_id,
            machine_final_code=task.machine_final_code,
            machine_area=task.machine_area,
            action_text=task.description,
            periodicity=task.periodicity,
            status=task.status,
            maintenance_in_charge=task.maintenance_in_charge,
            time_needed=task.time_needed,
            assigned_operator_id=task.operator_id,
            assigned_operator_name=task.operator_name,
            start_time=task.start_time,
            end_time=task.end_time,
            start_minute=task.start_minute,
            end_minute=task.end_minute,
            execution_status=task.execution_status,
            execution_id=task.execution_id,
            completed_by_name=task.completed_by_name,
            scheduling_notes=list(task.scheduling_notes),
        )


class OperatorLaneResponse(BaseModel):
    operator_id: int
    operator_name: str
    department: str
    tasks: list[ScheduledTaskResponse]
    total_minutes: int
    utilization_percent: int

    @classmethod
    def from_lane(cls, lane: OperatorLane) -> "OperatorLaneResponse":
        return cls(
            operator_id=lane.operator_id,
            operator_name=lane.operator_name,
            department=lane.department,
            tasks=[ScheduledTaskResponse.from_task(t) for t in lane.tasks],
            total_minutes=lane.total_minutes,
            utilization_percent=lane.utilization_percent,
        )


class ShiftScheduleResponse(BaseModel):
    shift_id: int
    shift_name: str
    workday_start: str
    workday_end: str
    available_minutes: int
    breaks: list[BreakWindowResponse]
    operators: list[OperatorLaneResponse]

    @classmethod
    def from_shift(cls, shift: ShiftSchedule) -> "ShiftScheduleResponse":
        return cls(
            shift_id=shift.shift_id,
            shift_name=shift.shift_name,
            workday_start=shift.workday_start,
            workday_end=shift.workday_end,
            available_minutes=shift.available_minutes,
            breaks=[BreakWindowResponse.from_window(b) for b in shift.breaks],
            operators=[OperatorLaneResponse.from_lane(lane) for lane in shift.lanes],
        )


class UnassignedOperatorResponse(BaseModel):
    operator_id: int
    operator_name: str
    department: str


class UnscheduledTaskResponse(BaseModel):
    action_id: int
    machine_id: int
    machine_final_code: str
    machine_area: str
    action_text: str
    periodicity: str | None
    status: str
    time_needed: int
    reason: str

    @classmethod
    def from_task(cls, task: UnscheduledTask) -> "UnscheduledTaskResponse":
        return cls(
            action_id=task.action_id,
            machine_id=task.machine_id,
            machine_final_code=task.machine_final_code,
            machine_area=task.machine_area,
            action_text=task.description,
            periodicity=task.periodicity,
            status=task.status,
            time_needed=task.time_needed,
            reason=task.reason,
        )


class ScheduleConfigResponse(BaseModel):
    break_duration: int
    buffer_minutes: int
    prioritize_mandatory: bool
    group_by_machine: bool


class ScheduleSummaryResponse(BaseModel):
    total_tasks: int
    scheduled_tasks: int
    unscheduled_tasks: int
    total_minutes: int
    mandatory_count: int
    ideal_count: int
    operator_count: int
    shift_count: int


class DailyScheduleResponse(BaseModel):
    """Computed maintenance plan for one day"""

    date: date
    config: ScheduleConfigResponse
    shifts: list[ShiftScheduleResponse]
    unassigned: list[UnassignedOperatorResponse]
    unscheduled: list[UnscheduledTaskResponse]
    summary: ScheduleSummaryResponse

    @classmethod
    def from_schedule(cls, schedule: DailySchedule) -> "DailyScheduleResponse":
        summary = schedule.summary
        return cls(
            date=schedule.date,
            config=ScheduleConfigResponse(
                break_duration=schedule.config.break_duration,
                buffer_minutes=schedule.config.buffer_minutes,
                prioritize_mandatory=schedule.config.prioritize_mandatory,
                group_by_machine=schedule.config.group_by_machine,
            ),
            shifts=[ShiftScheduleResponse.from_shift(s) for s in schedule.shifts],
            unassigned=[
                UnassignedOperatorResponse(
                    operator_id=op.id,
                    operator_name=op.name,
                    department=op.department or "",
                )
                for op in schedule.unassigned
            ],
            unscheduled=[
                UnscheduledTaskResponse.from_task(t) for t in schedule.unscheduled
            ],
            summary=ScheduleSummaryResponse(
                total_tasks=summary.total_tasks,
                scheduled_tasks=summary.scheduled_tasks,
                unscheduled_tasks=summary.unscheduled_tasks,
                total_minutes=summary.total_minutes,
                mandatory_count=summary.mandatory_count,
                ideal_count=summary.ideal_count,
                operator_count=summary.operator_count,
                shift_count=summary.shift_count,
            ),
        )


# Error Response Models
class ErrorDetail(BaseModel):
    """Error detail model following API standardization"""

    code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )


class ErrorResponse(BaseModel):
    """Standardized error response model"""

    error: ErrorDetail

    @classmethod
    def create(
        cls, code: str, message: str, details: dict[str, Any] | None = None
    ) -> "ErrorResponse":
        """Create a standardized error response"""
        return cls(error=ErrorDetail(code=code, message=message, details=details))
