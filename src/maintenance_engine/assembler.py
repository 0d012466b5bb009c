"""Grouping of placed tasks into per-shift operator lanes and a day summary."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .candidates import TaskCandidate
from .config import SchedulingConfig, minutes_to_time
from .models import ActionStatus, Operator
from .slots import BreakWindow, ScheduledTask, ShiftPlan, UnscheduledTask


@dataclass(frozen=True)
class OperatorLane:
    operator_id: int
    operator_name: str
    department: str
    tasks: tuple[ScheduledTask, ...]
    total_minutes: int
    utilization_percent: int


@dataclass(frozen=True)
class ShiftSchedule:
    shift_id: int
    shift_name: str
    workday_start: str
    workday_end: str
    work_start: int
    work_end: int
    available_minutes: int
    breaks: tuple[BreakWindow, ...]
    lanes: tuple[OperatorLane, ...]


@dataclass(frozen=True)
class ScheduleSummary:
    total_tasks: int
    scheduled_tasks: int
    unscheduled_tasks: int
    total_minutes: int
    mandatory_count: int
    ideal_count: int
    operator_count: int
    shift_count: int


@dataclass(frozen=True)
class DailySchedule:
    date: date
    config: SchedulingConfig
    shifts: tuple[ShiftSchedule, ...]
    unassigned: tuple[Operator, ...]
    unscheduled: tuple[UnscheduledTask, ...]
    summary: ScheduleSummary
    day_off: tuple[Operator, ...] = field(default=())

    @property
    def scheduled(self) -> list[ScheduledTask]:
        return [task for shift in self.shifts for lane in shift.lanes for task in lane.tasks]


def utilization_percent(total_minutes: int, available_minutes: int) -> int:
    """Whole percent of the shift's working minutes, rounded half up."""
    if available_minutes <= 0:
        return 0
    ratio = Decimal(total_minutes) * 100 / Decimal(available_minutes)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _lane_sort_key(lane: OperatorLane) -> tuple[str, int]:
    return (lane.operator_name.casefold(), lane.operator_id)


def _build_lanes(
    plan: ShiftPlan, tasks: Sequence[ScheduledTask]
) -> tuple[OperatorLane, ...]:
    tasks_by_operator: dict[int, list[ScheduledTask]] = {
        op.id: [] for op in plan.operators
    }
    for task in tasks:
        tasks_by_operator.setdefault(task.operator_id, []).append(task)

    operators = {op.id: op for op in plan.operators}
    lanes = []
    for operator_id, operator_tasks in tasks_by_operator.items():
        operator = operators.get(operator_id)
        ordered = sorted(operator_tasks, key=lambda t: (t.start_minute, t.action_id))
        total = sum(t.time_needed for t in ordered)
        if operator is not None:
            name, department = operator.name, operator.department
        else:
            name, department = ordered[0].operator_name, ""
        lanes.append(
            OperatorLane(
                operator_id=operator_id,
                operator_name=name,
                department=department or "",
                tasks=tuple(ordered),
                total_minutes=total,
                utilization_percent=utilization_percent(total, plan.available_minutes),
            )
        )
    return tuple(sorted(lanes, key=_lane_sort_key))


def assemble_schedule(
    target_date: date,
    config: SchedulingConfig,
    shift_plans: Sequence[ShiftPlan],
    candidates: Sequence[TaskCandidate],
    scheduled: Sequence[ScheduledTask],
    unscheduled: Sequence[UnscheduledTask],
    unassigned: Sequence[Operator],
    operator_count: int,
    day_off: Sequence[Operator] = (),
) -> DailySchedule:
    """
    Build the response-shaped view of one scheduling pass.

    Every operator of a shift gets a lane, idle or not.
    """
    ordered_plans = sorted(shift_plans, key=lambda p: (p.work_start, p.shift.id))
    tasks_by_shift: dict[int, list[ScheduledTask]] = {}
    for task in scheduled:
        tasks_by_shift.setdefault(task.shift_id, []).append(task)

    shifts = tuple(
        ShiftSchedule(
            shift_id=plan.shift.id,
            shift_name=plan.shift.name,
            workday_start=minutes_to_time(plan.work_start),
            workday_end=minutes_to_time(plan.work_end),
            work_start=plan.work_start,
            work_end=plan.work_end,
            available_minutes=plan.available_minutes,
            breaks=tuple(plan.breaks),
            lanes=_build_lanes(plan, tasks_by_shift.get(plan.shift.id, [])),
        )
        for plan in ordered_plans
    )

    summary = ScheduleSummary(
        total_tasks=len(candidates),
        scheduled_tasks=len(scheduled),
        unscheduled_tasks=len(unscheduled),
        total_minutes=sum(task.time_needed for task in scheduled),
        mandatory_count=sum(
            1 for c in candidates if c.status == ActionStatus.MANDATORY.value
        ),
        ideal_count=sum(1 for c in candidates if c.status == ActionStatus.IDEAL.value),
        operator_count=operator_count,
        shift_count=len(shifts),
    )

    return DailySchedule(
        date=target_date,
        config=config,
        shifts=shifts,
        unassigned=tuple(unassigned),
        unscheduled=tuple(unscheduled),
        summary=summary,
        day_off=tuple(day_off),
    )
