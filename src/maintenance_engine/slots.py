"""Greedy shift-aware placement of maintenance tasks.

Tasks are taken in candidate order and each one goes to the first
shift/operator combination that has a free window. Nothing is ever moved once
placed, so an early choice can leave a later task without room.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from .candidates import TaskCandidate
from .config import MINUTES_PER_DAY, BreakDefinition, minutes_to_time
from .models import Operator, ShiftDefinition
from .recurrence import format_date
from .roster import ShiftGroup

logger = logging.getLogger(__name__)

PREFERRED_OPERATOR_NOTE = "Assigned to preferred operator (Person in Charge)"
NO_SHIFTS_REASON = "No operators with shift assignments"
NO_SLOT_REASON = "No available time slot across all shifts"

Interval = tuple[int, int]


@dataclass(frozen=True)
class BreakWindow:
    label: str
    start: int
    end: int

    @property
    def start_display(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_display(self) -> str:
        return minutes_to_time(self.end)


@dataclass(frozen=True)
class Slot:
    start: int
    end: int


@dataclass
class ShiftPlan:
    shift: ShiftDefinition
    operators: list[Operator]
    work_start: int
    work_end: int
    breaks: list[BreakWindow]
    available_minutes: int


@dataclass
class AvailabilityLedger:
    """Busy intervals recorded during one scheduling pass.

    Machine intervals are shared by every shift because a machine can only be
    serviced once at a time. Operator intervals belong to the operator alone.
    """

    operator_busy: dict[int, list[Interval]] = field(default_factory=dict)
    machine_busy: dict[int, list[Interval]] = field(default_factory=dict)

    def operator_intervals(self, operator_id: int) -> list[Interval]:
        return list(self.operator_busy.get(operator_id, []))

    def machine_intervals(self, machine_id: int) -> list[Interval]:
        return list(self.machine_busy.get(machine_id, []))

    def reserve(self, operator_id: int, machine_id: int, slot: Slot) -> None:
        interval = (slot.start, slot.end)
        self.operator_busy.setdefault(operator_id, []).append(interval)
        self.machine_busy.setdefault(machine_id, []).append(interval)


@dataclass(frozen=True)
class ScheduledTask:
    id: str
    action_id: int
    machine_id: int
    machine_final_code: str
    machine_area: str
    description: str
    periodicity: str | None
    status: str
    maintenance_in_charge: bool
    time_needed: int
    shift_id: int
    operator_id: int
    operator_name: str
    start_minute: int
    end_minute: int
    execution_status: str | None = None
    execution_id: int | None = None
    completed_by_name: str | None = None
    scheduling_notes: tuple[str, ...] = ()

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)


@dataclass(frozen=True)
class UnscheduledTask:
    action_id: int
    machine_id: int
    machine_final_code: str
    machine_area: str
    description: str
    periodicity: str | None
    status: str
    time_needed: int
    reason: str


@dataclass
class SchedulingOutcome:
    scheduled: list[ScheduledTask] = field(default_factory=list)
    unscheduled: list[UnscheduledTask] = field(default_factory=list)
    ledger: AvailabilityLedger = field(default_factory=AvailabilityLedger)


def compute_applicable_breaks(
    work_start: int,
    work_end: int,
    break_duration: int,
    breaks: Iterable[BreakDefinition],
) -> list[BreakWindow]:
    """Breaks that start inside the shift and end before it does."""
    windows = []
    for definition in breaks:
        start = definition.minute_of_day
        # Overnight shifts see the next day's occurrence of early breaks
        if start < work_start and work_end > MINUTES_PER_DAY:
            start += MINUTES_PER_DAY
        if start >= work_start and start + break_duration <= work_end:
            windows.append(
                BreakWindow(
                    label=definition.label, start=start, end=start + break_duration
                )
            )
    return sorted(windows, key=lambda w: w.start)


def plan_shift(
    group: ShiftGroup, break_duration: int, breaks: Iterable[BreakDefinition]
) -> ShiftPlan:
    work_start = group.shift.work_start
    work_end = group.shift.work_end
    windows = compute_applicable_breaks(work_start, work_end, break_duration, breaks)
    total_break_minutes = sum(w.end - w.start for w in windows)
    return ShiftPlan(
        shift=group.shift,
        operators=list(group.operators),
        work_start=work_start,
        work_end=work_end,
        breaks=windows,
        available_minutes=(work_end - work_start) - total_break_minutes,
    )


def find_earliest_slot(
    operator_busy: Sequence[Interval],
    machine_busy: Sequence[Interval],
    duration: int,
    work_start: int,
    work_end: int,
    breaks: Sequence[BreakWindow],
    buffer: int,
) -> Slot | None:
    """
    Find the earliest ``[start, start + duration)`` window inside the shift.

    Busy intervals of the operator and the machine are padded by ``buffer``
    minutes on both sides; break windows are blocked as-is.

    Returns:
        The slot, or ``None`` when the sweep runs past ``work_end``
    """
    blocked: list[Interval] = [
        (start - buffer, end + buffer) for start, end in operator_busy
    ]
    blocked.extend((start - buffer, end + buffer) for start, end in machine_busy)
    blocked.extend((window.start, window.end) for window in breaks)
    blocked.sort()

    candidate = work_start
    while candidate + duration <= work_end:
        candidate_end = candidate + duration
        for blocked_start, blocked_end in blocked:
            if candidate < blocked_end and candidate_end > blocked_start:
                candidate = blocked_end
                break
        else:
            return Slot(start=candidate, end=candidate_end)
    return None


def _candidate_operators(plan: ShiftPlan, task: TaskCandidate) -> list[Operator]:
    operators = [
        op for op in plan.operators if op.is_authorized_for(task.authorization_group)
    ]
    if task.maintenance_in_charge and task.person_in_charge_id is not None:
        for index, op in enumerate(operators):
            if op.id == task.person_in_charge_id:
                if index > 0:
                    operators.insert(0, operators.pop(index))
                break
    return operators


def _scheduled_task(
    task: TaskCandidate,
    plan: ShiftPlan,
    operator: Operator,
    slot: Slot,
    target_date: date,
) -> ScheduledTask:
    notes = []
    if task.maintenance_in_charge and task.person_in_charge_id == operator.id:
        notes.append(PREFERRED_OPERATOR_NOTE)
    execution = task.execution
    return ScheduledTask(
        id=f"{task.action_id}-{format_date(target_date)}",
        action_id=task.action_id,
        machine_id=task.machine_id,
        machine_final_code=task.machine_final_code,
        machine_area=task.machine_area,
        description=task.description,
        periodicity=task.periodicity,
        status=task.status,
        maintenance_in_charge=task.maintenance_in_charge,
        time_needed=task.time_needed,
        shift_id=plan.shift.id,
        operator_id=operator.id,
        operator_name=operator.name,
        start_minute=slot.start,
        end_minute=slot.end,
        execution_status=execution.status if execution else None,
        execution_id=execution.id if execution else None,
        completed_by_name=execution.completed_by_name if execution else None,
        scheduling_notes=tuple(notes),
    )


def _unscheduled_task(task: TaskCandidate, reason: str) -> UnscheduledTask:
    return UnscheduledTask(
        action_id=task.action_id,
        machine_id=task.machine_id,
        machine_final_code=task.machine_final_code,
        machine_area=task.machine_area,
        description=task.description,
        periodicity=task.periodicity,
        status=task.status,
        time_needed=task.time_needed,
        reason=reason,
    )


def schedule_candidates(
    candidates: Sequence[TaskCandidate],
    shift_plans: Sequence[ShiftPlan],
    *,
    target_date: date,
    buffer_minutes: int,
    ledger: AvailabilityLedger | None = None,
) -> SchedulingOutcome:
    """
    Assign each candidate, in order, to the first shift and operator with room.

    Shifts are tried by ascending work start (then shift id). The ledger is
    updated in place so later tasks, in any shift, see earlier placements.
    """
    if ledger is None:
        ledger = AvailabilityLedger()
    outcome = SchedulingOutcome(ledger=ledger)
    ordered_plans = sorted(shift_plans, key=lambda p: (p.work_start, p.shift.id))

    for task in candidates:
        placed = None
        for plan in ordered_plans:
            for operator in _candidate_operators(plan, task):
                slot = find_earliest_slot(
                    ledger.operator_intervals(operator.id),
                    ledger.machine_intervals(task.machine_id),
                    task.time_needed,
                    plan.work_start,
                    plan.work_end,
                    plan.breaks,
                    buffer_minutes,
                )
                if slot is not None:
                    ledger.reserve(operator.id, task.machine_id, slot)
                    placed = _scheduled_task(task, plan, operator, slot, target_date)
                    break
            if placed is not None:
                break

        if placed is not None:
            logger.debug(
                f"Action {task.action_id} -> operator {placed.operator_id} "
                f"{placed.start_time}-{placed.end_time} (shift {placed.shift_id})"
            )
            outcome.scheduled.append(placed)
            continue

        reason = NO_SHIFTS_REASON if not ordered_plans else NO_SLOT_REASON
        logger.debug(f"Action {task.action_id} unscheduled: {reason}")
        outcome.unscheduled.append(_unscheduled_task(task, reason))

    return outcome
