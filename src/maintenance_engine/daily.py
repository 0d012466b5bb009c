from __future__ import annotations

import logging
import time as time_module
from collections.abc import Iterable, Sequence
from datetime import date

from .assembler import DailySchedule, assemble_schedule
from .candidates import build_candidates
from .config import SchedulingConfig
from .models import (
    Execution,
    Machine,
    MaintenancePolicy,
    Operator,
    ShiftDefinition,
    ShiftOverride,
)
from .roster import group_operators_by_shift
from .slots import AvailabilityLedger, plan_shift, schedule_candidates

logger = logging.getLogger(__name__)


def compute_daily_schedule(
    target_date: date,
    policies: Sequence[MaintenancePolicy],
    machines: Iterable[Machine],
    operators: Sequence[Operator],
    shifts: Iterable[ShiftDefinition],
    overrides: Iterable[ShiftOverride],
    executions: Iterable[Execution],
    config: SchedulingConfig | None = None,
) -> DailySchedule:
    """
    Compute the maintenance plan for one day.

    Operators are expected in a stable order (by id) and policies likewise;
    ties in every ordering fall back to that input order.
    """
    start_time = time_module.time()
    if config is None:
        config = SchedulingConfig()

    grouping = group_operators_by_shift(operators, target_date, overrides, shifts)
    shift_plans = [
        plan_shift(group, config.break_duration, config.breaks)
        for group in grouping.shift_groups
    ]

    candidates = build_candidates(
        policies,
        machines,
        executions,
        target_date,
        prioritize_mandatory=config.prioritize_mandatory,
        group_by_machine=config.group_by_machine,
        default_time_needed=config.default_time_needed,
    )

    outcome = schedule_candidates(
        candidates,
        shift_plans,
        target_date=target_date,
        buffer_minutes=config.buffer_minutes,
        ledger=AvailabilityLedger(),
    )

    schedule = assemble_schedule(
        target_date,
        config,
        shift_plans,
        candidates,
        outcome.scheduled,
        outcome.unscheduled,
        grouping.unassigned,
        operator_count=len(operators),
        day_off=grouping.day_off,
    )

    logger.info(
        f"Schedule for {target_date}: {len(outcome.scheduled)}/{len(candidates)} "
        f"tasks placed across {len(shift_plans)} shifts "
        f"in {time_module.time() - start_time:.3f}s"
    )
    return schedule
