"""Maintenance scheduling engine decoupled from the API layer.

This package is intentionally dependency-light. It expands periodic maintenance
policies into calendar dates and places the tasks due on a day into operator
shifts with a deterministic first-fit pass, behind pure-Python interfaces.
"""

from .assembler import (
    DailySchedule,
    OperatorLane,
    ScheduleSummary,
    ShiftSchedule,
    assemble_schedule,
    utilization_percent,
)
from .candidates import TaskCandidate, build_candidates, candidate_sort_key
from .config import (
    BreakDefinition,
    SchedulingConfig,
    default_breaks,
    minutes_to_time,
    parse_time,
)
from .daily import compute_daily_schedule
from .models import (
    ActionStatus,
    Execution,
    ExecutionStatus,
    Machine,
    MaintenancePolicy,
    Operator,
    ShiftDefinition,
    ShiftOverride,
)
from .recurrence import (
    MONTH_NAMES,
    Periodicity,
    count_planned_occurrences,
    format_date,
    generate_occurrences,
    is_due_on,
    is_known_month,
    month_index,
    parse_periodicity,
)
from .roster import (
    RosterEntry,
    RosterGrouping,
    RosterStatus,
    ShiftGroup,
    build_roster,
    group_operators_by_shift,
    resolve_effective_shift,
)
from .slots import (
    AvailabilityLedger,
    BreakWindow,
    ScheduledTask,
    SchedulingOutcome,
    ShiftPlan,
    Slot,
    UnscheduledTask,
    compute_applicable_breaks,
    find_earliest_slot,
    plan_shift,
    schedule_candidates,
)

__all__ = [
    "ActionStatus",
    "assemble_schedule",
    "AvailabilityLedger",
    "BreakDefinition",
    "BreakWindow",
    "build_candidates",
    "build_roster",
    "candidate_sort_key",
    "compute_applicable_breaks",
    "compute_daily_schedule",
    "count_planned_occurrences",
    "DailySchedule",
    "default_breaks",
    "Execution",
    "ExecutionStatus",
    "find_earliest_slot",
    "format_date",
    "generate_occurrences",
    "group_operators_by_shift",
    "is_due_on",
    "is_known_month",
    "Machine",
    "MaintenancePolicy",
    "minutes_to_time",
    "month_index",
    "MONTH_NAMES",
    "Operator",
    "OperatorLane",
    "parse_periodicity",
    "parse_time",
    "Periodicity",
    "plan_shift",
    "resolve_effective_shift",
    "RosterEntry",
    "RosterGrouping",
    "RosterStatus",
    "schedule_candidates",
    "ScheduledTask",
    "ScheduleSummary",
    "SchedulingConfig",
    "SchedulingOutcome",
    "ShiftDefinition",
    "ShiftGroup",
    "ShiftOverride",
    "ShiftPlan",
    "ShiftSchedule",
    "Slot",
    "TaskCandidate",
    "UnscheduledTask",
    "utilization_percent",
]
