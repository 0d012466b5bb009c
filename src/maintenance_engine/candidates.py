"""Selection and ordering of the maintenance tasks due on a date."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .models import ActionStatus, Execution, Machine, MaintenancePolicy
from .recurrence import Periodicity, is_due_on, parse_periodicity

logger = logging.getLogger(__name__)

DEFAULT_TIME_NEEDED = 15

# Rarer maintenance is placed first
PERIODICITY_WEIGHT = {
    Periodicity.YEARLY: 0,
    Periodicity.QUARTERLY: 1,
    Periodicity.MONTHLY: 2,
    Periodicity.WEEKLY: 3,
    Periodicity.BEFORE_EACH_USE: 4,
}
UNKNOWN_PERIODICITY_WEIGHT = 5


@dataclass(frozen=True)
class TaskCandidate:
    action_id: int
    machine_id: int
    machine_final_code: str
    machine_area: str
    authorization_group: str | None
    person_in_charge_id: int | None
    description: str
    periodicity: str | None
    status: str
    maintenance_in_charge: bool
    time_needed: int
    execution: Execution | None = None

    @property
    def is_mandatory(self) -> bool:
        return self.status == ActionStatus.MANDATORY.value


def normalize_time_needed(value: int | None, default: int = DEFAULT_TIME_NEEDED) -> int:
    try:
        minutes = int(value) if value is not None else 0
    except (TypeError, ValueError):
        minutes = 0
    return minutes if minutes >= 1 else default


def periodicity_weight(periodicity: str | None) -> int:
    parsed = parse_periodicity(periodicity)
    if parsed is None:
        return UNKNOWN_PERIODICITY_WEIGHT
    return PERIODICITY_WEIGHT[parsed]


def candidate_sort_key(
    candidate: TaskCandidate, *, prioritize_mandatory: bool, group_by_machine: bool
) -> tuple:
    return (
        (0 if candidate.is_mandatory else 1) if prioritize_mandatory else 0,
        periodicity_weight(candidate.periodicity),
        candidate.machine_id if group_by_machine else 0,
        0 if candidate.maintenance_in_charge else 1,
        -candidate.time_needed,
    )


def build_candidates(
    policies: Iterable[MaintenancePolicy],
    machines: Iterable[Machine],
    executions: Iterable[Execution],
    target_date: date,
    *,
    prioritize_mandatory: bool = True,
    group_by_machine: bool = True,
    default_time_needed: int = DEFAULT_TIME_NEEDED,
) -> list[TaskCandidate]:
    """
    Collect the policies due on ``target_date`` for eligible machines.

    Existing executions for the date are attached for display only; a task that
    was already completed or skipped is still scheduled.

    Returns:
        Candidates in scheduling order
    """
    eligible = {machine.id: machine for machine in machines if machine.is_eligible}
    execution_by_action = {
        execution.action_id: execution
        for execution in executions
        if execution.scheduled_date == target_date
    }

    candidates = []
    for policy in policies:
        machine = eligible.get(policy.machine_id)
        if machine is None:
            continue
        if not is_due_on(policy, target_date):
            continue

        candidates.append(
            TaskCandidate(
                action_id=policy.id,
                machine_id=machine.id,
                machine_final_code=machine.final_code,
                machine_area=machine.area or "",
                authorization_group=machine.authorization_group or None,
                person_in_charge_id=machine.person_in_charge_id,
                description=policy.description,
                periodicity=policy.periodicity,
                status=policy.status,
                maintenance_in_charge=bool(policy.maintenance_in_charge),
                time_needed=normalize_time_needed(
                    policy.time_needed, default_time_needed
                ),
                execution=execution_by_action.get(policy.id),
            )
        )

    candidates.sort(
        key=lambda c: candidate_sort_key(
            c,
            prioritize_mandatory=prioritize_mandatory,
            group_by_machine=group_by_machine,
        )
    )
    logger.debug(f"{len(candidates)} maintenance tasks due on {target_date}")
    return candidates
