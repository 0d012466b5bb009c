"""Input value types consumed by the scheduling engine.

These are plain snapshots of persisted rows. The engine never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .config import MINUTES_PER_DAY, parse_time


class ActionStatus(str, Enum):
    IDEAL = "IDEAL"
    MANDATORY = "MANDATORY"


class ExecutionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class MaintenancePolicy:
    id: int
    machine_id: int
    description: str
    periodicity: str | None
    status: str = ActionStatus.IDEAL.value
    month: str | None = None
    time_needed: int | None = None
    maintenance_in_charge: bool = False


@dataclass(frozen=True)
class Machine:
    id: int
    final_code: str = ""
    area: str = ""
    authorization_group: str | None = None
    person_in_charge_id: int | None = None
    maintenance_needed: bool = True
    maintenance_on_hold: bool = False

    @property
    def is_eligible(self) -> bool:
        return self.maintenance_needed and not self.maintenance_on_hold


@dataclass(frozen=True)
class Operator:
    id: int
    name: str
    department: str = ""
    authorized_groups: frozenset[str] = field(default_factory=frozenset)
    default_shift_id: int | None = None

    def is_authorized_for(self, group: str | None) -> bool:
        return not group or group in self.authorized_groups


@dataclass(frozen=True)
class ShiftDefinition:
    id: int
    name: str
    start_time: str
    end_time: str

    @property
    def work_start(self) -> int:
        return parse_time(self.start_time)

    @property
    def work_end(self) -> int:
        end = parse_time(self.end_time)
        if end <= self.work_start:
            end += MINUTES_PER_DAY
        return end


@dataclass(frozen=True)
class ShiftOverride:
    operator_id: int
    shift_date: date
    shift_id: int | None = None


@dataclass(frozen=True)
class Execution:
    id: int
    action_id: int
    scheduled_date: date
    status: str
    actual_time: int | None = None
    completed_by_id: int | None = None
    completed_by_name: str | None = None
    completed_date: datetime | None = None
    notes: str | None = None
