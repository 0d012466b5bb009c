"""Effective shift resolution for operators on a given date."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .models import Operator, ShiftDefinition, ShiftOverride

logger = logging.getLogger(__name__)


class RosterStatus(str, Enum):
    SHIFT = "shift"
    DAY_OFF = "day_off"
    UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class RosterEntry:
    operator: Operator
    status: RosterStatus
    shift: ShiftDefinition | None = None
    has_override: bool = False


@dataclass
class ShiftGroup:
    shift: ShiftDefinition
    operators: list[Operator] = field(default_factory=list)


@dataclass
class RosterGrouping:
    shift_groups: list[ShiftGroup] = field(default_factory=list)
    unassigned: list[Operator] = field(default_factory=list)
    day_off: list[Operator] = field(default_factory=list)


def _override_index(
    overrides: Iterable[ShiftOverride], on_date: date
) -> dict[int, ShiftOverride]:
    return {o.operator_id: o for o in overrides if o.shift_date == on_date}


def _shift_index(
    shifts: Iterable[ShiftDefinition] | Mapping[int, ShiftDefinition],
) -> dict[int, ShiftDefinition]:
    if isinstance(shifts, Mapping):
        return dict(shifts)
    return {shift.id: shift for shift in shifts}


def resolve_effective_shift(
    operator: Operator,
    on_date: date,
    overrides: Iterable[ShiftOverride],
    shifts: Iterable[ShiftDefinition] | Mapping[int, ShiftDefinition],
) -> RosterEntry:
    """
    Resolve the shift an operator works on ``on_date``.

    An override for the exact date wins over the default shift, and an override
    without a shift marks a day off. Shift ids that do not match an active
    shift definition leave the operator unassigned.
    """
    override = _override_index(overrides, on_date).get(operator.id)
    return _resolve(operator, override, _shift_index(shifts))


def _resolve(
    operator: Operator,
    override: ShiftOverride | None,
    shifts_by_id: dict[int, ShiftDefinition],
) -> RosterEntry:
    if override is not None:
        if override.shift_id is None:
            return RosterEntry(operator, RosterStatus.DAY_OFF, has_override=True)
        shift_id = override.shift_id
    elif operator.default_shift_id is not None:
        shift_id = operator.default_shift_id
    else:
        return RosterEntry(operator, RosterStatus.UNASSIGNED)

    shift = shifts_by_id.get(shift_id)
    if shift is None:
        logger.warning(
            f"Operator {operator.id} references unknown or inactive shift {shift_id}"
        )
        return RosterEntry(
            operator, RosterStatus.UNASSIGNED, has_override=override is not None
        )
    return RosterEntry(
        operator, RosterStatus.SHIFT, shift=shift, has_override=override is not None
    )


def build_roster(
    operators: Iterable[Operator],
    on_date: date,
    overrides: Iterable[ShiftOverride],
    shifts: Iterable[ShiftDefinition] | Mapping[int, ShiftDefinition],
) -> list[RosterEntry]:
    override_by_operator = _override_index(overrides, on_date)
    shifts_by_id = _shift_index(shifts)
    return [
        _resolve(operator, override_by_operator.get(operator.id), shifts_by_id)
        for operator in operators
    ]


def group_operators_by_shift(
    operators: Iterable[Operator],
    on_date: date,
    overrides: Iterable[ShiftOverride],
    shifts: Iterable[ShiftDefinition] | Mapping[int, ShiftDefinition],
) -> RosterGrouping:
    """Partition operators by effective shift; groups ordered by work start."""
    grouping = RosterGrouping()
    groups: dict[int, ShiftGroup] = {}

    for entry in build_roster(operators, on_date, overrides, shifts):
        if entry.status is RosterStatus.DAY_OFF:
            grouping.day_off.append(entry.operator)
        elif entry.status is RosterStatus.UNASSIGNED:
            grouping.unassigned.append(entry.operator)
        else:
            group = groups.setdefault(entry.shift.id, ShiftGroup(shift=entry.shift))
            group.operators.append(entry.operator)

    grouping.shift_groups = sorted(
        groups.values(), key=lambda g: (g.shift.work_start, g.shift.id)
    )
    return grouping
