"""Expansion of periodic maintenance policies into concrete calendar dates.

All arithmetic is done on UTC calendar dates so that occurrences line up with
the DATE columns in the database regardless of the server's local timezone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta, UTC
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
)

QUARTER_START_MONTHS = (1, 4, 7, 10)


class Periodicity(str, Enum):
    """Recurrence rule of a maintenance policy"""

    BEFORE_EACH_USE = "BEFORE EACH USE"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class RecurringPolicy(Protocol):
    periodicity: str | None
    month: str | None


def parse_periodicity(value: str | Periodicity | None) -> Periodicity | None:
    """Map stored periodicity text to the enum, ``None`` when unrecognized."""
    if value is None:
        return None
    if isinstance(value, Periodicity):
        return value
    normalized = " ".join(value.replace("_", " ").split()).upper()
    try:
        return Periodicity(normalized)
    except ValueError:
        return None


def month_index(name: str | None) -> int:
    """1-based month number for a month name; January when unknown."""
    if name:
        upper = name.strip().upper()
        if upper in MONTH_NAMES:
            return MONTH_NAMES.index(upper) + 1
    return 1


def is_known_month(name: str | None) -> bool:
    return bool(name) and name.strip().upper() in MONTH_NAMES


def to_utc_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _daily(range_start: date, range_end: date) -> list[date]:
    days = (range_end - range_start).days
    return [range_start + timedelta(days=offset) for offset in range(days + 1)]


def _weekly(range_start: date, range_end: date) -> list[date]:
    current = date(range_start.year, 1, 1)
    dates = []
    while current <= range_end:
        if current >= range_start:
            dates.append(current)
        current += timedelta(days=7)
    return dates


def _first_of_months(
    range_start: date, range_end: date, months: Iterable[int]
) -> list[date]:
    month_list = sorted(set(months))
    dates = []
    for year in range(range_start.year, range_end.year + 1):
        for month in month_list:
            candidate = date(year, month, 1)
            if range_start <= candidate <= range_end:
                dates.append(candidate)
    return dates


def generate_occurrences(
    policy: RecurringPolicy, range_start: date | datetime, range_end: date | datetime
) -> list[date]:
    """
    Generate all dates within ``[range_start, range_end]`` on which a policy is due.

    Args:
        policy: Anything with ``periodicity`` and ``month`` attributes
        range_start: Inclusive start of the range
        range_end: Inclusive end of the range

    Returns:
        Ascending list of UTC calendar dates. Unknown periodicities produce
        an empty list.
    """
    start = to_utc_date(range_start)
    end = to_utc_date(range_end)
    if end < start:
        return []

    periodicity = parse_periodicity(policy.periodicity)
    if periodicity is None:
        if policy.periodicity:
            logger.debug(f"Unknown periodicity {policy.periodicity!r}, no occurrences")
        return []

    if periodicity is Periodicity.BEFORE_EACH_USE:
        return _daily(start, end)
    if periodicity is Periodicity.WEEKLY:
        return _weekly(start, end)
    if periodicity is Periodicity.MONTHLY:
        return _first_of_months(start, end, range(1, 13))
    if periodicity is Periodicity.QUARTERLY:
        return _first_of_months(start, end, QUARTER_START_MONTHS)
    return _first_of_months(start, end, [month_index(policy.month)])


def is_due_on(policy: RecurringPolicy, target_date: date | datetime) -> bool:
    return bool(generate_occurrences(policy, target_date, target_date))


def count_planned_occurrences(
    policies: Iterable[RecurringPolicy],
    range_start: date | datetime,
    range_end: date | datetime,
) -> int:
    return sum(
        len(generate_occurrences(policy, range_start, range_end))
        for policy in policies
    )
