from __future__ import annotations

from dataclasses import dataclass, field

MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class BreakDefinition:
    """A meal break that starts at a fixed minute of the day."""

    minute_of_day: int
    label: str


def default_breaks() -> tuple[BreakDefinition, ...]:
    return (
        BreakDefinition(minute_of_day=60, label="Midnight"),  # 01:00
        BreakDefinition(minute_of_day=480, label="Breakfast"),  # 08:00
        BreakDefinition(minute_of_day=720, label="Lunch"),  # 12:00
        BreakDefinition(minute_of_day=1200, label="Dinner"),  # 20:00
    )


@dataclass(frozen=True)
class SchedulingConfig:
    break_duration: int = 30
    buffer_minutes: int = 5
    prioritize_mandatory: bool = True
    group_by_machine: bool = True
    default_time_needed: int = 15
    breaks: tuple[BreakDefinition, ...] = field(default_factory=default_breaks)


def parse_time(value: str) -> int:
    """Convert an ``HH:MM`` (or ``HH:MM:SS``) string to minutes after midnight."""
    parts = value.strip().split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    normalized = minutes % MINUTES_PER_DAY
    return f"{normalized // 60:02d}:{normalized % 60:02d}"
