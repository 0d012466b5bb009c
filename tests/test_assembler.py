from datetime import date

import pytest

from maintenance_engine import (
    Operator,
    SchedulingConfig,
    ShiftDefinition,
    ShiftGroup,
    TaskCandidate,
    assemble_schedule,
    default_breaks,
    plan_shift,
    schedule_candidates,
    utilization_percent,
)

TARGET = date(2025, 3, 3)


def make_task(action_id, machine_id, time_needed, status="MANDATORY"):
    return TaskCandidate(
        action_id=action_id,
        machine_id=machine_id,
        machine_final_code=f"M-{machine_id:03d}",
        machine_area="",
        authorization_group=None,
        person_in_charge_id=None,
        description=f"Action {action_id}",
        periodicity="BEFORE EACH USE",
        status=status,
        maintenance_in_charge=False,
        time_needed=time_needed,
    )


@pytest.mark.parametrize(
    "total,available,expected",
    [(105, 420, 25), (1, 8, 13), (1, 200, 1), (0, 420, 0), (30, 0, 0), (50, -10, 0)],
)
def test_utilization_percent_rounds_half_up(total, available, expected):
    assert utilization_percent(total, available) == expected


def assemble(operators, candidates, config=None):
    config = config or SchedulingConfig()
    shift = ShiftDefinition(id=1, name="Day", start_time="08:00", end_time="16:00")
    plan = plan_shift(
        ShiftGroup(shift=shift, operators=operators),
        config.break_duration,
        config.breaks,
    )
    outcome = schedule_candidates(
        candidates, [plan], target_date=TARGET, buffer_minutes=config.buffer_minutes
    )
    return assemble_schedule(
        TARGET,
        config,
        [plan],
        candidates,
        outcome.scheduled,
        outcome.unscheduled,
        unassigned=[Operator(id=9, name="Zed")],
        operator_count=len(operators) + 1,
    )


def test_idle_operators_get_lanes_sorted_by_name():
    operators = [
        Operator(id=1, name="bob"),
        Operator(id=2, name="Alice"),
        Operator(id=3, name="carol"),
    ]
    schedule = assemble(operators, [])
    lanes = schedule.shifts[0].lanes
    assert [lane.operator_name for lane in lanes] == ["Alice", "bob", "carol"]
    assert all(lane.tasks == () and lane.utilization_percent == 0 for lane in lanes)


def test_lane_totals_and_order():
    candidates = [make_task(2, 1, 60), make_task(1, 2, 45, status="IDEAL")]
    schedule = assemble([Operator(id=1, name="Ana", department="Ops")], candidates)

    shift = schedule.shifts[0]
    assert shift.workday_start == "08:00"
    assert shift.workday_end == "16:00"
    assert shift.available_minutes == 420
    assert [b.label for b in shift.breaks] == ["Breakfast", "Lunch"]

    lane = shift.lanes[0]
    assert lane.department == "Ops"
    assert [(t.action_id, t.start_time, t.end_time) for t in lane.tasks] == [
        (2, "08:30", "09:30"),
        (1, "09:35", "10:20"),
    ]
    assert lane.total_minutes == 105
    assert lane.utilization_percent == 25


def test_summary_counts():
    candidates = [
        make_task(1, 1, 60),
        make_task(2, 2, 30, status="IDEAL"),
        make_task(3, 3, 600, status="IDEAL"),
    ]
    schedule = assemble([Operator(id=1, name="Ana")], candidates)
    summary = schedule.summary
    assert summary.total_tasks == 3
    assert summary.scheduled_tasks == 2
    assert summary.unscheduled_tasks == 1
    assert summary.total_minutes == 90
    assert summary.mandatory_count == 1
    assert summary.ideal_count == 2
    assert summary.operator_count == 2
    assert summary.shift_count == 1
    assert [op.name for op in schedule.unassigned] == ["Zed"]
    assert [u.action_id for u in schedule.unscheduled] == [3]
    assert len(schedule.scheduled) == 2


def test_config_is_echoed():
    config = SchedulingConfig(break_duration=0, buffer_minutes=10, breaks=default_breaks())
    schedule = assemble([Operator(id=1, name="Ana")], [], config)
    assert schedule.config is config
    assert (schedule.config.break_duration, schedule.config.buffer_minutes) == (0, 10)
