"""Tests for break windows, slot search and greedy placement."""

from datetime import date

import pytest

from maintenance_engine import (
    AvailabilityLedger,
    BreakDefinition,
    BreakWindow,
    Operator,
    ShiftDefinition,
    ShiftGroup,
    Slot,
    TaskCandidate,
    compute_applicable_breaks,
    default_breaks,
    find_earliest_slot,
    plan_shift,
    schedule_candidates,
)
from maintenance_engine.slots import (
    NO_SHIFTS_REASON,
    NO_SLOT_REASON,
    PREFERRED_OPERATOR_NOTE,
)

TARGET = date(2025, 3, 3)


def make_task(action_id, machine_id=1, time_needed=60, **kwargs):
    defaults = dict(
        machine_final_code=f"M-{machine_id:03d}",
        machine_area="Press",
        authorization_group=None,
        person_in_charge_id=None,
        description=f"Action {action_id}",
        periodicity="BEFORE EACH USE",
        status="MANDATORY",
        maintenance_in_charge=False,
    )
    defaults.update(kwargs)
    return TaskCandidate(
        action_id=action_id, machine_id=machine_id, time_needed=time_needed, **defaults
    )


def make_plan(shift_id, start, end, operators, breaks=()):
    shift = ShiftDefinition(
        id=shift_id, name=f"Shift {shift_id}", start_time=start, end_time=end
    )
    return plan_shift(ShiftGroup(shift=shift, operators=list(operators)), 30, breaks)


class TestComputeApplicableBreaks:
    def test_day_shift_breaks(self):
        windows = compute_applicable_breaks(480, 960, 30, default_breaks())
        assert [(w.label, w.start, w.end) for w in windows] == [
            ("Breakfast", 480, 510),
            ("Lunch", 720, 750),
        ]

    def test_overnight_shift_sees_next_day_breaks(self):
        windows = compute_applicable_breaks(1320, 1800, 30, default_breaks())
        assert [(w.label, w.start, w.end) for w in windows] == [
            ("Midnight", 1500, 1530),
        ]
        assert windows[0].start_display == "01:00"
        assert windows[0].end_display == "01:30"

    def test_break_must_end_inside_shift(self):
        windows = compute_applicable_breaks(360, 735, 30, default_breaks())
        assert [w.label for w in windows] == ["Breakfast"]

    def test_zero_duration_breaks_do_not_block(self):
        windows = compute_applicable_breaks(480, 960, 0, default_breaks())
        slot = find_earliest_slot([], [], 60, 480, 960, windows, 5)
        assert slot == Slot(480, 540)

    def test_plan_shift_available_minutes(self):
        plan = make_plan(1, "08:00", "16:00", [], default_breaks())
        assert plan.work_start == 480
        assert plan.work_end == 960
        assert plan.available_minutes == 420


class TestFindEarliestSlot:
    def test_starts_at_shift_start_when_free(self):
        assert find_earliest_slot([], [], 60, 480, 960, [], 5) == Slot(480, 540)

    def test_skips_past_padded_operator_interval(self):
        slot = find_earliest_slot([(480, 540)], [], 30, 480, 960, [], 5)
        assert slot == Slot(545, 575)

    def test_fits_before_padded_interval(self):
        slot = find_earliest_slot([(600, 660)], [], 100, 480, 960, [], 5)
        assert slot == Slot(480, 580)

    def test_too_long_for_gap_moves_after_interval(self):
        slot = find_earliest_slot([(600, 660)], [], 120, 480, 960, [], 5)
        assert slot == Slot(665, 785)

    def test_machine_intervals_block_too(self):
        slot = find_earliest_slot([], [(480, 540)], 30, 480, 960, [], 5)
        assert slot == Slot(545, 575)

    def test_breaks_are_not_padded(self):
        breaks = [BreakWindow("Breakfast", 480, 510)]
        assert find_earliest_slot([], [], 30, 480, 960, breaks, 5) == Slot(510, 540)

    def test_zero_buffer_allows_back_to_back(self):
        assert find_earliest_slot([(480, 540)], [], 30, 480, 960, [], 0) == Slot(
            540, 570
        )

    def test_may_end_exactly_at_shift_end(self):
        assert find_earliest_slot([], [], 60, 480, 540, [], 5) == Slot(480, 540)

    def test_none_when_task_longer_than_shift(self):
        assert find_earliest_slot([], [], 481, 480, 960, [], 5) is None

    def test_none_when_breaks_fragment_the_shift(self):
        breaks = compute_applicable_breaks(480, 960, 30, default_breaks())
        assert find_earliest_slot([], [], 240, 480, 960, breaks, 5) is None


class TestScheduleCandidates:
    def test_no_shifts_means_every_task_unscheduled(self):
        outcome = schedule_candidates(
            [make_task(1), make_task(2)], [], target_date=TARGET, buffer_minutes=5
        )
        assert outcome.scheduled == []
        assert [u.reason for u in outcome.unscheduled] == [NO_SHIFTS_REASON] * 2

    def test_task_id_combines_action_and_date(self):
        plan = make_plan(1, "08:00", "16:00", [Operator(id=1, name="Ana")])
        outcome = schedule_candidates(
            [make_task(7)], [plan], target_date=TARGET, buffer_minutes=5
        )
        assert outcome.scheduled[0].id == "7-2025-03-03"

    def test_only_authorized_operators_are_used(self):
        operators = [
            Operator(id=1, name="Ana"),
            Operator(id=2, name="Ben", authorized_groups=frozenset({"WELD"})),
        ]
        plan = make_plan(1, "08:00", "16:00", operators)
        outcome = schedule_candidates(
            [make_task(1, authorization_group="WELD")],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
        )
        assert outcome.scheduled[0].operator_id == 2

    def test_no_authorized_operator_is_unscheduled(self):
        plan = make_plan(1, "08:00", "16:00", [Operator(id=1, name="Ana")])
        outcome = schedule_candidates(
            [make_task(1, authorization_group="WELD")],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
        )
        assert outcome.scheduled == []
        assert outcome.unscheduled[0].reason == NO_SLOT_REASON

    def test_person_in_charge_preferred(self):
        operators = [Operator(id=1, name="Ana"), Operator(id=2, name="Ben")]
        plan = make_plan(1, "08:00", "16:00", operators)
        outcome = schedule_candidates(
            [make_task(1, person_in_charge_id=2, maintenance_in_charge=True)],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
        )
        task = outcome.scheduled[0]
        assert task.operator_id == 2
        assert task.scheduling_notes == (PREFERRED_OPERATOR_NOTE,)

    def test_person_in_charge_ignored_without_flag(self):
        operators = [Operator(id=1, name="Ana"), Operator(id=2, name="Ben")]
        plan = make_plan(1, "08:00", "16:00", operators)
        outcome = schedule_candidates(
            [make_task(1, person_in_charge_id=2)],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
        )
        assert outcome.scheduled[0].operator_id == 1
        assert outcome.scheduled[0].scheduling_notes == ()

    def test_person_in_charge_preference_is_per_shift(self):
        # The preferred operator only jumps the queue inside their own shift
        day = make_plan(1, "06:00", "14:00", [Operator(id=1, name="Ana")])
        late = make_plan(2, "14:00", "22:00", [Operator(id=2, name="Ben")])
        outcome = schedule_candidates(
            [make_task(1, person_in_charge_id=2, maintenance_in_charge=True)],
            [late, day],
            target_date=TARGET,
            buffer_minutes=5,
        )
        task = outcome.scheduled[0]
        assert (task.shift_id, task.operator_id, task.start_time) == (1, 1, "06:00")
        assert task.scheduling_notes == ()

    def test_next_operator_used_when_first_is_full(self):
        operators = [Operator(id=1, name="Ana"), Operator(id=2, name="Ben")]
        plan = make_plan(1, "08:00", "10:00", operators)
        outcome = schedule_candidates(
            [make_task(1, machine_id=1, time_needed=120), make_task(2, machine_id=2)],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
        )
        assert [(t.operator_id, t.start_time) for t in outcome.scheduled] == [
            (1, "08:00"),
            (2, "08:00"),
        ]

    def test_machine_is_exclusive_across_shifts(self):
        early = make_plan(1, "06:00", "10:00", [Operator(id=1, name="Ana")])
        day = make_plan(2, "06:00", "14:00", [Operator(id=2, name="Ben")])
        outcome = schedule_candidates(
            [make_task(1, time_needed=240), make_task(2, time_needed=60)],
            [day, early],
            target_date=TARGET,
            buffer_minutes=5,
        )
        first, second = outcome.scheduled
        assert (first.shift_id, first.operator_id, first.start_minute) == (1, 1, 360)
        assert (second.shift_id, second.operator_id, second.start_minute) == (
            2,
            2,
            605,
        )
        assert outcome.ledger.machine_busy[1] == [(360, 600), (605, 665)]

    def test_uses_provided_ledger(self):
        ledger = AvailabilityLedger()
        ledger.reserve(1, 9, Slot(480, 600))
        plan = make_plan(1, "08:00", "16:00", [Operator(id=1, name="Ana")])
        outcome = schedule_candidates(
            [make_task(1, machine_id=2, time_needed=30)],
            [plan],
            target_date=TARGET,
            buffer_minutes=5,
            ledger=ledger,
        )
        assert outcome.ledger is ledger
        assert outcome.scheduled[0].start_minute == 605
        assert ledger.operator_busy[1] == [(480, 600), (605, 635)]

    def test_no_overlaps_within_buffer(self):
        operators = [Operator(id=i, name=f"Op {i}") for i in (1, 2, 3)]
        plan = make_plan(1, "06:00", "18:00", operators, default_breaks())
        tasks = [
            make_task(i, machine_id=(i % 3) + 1, time_needed=20 + (i * 17) % 90)
            for i in range(1, 16)
        ]
        outcome = schedule_candidates(
            tasks, [plan], target_date=TARGET, buffer_minutes=5
        )
        placed = outcome.scheduled
        assert placed
        for index, a in enumerate(placed):
            for b in placed[index + 1 :]:
                if a.operator_id == b.operator_id or a.machine_id == b.machine_id:
                    gap_ok = (
                        a.end_minute + 5 <= b.start_minute
                        or b.end_minute + 5 <= a.start_minute
                    )
                    assert gap_ok, (a, b)
            for window in plan.breaks:
                assert a.end_minute <= window.start or a.start_minute >= window.end
            assert plan.work_start <= a.start_minute
            assert a.end_minute <= plan.work_end
        assert len(placed) + len(outcome.unscheduled) == len(tasks)


@pytest.mark.parametrize("buffer", [0, 5, 15])
def test_buffer_between_consecutive_tasks(buffer):
    plan = make_plan(
        1, "08:00", "16:00", [Operator(id=1, name="Ana")], [BreakDefinition(720, "Lunch")]
    )
    outcome = schedule_candidates(
        [make_task(1, machine_id=1), make_task(2, machine_id=2)],
        [plan],
        target_date=TARGET,
        buffer_minutes=buffer,
    )
    first, second = outcome.scheduled
    assert second.start_minute - first.end_minute == buffer
