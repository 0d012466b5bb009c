"""Service layer tests using the in-memory session"""

from datetime import date

import pytest
from sqlmodel import Session

from maintenance_api.common.error_handlers import (
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
    safe_execute,
)
from maintenance_api.models import (
    ExecutionStatus,
    MachineCreate,
    MachineUpdate,
    MaintenanceActionCreate,
    MaintenanceExecutionCreate,
    OperatorCreate,
    OperatorShiftOverride,
    ShiftCreate,
    ShiftOverrideRequest,
)
from maintenance_api.services import (
    ScheduleInputLoader,
    machine_service,
    maintenance_action_service,
    maintenance_execution_service,
    operator_service,
    schedule_service,
    shift_service,
)
from maintenance_engine import SchedulingConfig


@pytest.fixture
def machine(session: Session):
    return machine_service.create(
        session, MachineCreate(final_code="M-100", area="Paint")
    )


class TestBaseServiceBehaviour:
    def test_create_and_get(self, session, machine):
        fetched = machine_service.get_by_id(session, machine.id)
        assert fetched.final_code == "M-100"
        assert fetched.created_at is not None

    def test_get_missing_raises(self, session):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            machine_service.get_by_id(session, 404)
        assert exc_info.value.message == "Machine with ID 404 not found"

    def test_update_only_sets_given_fields(self, session, machine):
        updated = machine_service.update(
            session, machine.id, MachineUpdate(maintenance_on_hold=True)
        )
        assert updated.maintenance_on_hold is True
        assert updated.area == "Paint"

    def test_reference_validation(self, session):
        with pytest.raises(ValidationError) as exc_info:
            machine_service.create(
                session, MachineCreate(final_code="M-1", person_in_charge_id=3)
            )
        assert exc_info.value.field == "person_in_charge_id"

    def test_get_all_filters(self, session, machine):
        other = machine_service.create(session, MachineCreate(final_code="M-200"))
        maintenance_action_service.create(
            session,
            MaintenanceActionCreate(
                machine_id=other.id, action="Clean", periodicity="WEEKLY"
            ),
        )
        assert maintenance_action_service.get_actions(session, machine.id) == []
        assert len(maintenance_action_service.get_actions(session)) == 1

    def test_resource_name_override(self, session):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            maintenance_action_service.get_by_id(session, 9)
        assert exc_info.value.message.startswith("Maintenance action with ID 9")


class TestExecutionStats:
    def record(self, session, action_id, day, status, actual_time=None):
        return maintenance_execution_service.upsert_execution(
            session,
            MaintenanceExecutionCreate(
                action_id=action_id,
                scheduled_date=day,
                status=status,
                actual_time=actual_time,
            ),
        )

    def test_completion_rate_and_average(self, session, machine):
        action = maintenance_action_service.create(
            session,
            MaintenanceActionCreate(
                machine_id=machine.id, action="Replace filter", periodicity="MONTHLY"
            ),
        )
        self.record(session, action.id, date(2025, 1, 1), ExecutionStatus.COMPLETED, 10)
        self.record(session, action.id, date(2025, 2, 1), ExecutionStatus.COMPLETED, 15)
        self.record(session, action.id, date(2025, 3, 1), ExecutionStatus.SKIPPED)

        (stats,) = maintenance_execution_service.get_stats(
            session, machine_id=machine.id, today=date(2025, 3, 15)
        )
        assert stats.total_planned == 3
        assert stats.total_completed == 2
        assert stats.total_skipped == 1
        assert stats.total_records == 3
        assert stats.completion_rate == 67
        assert stats.avg_actual_time == 12.5
        assert stats.last_completed_date is not None

    def test_nothing_planned_yet(self, session, machine):
        maintenance_action_service.create(
            session,
            MaintenanceActionCreate(
                machine_id=machine.id,
                action="Annual overhaul",
                periodicity="YEARLY",
                month="December",
            ),
        )
        (stats,) = maintenance_execution_service.get_stats(
            session, today=date(2025, 6, 1)
        )
        assert stats.total_planned == 0
        assert stats.completion_rate == 0
        assert stats.avg_actual_time is None

    def test_month_is_normalized(self, session, machine):
        action = maintenance_action_service.create(
            session,
            MaintenanceActionCreate(
                machine_id=machine.id,
                action="Annual overhaul",
                periodicity="yearly",
                month="december",
            ),
        )
        assert action.periodicity == "YEARLY"
        assert action.month == "DECEMBER"


class TestShiftService:
    def test_override_rejects_inactive_shift(self, session):
        shift = shift_service.create(
            session, ShiftCreate(name="Day", start_time="08:00", end_time="16:00")
        )
        operator = operator_service.create(session, OperatorCreate(name="Ana"))
        shift_service.deactivate_shift(session, shift.id)

        with pytest.raises(ValidationError):
            shift_service.upsert_override(
                session,
                ShiftOverrideRequest(
                    operator_id=operator.id, date=date(2025, 3, 3), shift_id=shift.id
                ),
            )

    def test_delete_override_is_idempotent(self, session):
        operator = operator_service.create(session, OperatorCreate(name="Ana"))
        assert shift_service.delete_override(session, operator.id, date(2025, 3, 3)) is False


class TestScheduleService:
    def test_loader_skips_inactive_rows(self, session, machine):
        day = shift_service.create(
            session, ShiftCreate(name="Day", start_time="08:00", end_time="16:00")
        )
        operator_service.create(
            session, OperatorCreate(name="Ana", default_shift_id=day.id)
        )
        retired = operator_service.create(session, OperatorCreate(name="Old"))
        operator_service.deactivate_operator(session, retired.id)

        inputs = ScheduleInputLoader().load(session, date(2025, 3, 3))
        assert [op.name for op in inputs.operators] == ["Ana"]
        assert [s.name for s in inputs.shifts] == ["Day"]
        assert [m.final_code for m in inputs.machines] == ["M-100"]

    def test_compute_daily_schedule(self, session, machine):
        day = shift_service.create(
            session, ShiftCreate(name="Day", start_time="08:00", end_time="16:00")
        )
        operator_service.create(
            session, OperatorCreate(name="Ana", default_shift_id=day.id)
        )
        maintenance_action_service.create(
            session,
            MaintenanceActionCreate(
                machine_id=machine.id,
                action="Check pressure",
                periodicity="BEFORE EACH USE",
                time_needed=20,
            ),
        )

        schedule = schedule_service.compute_daily_schedule(
            session, date(2025, 3, 3), SchedulingConfig(buffer_minutes=0)
        )
        (task,) = schedule.scheduled
        assert (task.start_time, task.end_time) == ("08:30", "08:50")
        assert task.operator_name == "Ana"


class TestSafeExecute:
    def test_integrity_error_becomes_conflict(self, session):
        operator = operator_service.create(session, OperatorCreate(name="Ana"))

        def duplicate():
            for _ in range(2):
                session.add(
                    OperatorShiftOverride(
                        operator_id=operator.id, shift_date=date(2025, 3, 3)
                    )
                )
            session.flush()

        with pytest.raises(ConflictError) as exc_info:
            safe_execute(session, duplicate)
        assert exc_info.value.http_status == 409
        assert exc_info.value.error_code == "CONFLICT"

    def test_service_errors_pass_through(self, session):
        def missing():
            raise ResourceNotFoundError("Machine", 7)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            safe_execute(session, missing)
        assert exc_info.value.http_status == 404
