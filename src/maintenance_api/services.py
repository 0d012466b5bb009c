"""
Domain services built on the base service class, plus the loader that turns
database rows into scheduling engine inputs
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal, ROUND_HALF_UP

from sqlmodel import Session, delete, select

import maintenance_engine as engine
from maintenance_api.base_service import BaseService
from maintenance_api.common.error_handlers import (
    ResourceNotFoundError,
    ValidationError,
    safe_execute,
)
from maintenance_api.models import (
    DefaultShiftUpdate,
    ExecutionStatsResponse,
    Machine,
    MachineCreate,
    MachineUpdate,
    MaintenanceAction,
    MaintenanceActionCreate,
    MaintenanceActionUpdate,
    MaintenanceExecution,
    MaintenanceExecutionCreate,
    MaintenanceExecutionResponse,
    MaintenanceExecutionUpdate,
    Operator,
    OperatorCreate,
    OperatorShiftOverride,
    OperatorUpdate,
    RosterEntryResponse,
    RosterShiftInfo,
    Shift,
    ShiftCreate,
    ShiftOverrideRequest,
    ShiftUpdate,
)

logger = logging.getLogger(__name__)

LIST_LIMIT = 1000


def _round_half_up(value: Decimal, places: str = "1") -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


class MachineService(BaseService[Machine, MachineCreate, MachineUpdate]):
    """Machine service using base service"""

    def __init__(self):
        super().__init__(Machine)

    def _create_instance(self, data: MachineCreate, **kwargs) -> Machine:
        """Create a new machine instance"""
        return Machine(**data.model_dump())

    def _validate_references(
        self, session: Session, data: MachineCreate | MachineUpdate
    ) -> None:
        person_id = data.person_in_charge_id
        if person_id is not None and session.get(Operator, person_id) is None:
            raise ValidationError(
                f"Operator {person_id} does not exist", field="person_in_charge_id"
            )

    def get_machines(self, session: Session) -> list[Machine]:
        return self.get_all(session, limit=LIST_LIMIT)

    def delete_machine(self, session: Session, machine_id: int) -> bool:
        """Delete a machine together with its actions and their executions"""
        machine = self.get_by_id(session, machine_id)

        def delete_operation():
            session.exec(
                delete(MaintenanceExecution).where(
                    MaintenanceExecution.machine_id == machine_id
                )
            )
            session.exec(
                delete(MaintenanceAction).where(
                    MaintenanceAction.machine_id == machine_id
                )
            )
            session.delete(machine)
            return True

        return safe_execute(session, delete_operation)


class MaintenanceActionService(
    BaseService[MaintenanceAction, MaintenanceActionCreate, MaintenanceActionUpdate]
):
    """Maintenance action service using base service"""

    resource_name = "Maintenance action"

    def __init__(self):
        super().__init__(MaintenanceAction)

    def _create_instance(
        self, data: MaintenanceActionCreate, **kwargs
    ) -> MaintenanceAction:
        """Create a new maintenance action instance"""
        return MaintenanceAction(**data.model_dump())

    def _validate_references(
        self,
        session: Session,
        data: MaintenanceActionCreate | MaintenanceActionUpdate,
    ) -> None:
        machine_id = getattr(data, "machine_id", None)
        if machine_id is not None and session.get(Machine, machine_id) is None:
            raise ValidationError(
                f"Machine {machine_id} does not exist", field="machine_id"
            )

    def get_actions(
        self, session: Session, machine_id: int | None = None
    ) -> list[MaintenanceAction]:
        return self.get_all(session, limit=LIST_LIMIT, machine_id=machine_id)

    def delete_action(self, session: Session, action_id: int) -> bool:
        """Delete an action and its recorded executions"""
        action = self.get_by_id(session, action_id)

        def delete_operation():
            session.exec(
                delete(MaintenanceExecution).where(
                    MaintenanceExecution.action_id == action_id
                )
            )
            session.delete(action)
            return True

        return safe_execute(session, delete_operation)


class OperatorService(BaseService[Operator, OperatorCreate, OperatorUpdate]):
    """Operator service using base service"""

    def __init__(self):
        super().__init__(Operator)

    def _create_instance(self, data: OperatorCreate, **kwargs) -> Operator:
        """Create a new operator instance"""
        return Operator(**data.model_dump())

    def _validate_references(
        self, session: Session, data: OperatorCreate | OperatorUpdate
    ) -> None:
        shift_id = getattr(data, "default_shift_id", None)
        if shift_id is not None:
            shift_service.get_active_shift(session, shift_id)

    def get_operators(
        self, session: Session, include_inactive: bool = False
    ) -> list[Operator]:
        if include_inactive:
            return self.get_all(session, limit=LIST_LIMIT)
        return self.get_all(session, limit=LIST_LIMIT, is_active=True)

    def deactivate_operator(self, session: Session, operator_id: int) -> Operator:
        """Soft delete: inactive operators are excluded from rosters and schedules"""
        operator = self.get_by_id(session, operator_id)

        def deactivate_operation():
            operator.is_active = False
            operator.updated_at = datetime.now(UTC)
            session.add(operator)
            return operator

        return safe_execute(session, deactivate_operation)

    def set_default_shift(
        self, session: Session, operator_id: int, data: DefaultShiftUpdate
    ) -> Operator:
        """Set or clear the shift an operator works when no override applies"""
        operator = self.get_by_id(session, operator_id)
        if data.shift_id is not None:
            shift_service.get_active_shift(session, data.shift_id)

        def update_operation():
            operator.default_shift_id = data.shift_id
            operator.updated_at = datetime.now(UTC)
            session.add(operator)
            return operator

        operator = safe_execute(session, update_operation)
        session.refresh(operator)
        return operator


class ShiftService(BaseService[Shift, ShiftCreate, ShiftUpdate]):
    """Shift definitions, per-date overrides and the daily roster"""

    def __init__(self):
        super().__init__(Shift)

    def _create_instance(self, data: ShiftCreate, **kwargs) -> Shift:
        """Create a new shift instance"""
        return Shift(**data.model_dump())

    def get_active_shifts(self, session: Session) -> list[Shift]:
        return self.get_all(session, limit=LIST_LIMIT, is_active=True)

    def get_active_shift(self, session: Session, shift_id: int) -> Shift:
        shift = session.get(Shift, shift_id)
        if shift is None or not shift.is_active:
            raise ValidationError(
                f"Shift {shift_id} does not exist or is inactive", field="shift_id"
            )
        return shift

    def deactivate_shift(self, session: Session, shift_id: int) -> Shift:
        """Soft delete; operators still pointing at it become unassigned"""
        shift = self.get_by_id(session, shift_id)

        def deactivate_operation():
            shift.is_active = False
            shift.updated_at = datetime.now(UTC)
            session.add(shift)
            return shift

        return safe_execute(session, deactivate_operation)

    def upsert_override(
        self, session: Session, data: ShiftOverrideRequest
    ) -> OperatorShiftOverride:
        """Create or replace the override for an operator on a date"""
        operator_service.get_by_id(session, data.operator_id)
        if data.shift_id is not None:
            self.get_active_shift(session, data.shift_id)

        existing = session.exec(
            select(OperatorShiftOverride).where(
                OperatorShiftOverride.operator_id == data.operator_id,
                OperatorShiftOverride.shift_date == data.date,
            )
        ).first()

        def upsert_operation():
            if existing is not None:
                existing.shift_id = data.shift_id
                session.add(existing)
                return existing
            override = OperatorShiftOverride(
                operator_id=data.operator_id,
                shift_date=data.date,
                shift_id=data.shift_id,
            )
            session.add(override)
            session.flush()
            return override

        override = safe_execute(session, upsert_operation)
        session.refresh(override)
        return override

    def delete_override(
        self, session: Session, operator_id: int, shift_date: date
    ) -> bool:
        """Revert an operator to their default shift for a date"""

        def delete_operation():
            result = session.exec(
                delete(OperatorShiftOverride).where(
                    OperatorShiftOverride.operator_id == operator_id,
                    OperatorShiftOverride.shift_date == shift_date,
                )
            )
            return result.rowcount > 0

        return safe_execute(session, delete_operation)

    def get_roster(self, session: Session, roster_date: date) -> list[RosterEntryResponse]:
        """Effective shift of every active operator, ordered by name"""
        operators = operator_service.get_operators(session)
        shifts = self.get_active_shifts(session)
        overrides = session.exec(
            select(OperatorShiftOverride).where(
                OperatorShiftOverride.shift_date == roster_date
            )
        ).all()

        shifts_by_id = {shift.id: shift for shift in shifts}
        entries = engine.build_roster(
            [to_engine_operator(op) for op in operators],
            roster_date,
            [to_engine_override(o) for o in overrides],
            [to_engine_shift(s) for s in shifts],
        )

        roster = []
        for entry in entries:
            default_shift = shifts_by_id.get(entry.operator.default_shift_id)
            effective = None
            if entry.shift is not None:
                effective = RosterShiftInfo(
                    shift_id=entry.shift.id,
                    shift_name=entry.shift.name,
                    start_time=entry.shift.start_time,
                    end_time=entry.shift.end_time,
                )
            roster.append(
                RosterEntryResponse(
                    operator_id=entry.operator.id,
                    operator_name=entry.operator.name,
                    department=entry.operator.department,
                    default_shift_id=entry.operator.default_shift_id,
                    default_shift_name=default_shift.name if default_shift else None,
                    effective_shift=effective,
                    has_override=entry.has_override,
                    is_day_off=entry.status is engine.RosterStatus.DAY_OFF,
                    status=entry.status.value,
                )
            )
        roster.sort(key=lambda r: (r.operator_name.casefold(), r.operator_id))
        return roster


class MaintenanceExecutionService:
    """Recorded outcomes of maintenance occurrences"""

    @staticmethod
    def _completed_date(status: engine.ExecutionStatus | None) -> datetime | None:
        if status == engine.ExecutionStatus.COMPLETED:
            return datetime.now(UTC)
        return None

    @staticmethod
    def _to_response(
        execution: MaintenanceExecution, completed_by_name: str | None
    ) -> MaintenanceExecutionResponse:
        response = MaintenanceExecutionResponse.model_validate(execution)
        response.completed_by_name = completed_by_name
        return response

    def _with_operator_name(self, session: Session, execution: MaintenanceExecution):
        name = None
        if execution.completed_by_id is not None:
            operator = session.get(Operator, execution.completed_by_id)
            name = operator.name if operator else None
        return self._to_response(execution, name)

    def _validate_operator(self, session: Session, operator_id: int | None) -> None:
        if operator_id is not None and session.get(Operator, operator_id) is None:
            raise ValidationError(
                f"Operator {operator_id} does not exist", field="completed_by_id"
            )

    def get_execution(
        self, session: Session, execution_id: int
    ) -> MaintenanceExecution:
        execution = session.get(MaintenanceExecution, execution_id)
        if execution is None:
            raise ResourceNotFoundError("Execution", execution_id)
        return execution

    def get_executions(
        self, session: Session, date_from: date, date_to: date
    ) -> list[MaintenanceExecutionResponse]:
        """Executions scheduled within ``[date_from, date_to]``"""
        statement = (
            select(MaintenanceExecution, Operator.name)
            .outerjoin(Operator, MaintenanceExecution.completed_by_id == Operator.id)
            .where(
                MaintenanceExecution.scheduled_date >= date_from,
                MaintenanceExecution.scheduled_date <= date_to,
            )
            .order_by(MaintenanceExecution.scheduled_date, MaintenanceExecution.action_id)
        )
        return [
            self._to_response(execution, name)
            for execution, name in session.exec(statement).all()
        ]

    def upsert_execution(
        self, session: Session, data: MaintenanceExecutionCreate
    ) -> MaintenanceExecutionResponse:
        """Insert or replace the execution for (action, scheduled date)"""
        action = session.get(MaintenanceAction, data.action_id)
        if action is None:
            raise ValidationError(
                f"Maintenance action {data.action_id} does not exist",
                field="action_id",
            )
        self._validate_operator(session, data.completed_by_id)

        existing = session.exec(
            select(MaintenanceExecution).where(
                MaintenanceExecution.action_id == data.action_id,
                MaintenanceExecution.scheduled_date == data.scheduled_date,
            )
        ).first()

        def upsert_operation():
            if existing is not None:
                execution = existing
                execution.updated_at = datetime.now(UTC)
            else:
                execution = MaintenanceExecution(
                    action_id=data.action_id,
                    machine_id=data.machine_id or action.machine_id,
                    scheduled_date=data.scheduled_date,
                    status=data.status,
                )
            execution.status = data.status
            execution.actual_time = data.actual_time
            execution.completed_by_id = data.completed_by_id
            execution.completed_date = self._completed_date(data.status)
            execution.notes = data.notes
            session.add(execution)
            session.flush()
            return execution

        execution = safe_execute(session, upsert_operation)
        session.refresh(execution)
        logger.info(
            f"Execution {execution.id} for action {execution.action_id} on "
            f"{execution.scheduled_date}: {execution.status.value}"
        )
        return self._with_operator_name(session, execution)

    def update_execution(
        self, session: Session, execution_id: int, data: MaintenanceExecutionUpdate
    ) -> MaintenanceExecutionResponse:
        execution = self.get_execution(session, execution_id)
        self._validate_operator(session, data.completed_by_id)

        def update_operation():
            update_data = data.model_dump(exclude_unset=True)
            for key, value in update_data.items():
                setattr(execution, key, value)
            if "status" in update_data:
                execution.completed_date = self._completed_date(data.status)
            execution.updated_at = datetime.now(UTC)
            session.add(execution)
            session.flush()
            return execution

        execution = safe_execute(session, update_operation)
        session.refresh(execution)
        return self._with_operator_name(session, execution)

    def delete_execution(self, session: Session, execution_id: int) -> bool:
        """Remove the record; the occurrence shows as pending again"""
        execution = self.get_execution(session, execution_id)

        def delete_operation():
            session.delete(execution)
            return True

        return safe_execute(session, delete_operation)

    def get_stats(
        self,
        session: Session,
        machine_id: int | None = None,
        today: date | None = None,
    ) -> list[ExecutionStatsResponse]:
        """Per-action completion statistics from January 1 to today (UTC)"""
        if today is None:
            today = datetime.now(UTC).date()
        year_start = date(today.year, 1, 1)

        action_statement = select(MaintenanceAction).order_by(MaintenanceAction.id)
        if machine_id is not None:
            action_statement = action_statement.where(
                MaintenanceAction.machine_id == machine_id
            )
        actions = session.exec(action_statement).all()

        executions_by_action: dict[int, list[MaintenanceExecution]] = {}
        if actions:
            executions = session.exec(
                select(MaintenanceExecution).where(
                    MaintenanceExecution.action_id.in_([a.id for a in actions])
                )
            ).all()
            for execution in executions:
                executions_by_action.setdefault(execution.action_id, []).append(
                    execution
                )

        stats = []
        for action in actions:
            records = executions_by_action.get(action.id, [])
            completed = [
                e for e in records if e.status == engine.ExecutionStatus.COMPLETED
            ]
            skipped = [e for e in records if e.status == engine.ExecutionStatus.SKIPPED]
            completed_dates = [e.completed_date for e in completed if e.completed_date]
            actual_times = [e.actual_time for e in completed if e.actual_time is not None]

            planned = engine.count_planned_occurrences([action], year_start, today)
            completion_rate = 0
            if planned > 0:
                completion_rate = int(
                    _round_half_up(Decimal(len(completed)) * 100 / Decimal(planned))
                )
            avg_actual_time = None
            if actual_times:
                avg_actual_time = float(
                    _round_half_up(
                        Decimal(sum(actual_times)) / Decimal(len(actual_times)), "0.01"
                    )
                )

            stats.append(
                ExecutionStatsResponse(
                    action_id=action.id,
                    total_completed=len(completed),
                    total_skipped=len(skipped),
                    total_records=len(records),
                    total_planned=planned,
                    last_completed_date=max(completed_dates) if completed_dates else None,
                    avg_actual_time=avg_actual_time,
                    completion_rate=completion_rate,
                )
            )
        return stats


# Row -> engine value conversion
def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def to_engine_operator(operator: Operator) -> engine.Operator:
    groups = frozenset(
        group for group, authorized in (operator.authorizations or {}).items() if authorized
    )
    return engine.Operator(
        id=operator.id,
        name=operator.name,
        department=operator.department or "",
        authorized_groups=groups,
        default_shift_id=operator.default_shift_id,
    )


def to_engine_machine(machine: Machine) -> engine.Machine:
    return engine.Machine(
        id=machine.id,
        final_code=machine.final_code,
        area=machine.area or "",
        authorization_group=machine.authorization_group or None,
        person_in_charge_id=machine.person_in_charge_id,
        maintenance_needed=bool(machine.maintenance_needed),
        maintenance_on_hold=bool(machine.maintenance_on_hold),
    )


def to_engine_policy(action: MaintenanceAction) -> engine.MaintenancePolicy:
    return engine.MaintenancePolicy(
        id=action.id,
        machine_id=action.machine_id,
        description=action.action,
        periodicity=action.periodicity,
        status=_status_value(action.status),
        month=action.month,
        time_needed=action.time_needed,
        maintenance_in_charge=bool(action.maintenance_in_charge),
    )


def to_engine_shift(shift: Shift) -> engine.ShiftDefinition:
    return engine.ShiftDefinition(
        id=shift.id,
        name=shift.name,
        start_time=shift.start_time,
        end_time=shift.end_time,
    )


def to_engine_override(override: OperatorShiftOverride) -> engine.ShiftOverride:
    return engine.ShiftOverride(
        operator_id=override.operator_id,
        shift_date=override.shift_date,
        shift_id=override.shift_id,
    )


def to_engine_execution(
    execution: MaintenanceExecution, completed_by_name: str | None
) -> engine.Execution:
    return engine.Execution(
        id=execution.id,
        action_id=execution.action_id,
        scheduled_date=execution.scheduled_date,
        status=_status_value(execution.status),
        actual_time=execution.actual_time,
        completed_by_id=execution.completed_by_id,
        completed_by_name=completed_by_name,
        completed_date=execution.completed_date,
        notes=execution.notes,
    )


@dataclass
class ScheduleInputs:
    policies: list[engine.MaintenancePolicy] = field(default_factory=list)
    machines: list[engine.Machine] = field(default_factory=list)
    operators: list[engine.Operator] = field(default_factory=list)
    shifts: list[engine.ShiftDefinition] = field(default_factory=list)
    overrides: list[engine.ShiftOverride] = field(default_factory=list)
    executions: list[engine.Execution] = field(default_factory=list)


class ScheduleInputLoader:
    """Reads everything one day's schedule needs from a single session"""

    def load(self, session: Session, target_date: date) -> ScheduleInputs:
        actions = session.exec(
            select(MaintenanceAction).order_by(MaintenanceAction.id)
        ).all()
        machines = session.exec(select(Machine).order_by(Machine.id)).all()
        operators = session.exec(
            select(Operator).where(Operator.is_active == True).order_by(Operator.id)  # noqa: E712
        ).all()
        shifts = session.exec(
            select(Shift).where(Shift.is_active == True).order_by(Shift.id)  # noqa: E712
        ).all()
        overrides = session.exec(
            select(OperatorShiftOverride).where(
                OperatorShiftOverride.shift_date == target_date
            )
        ).all()
        executions = session.exec(
            select(MaintenanceExecution, Operator.name)
            .outerjoin(Operator, MaintenanceExecution.completed_by_id == Operator.id)
            .where(MaintenanceExecution.scheduled_date == target_date)
        ).all()

        return ScheduleInputs(
            policies=[to_engine_policy(a) for a in actions],
            machines=[to_engine_machine(m) for m in machines],
            operators=[to_engine_operator(o) for o in operators],
            shifts=[to_engine_shift(s) for s in shifts],
            overrides=[to_engine_override(o) for o in overrides],
            executions=[to_engine_execution(e, name) for e, name in executions],
        )


class ScheduleService:
    """Daily maintenance schedule computed on demand, never stored"""

    def __init__(self, loader: ScheduleInputLoader | None = None):
        self.loader = loader or ScheduleInputLoader()

    def compute_daily_schedule(
        self,
        session: Session,
        target_date: date,
        config: engine.SchedulingConfig,
    ) -> engine.DailySchedule:
        inputs = self.loader.load(session, target_date)
        logger.info(
            f"📅 Scheduling {target_date}: {len(inputs.policies)} actions, "
            f"{len(inputs.operators)} active operators, {len(inputs.shifts)} shifts"
        )
        return engine.compute_daily_schedule(
            target_date,
            inputs.policies,
            inputs.machines,
            inputs.operators,
            inputs.shifts,
            inputs.overrides,
            inputs.executions,
            config,
        )


machine_service = MachineService()
maintenance_action_service = MaintenanceActionService()
operator_service = OperatorService()
shift_service = ShiftService()
maintenance_execution_service = MaintenanceExecutionService()
schedule_service = ScheduleService()
